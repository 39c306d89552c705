"""
Django-Q tasks for recalculating stored qualified teams scores.
"""

import logging

from django_q.tasks import async_task

from qualifiers.services.scoring import calculate_and_store_qualified_teams_scores

logger = logging.getLogger(__name__)


def recalculate_qualified_teams_scores(tournament_id):
    """
    Recompute every stored qualified teams score of a tournament.

    Returns:
        dict: ``status`` plus the batch summary
    """
    logger.info(f"Starting qualified teams score recalculation for tournament {tournament_id}")
    summary = calculate_and_store_qualified_teams_scores(tournament_id)

    if not summary["success"]:
        status = "failed"
    elif summary["errors"]:
        status = "partial"
    else:
        status = "success"
    logger.info(
        f"Finished score recalculation for tournament {tournament_id}: {summary['message']}"
    )
    return {"status": status, **summary}


def schedule_score_recalculation(tournament):
    task_id = async_task(
        "qualifiers.tasks.scoring.recalculate_qualified_teams_scores",
        tournament.pk,
        task_name=f"qualified_teams_scores_{tournament.pk}",
    )
    logger.info(f"Queued qualified teams score recalculation for {tournament.name}")
    return task_id
