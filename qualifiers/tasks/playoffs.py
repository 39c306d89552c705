"""
Playoff guess propagation.

Confirmed group positions feed the user's playoff bracket guesses. The
recalculation itself lives outside this app: receivers connect to
``group_positions_confirmed`` and this task only fans the event out from a
django-q worker.
"""

import logging

from django_q.tasks import async_task

from qualifiers.signals import group_positions_confirmed

logger = logging.getLogger(__name__)


def schedule_playoff_propagation(user_id, tournament_id, group_id):
    """Queue propagation for a confirmed group. Never raises."""
    try:
        async_task(
            "qualifiers.tasks.playoffs.propagate_group_positions",
            user_id,
            tournament_id,
            group_id,
            task_name=f"propagate_group_{group_id}_user_{user_id}",
        )
        logger.info(
            f"Scheduled playoff guess propagation for user {user_id}, group {group_id}"
        )
    except Exception as e:
        logger.warning(f"Failed to schedule playoff guess propagation: {e}")


def propagate_group_positions(user_id, tournament_id, group_id):
    responses = group_positions_confirmed.send_robust(
        sender=None,
        user_id=user_id,
        tournament_id=tournament_id,
        group_id=group_id,
    )
    failures = 0
    for receiver, response in responses:
        if isinstance(response, Exception):
            failures += 1
            logger.error(
                f"Playoff guess receiver {receiver!r} failed for user {user_id}: {response}"
            )
    return {
        "status": "success" if not failures else "partial",
        "receivers": len(responses),
        "failures": failures,
    }
