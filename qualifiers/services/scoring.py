"""
Qualified teams scoring.

``calculate_qualified_teams_score`` is read-only and scores one user on
demand. ``calculate_and_store_qualified_teams_scores`` recomputes and stores
the score of every predicting user of a tournament; one user's failure is
recorded and never aborts the batch.
"""

import logging
from typing import Any, Dict

from django.db import transaction

from ..errors import TournamentNotFoundError
from ..models import GroupPositionPrediction, Tournament, UserTournamentScore
from ..utils.scoring import (
    QualifiedTeamsScoringResult,
    ScoringConfig,
    score_group_prediction,
)
from .standings import find_qualified_teams

logger = logging.getLogger(__name__)


def _get_tournament(tournament_id) -> Tournament:
    try:
        return Tournament.objects.get(pk=tournament_id)
    except (Tournament.DoesNotExist, ValueError, TypeError):
        raise TournamentNotFoundError(f"Tournament {tournament_id} not found")


def calculate_qualified_teams_score(
    user_id, tournament_id, actual_results=None
) -> QualifiedTeamsScoringResult:
    """
    Score a user's group predictions against the results known so far.

    Args:
        actual_results: precomputed ``ActualResults``, loaded when omitted

    Raises:
        TournamentNotFoundError: if the tournament does not exist
    """
    tournament = _get_tournament(tournament_id)
    config = ScoringConfig.from_tournament(tournament)
    if actual_results is None:
        actual_results = find_qualified_teams(tournament)

    predictions = GroupPositionPrediction.objects.filter(
        user_id=user_id, tournament=tournament
    ).select_related("group").order_by("group__letter")

    result = QualifiedTeamsScoringResult(
        user_id=user_id, tournament_id=tournament.pk, total_score=0
    )
    for prediction in predictions:
        group_breakdown = score_group_prediction(
            group_id=prediction.group_id,
            group_name=prediction.group.label,
            entries=prediction.entries,
            actual_results=actual_results,
            config=config,
        )
        result.breakdown.append(group_breakdown)
        result.total_score += group_breakdown.points

    return result


def calculate_user_qualified_teams_score(user_id, tournament_id) -> Dict[str, Any]:
    """Single user variant for debugging, reports failures instead of raising."""
    try:
        result = calculate_qualified_teams_score(user_id, tournament_id)
    except Exception as e:
        logger.error(f"Error calculating score for user {user_id}: {e}", exc_info=True)
        return {"success": False, "message": str(e)}
    return {
        "success": True,
        "score": result.total_score,
        "breakdown": result.as_dict()["breakdown"],
    }


def _store_user_score(user_id, tournament, result: QualifiedTeamsScoringResult):
    UserTournamentScore.objects.update_or_create(
        user_id=user_id,
        tournament=tournament,
        defaults={
            "qualified_teams_score": result.total_score,
            "qualified_teams_correct": result.correct_count,
            "qualified_teams_exact": result.exact_count,
            "score_breakdown": result.as_dict()["breakdown"],
        },
    )


def calculate_and_store_qualified_teams_scores(tournament_id) -> Dict[str, Any]:
    """
    Recompute and store the qualified teams score of every predicting user.

    Previously stored scores are reset first so the run is idempotent.
    ``success`` means the batch ran; per-user failures are listed in
    ``errors`` as ``"User <id>: <message>"``.
    """
    try:
        tournament = Tournament.objects.get(pk=tournament_id)
    except (Tournament.DoesNotExist, ValueError, TypeError):
        logger.error(f"Tournament {tournament_id} not found for scoring")
        return {
            "success": False,
            "message": f"Tournament {tournament_id} not found",
            "users_processed": 0,
            "total_score_sum": 0,
            "errors": [f"Tournament not found: {tournament_id}"],
        }

    user_ids = list(
        GroupPositionPrediction.objects.filter(tournament=tournament)
        .order_by("user_id")
        .values_list("user_id", flat=True)
        .distinct()
    )
    if not user_ids:
        return {
            "success": True,
            "message": "No users with predictions found for this tournament",
            "users_processed": 0,
            "total_score_sum": 0,
            "errors": [],
        }

    logger.info(
        f"Calculating qualified teams scores for {len(user_ids)} users in {tournament.name}"
    )
    UserTournamentScore.objects.filter(tournament=tournament).update(
        qualified_teams_score=0,
        qualified_teams_correct=0,
        qualified_teams_exact=0,
        score_breakdown=[],
    )

    actual_results = find_qualified_teams(tournament)
    users_processed = 0
    total_score_sum = 0
    errors = []

    for user_id in user_ids:
        try:
            with transaction.atomic():
                result = calculate_qualified_teams_score(
                    user_id, tournament.pk, actual_results=actual_results
                )
                _store_user_score(user_id, tournament, result)
        except Exception as e:
            errors.append(f"User {user_id}: {e}")
            logger.error(
                f"Error calculating score for user {user_id}: {e}", exc_info=True
            )
            continue
        users_processed += 1
        total_score_sum += result.total_score

    logger.info(
        f"Processed {users_processed} out of {len(user_ids)} users for "
        f"{tournament.name} ({len(errors)} errors)"
    )
    return {
        "success": True,
        "message": f"Processed {users_processed} out of {len(user_ids)} users",
        "users_processed": users_processed,
        "total_score_sum": total_score_sum,
        "errors": errors,
    }
