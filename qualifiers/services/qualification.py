"""
Qualification prediction update service.

Orchestrates a group batch write: resolve the tournament configuration,
run the validation pipeline, upsert the group's positions and trigger
playoff guess propagation once the write is committed.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from django.db import DatabaseError, transaction

from ..conf import qualification_settings
from ..errors import (
    InvalidDataError,
    PersistenceError,
    QualificationPredictionError,
    TournamentNotFoundError,
)
from ..models import (
    GroupPositionPrediction,
    Tournament,
    TournamentGroup,
    TournamentGroupTeam,
)
from ..utils.positions import PositionUpdate
from ..utils.results import UpdateResult
from ..utils.validation import (
    GroupValidationContext,
    check_not_locked,
    require_authenticated,
    validate_group_batch,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualificationConfig:
    allows_third_place: bool
    max_third_place: int
    is_locked: bool

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _get_tournament(tournament_id) -> Tournament:
    try:
        return Tournament.objects.get(pk=tournament_id)
    except (Tournament.DoesNotExist, ValueError, TypeError):
        raise TournamentNotFoundError()


def _coerce_update(update) -> PositionUpdate:
    if isinstance(update, PositionUpdate):
        return update
    try:
        qualifies = update["qualifies"]
        if not isinstance(qualifies, bool):
            raise InvalidDataError(f"Invalid qualifies flag: {qualifies!r}")
        return PositionUpdate(
            team_id=int(update["team_id"]),
            position=int(update["position"]),
            qualifies=qualifies,
        )
    except (KeyError, TypeError, ValueError):
        raise InvalidDataError(f"Malformed position update: {update!r}")


def get_tournament_qualification_config(tournament_id) -> QualificationConfig:
    """
    Read the qualification rules of a tournament for validation and UI gating.

    Raises:
        TournamentNotFoundError: if the tournament does not exist
    """
    return _config_for(_get_tournament(tournament_id))


def _config_for(tournament) -> QualificationConfig:
    return QualificationConfig(
        allows_third_place=tournament.allows_third_place_qualification,
        max_third_place=tournament.max_third_place_qualifiers or 0,
        is_locked=tournament.predictions_locked,
    )


def _count_other_groups_third_place(user, tournament, group_id) -> int:
    siblings = (
        GroupPositionPrediction.objects.select_for_update()
        .filter(user=user, tournament=tournament)
        .exclude(group_id=group_id)
    )
    return sum(prediction.third_place_qualifier_count() for prediction in siblings)


def _validate_and_write(user, group_id, tournament_id, updates, edit_mode, settings):
    tournament = _get_tournament(tournament_id)
    config = _config_for(tournament)
    check_not_locked(
        config.is_locked, settings.allows_dev_override(tournament, edit_mode)
    )

    roster_team_ids = list(
        TournamentGroupTeam.objects.filter(
            group_id=group_id, group__tournament=tournament
        ).values_list("team_id", flat=True)
    )
    context = GroupValidationContext(
        group_id=group_id,
        roster_team_ids=roster_team_ids,
        allows_third_place=config.allows_third_place,
        max_third_place=config.max_third_place,
        other_groups_third_place_count=_count_other_groups_third_place(
            user, tournament, group_id
        ),
    )
    validate_group_batch(updates, context)

    group = TournamentGroup.objects.get(pk=group_id, tournament=tournament)
    entries = [update.to_entry() for update in updates]
    try:
        with transaction.atomic():
            GroupPositionPrediction.objects.upsert(user, tournament, group, entries)
    except DatabaseError as e:
        logger.error(
            f"Error saving group positions for user {user.pk}, group {group_id}: {e}",
            exc_info=True,
        )
        raise PersistenceError()
    return tournament, group


def update_group_positions(
    user,
    group_id,
    tournament_id,
    updates,
    *,
    edit_mode: bool = False,
    settings=None,
    on_confirmed=None,
) -> UpdateResult:
    """
    Validate and store the full new state of one group for a user.

    ``updates`` holds every team of the group, as ``PositionUpdate`` objects
    or ``{"team_id", "position", "qualifies"}`` dicts. Nothing is written
    unless every check passes; the write replaces the group's positions in a
    single upsert.

    Args:
        user: the acting user (as resolved by ``get_logged_in_user``)
        edit_mode: caller asked to edit a locked development tournament
        settings: ``QualificationSettings``, defaults to the app settings
        on_confirmed: callable(user_id, tournament_id, group_id) run after
            commit, defaults to playoff guess propagation

    Returns:
        UpdateResult: ``success`` plus either a message or the typed error
    """
    settings = settings or qualification_settings
    if on_confirmed is None and settings.propagate_playoff_guesses:
        from ..tasks.playoffs import schedule_playoff_propagation

        on_confirmed = schedule_playoff_propagation

    try:
        user_id = require_authenticated(user)
        updates = [_coerce_update(update) for update in updates or []]
        if not updates:
            return UpdateResult(success=True, message="No predictions to update")

        with transaction.atomic():
            tournament, group = _validate_and_write(
                user, group_id, tournament_id, updates, edit_mode, settings
            )
            if on_confirmed is not None:
                transaction.on_commit(
                    lambda: on_confirmed(user_id, tournament.pk, group.pk)
                )
    except QualificationPredictionError as error:
        logger.warning(
            f"Rejected group positions update for group {group_id}: "
            f"{error.code} - {error.message}"
        )
        return UpdateResult.from_error(error)
    except DatabaseError as e:
        logger.error(f"Error updating group positions: {e}", exc_info=True)
        return UpdateResult.from_error(PersistenceError())

    count = len(updates)
    logger.info(
        f"User {user_id} updated {count} positions for group {group_id} "
        f"in tournament {tournament_id}"
    )
    return UpdateResult(
        success=True,
        message=f"Successfully updated {count} prediction{'' if count == 1 else 's'}",
    )


def load_user_predictions(user, tournament_id, initialize: bool = True) -> List[Dict]:
    """
    Flattened predictions of a user, one dict per team.

    On the first visit the user's group predictions are created from the
    roster (see ``GroupPositionPrediction.objects.initialize_for_user``).
    """
    tournament = _get_tournament(tournament_id)
    if initialize:
        GroupPositionPrediction.objects.initialize_for_user(user, tournament)

    flattened = []
    for prediction in GroupPositionPrediction.objects.for_user(user, tournament):
        for entry in prediction.entries:
            flattened.append(
                {
                    "group_id": prediction.group_id,
                    "team_id": entry.team_id,
                    "predicted_position": entry.predicted_position,
                    "predicted_to_qualify": entry.predicted_to_qualify,
                }
            )
    return flattened
