"""
Rule checks for a batch of group position updates.

Each check is a plain function that raises the matching
``QualificationPredictionError`` subclass and returns nothing on success.
The checks are pure: everything they need from storage is passed in, which
lets ``validate_group_batch`` run them in order without touching the database.

Order matters, each check assumes the previous ones passed:

1. team membership       -> InvalidTeamGroupError
2. duplicate teams       -> DuplicateTeamsError
3. position range/unique -> InvalidPositionError / DuplicatePositionsError
4. qualification flags   -> InvalidQualificationFlagError
5. third place cap       -> ThirdPlaceNotAllowedError / TooManyThirdPlaceError
"""

from collections import Counter
from dataclasses import dataclass
from typing import Collection, Iterable, Sequence

from ..constants import DIRECT_QUALIFICATION_POSITIONS, THIRD_PLACE_POSITION
from ..errors import (
    DuplicatePositionsError,
    DuplicateTeamsError,
    InvalidPositionError,
    InvalidQualificationFlagError,
    InvalidTeamGroupError,
    ThirdPlaceNotAllowedError,
    TooManyThirdPlaceError,
    TournamentLockedError,
    UnauthorizedError,
)
from .positions import PositionUpdate


@dataclass(frozen=True)
class GroupValidationContext:
    """What the checks need to know about the group and tournament."""

    group_id: int
    roster_team_ids: Collection[int]
    allows_third_place: bool
    max_third_place: int
    other_groups_third_place_count: int = 0


def require_authenticated(user):
    user_id = getattr(user, "pk", None) if user is not None else None
    if not user_id or not getattr(user, "is_authenticated", False):
        raise UnauthorizedError()
    return user_id


def check_not_locked(is_locked: bool, override_allowed: bool = False):
    if is_locked and not override_allowed:
        raise TournamentLockedError()


def check_team_membership(
    updates: Sequence[PositionUpdate], roster_team_ids: Collection[int], group_id
):
    roster = set(roster_team_ids)
    for update in updates:
        if update.team_id not in roster:
            raise InvalidTeamGroupError(update.team_id, group_id)


def check_unique_teams(updates: Sequence[PositionUpdate]):
    counts = Counter(update.team_id for update in updates)
    duplicated = sorted(team_id for team_id, count in counts.items() if count > 1)
    if duplicated:
        raise DuplicateTeamsError(
            f"Teams {duplicated} appear more than once in the same group"
        )


def check_positions(updates: Sequence[PositionUpdate]):
    if any(update.position < 1 for update in updates):
        raise InvalidPositionError()

    seen = set()
    for update in updates:
        if update.position in seen:
            raise DuplicatePositionsError(update.position)
        seen.add(update.position)


def check_qualification_flags(updates: Sequence[PositionUpdate]):
    for update in updates:
        if update.position <= DIRECT_QUALIFICATION_POSITIONS and not update.qualifies:
            raise InvalidQualificationFlagError()
        if update.position > THIRD_PLACE_POSITION and update.qualifies:
            raise InvalidQualificationFlagError(
                f"Team in position {update.position} cannot be marked as qualifying"
            )


def count_third_place_qualifiers(updates: Iterable[PositionUpdate]) -> int:
    return sum(
        1
        for update in updates
        if update.position == THIRD_PLACE_POSITION and update.qualifies
    )


def check_third_place_cap(
    updates: Sequence[PositionUpdate],
    allows_third_place: bool,
    max_third_place: int,
    other_groups_count: int,
):
    """
    The cap applies tournament-wide: the batch's third place qualifiers plus
    the ones already stored for the user's other groups.
    """
    if not allows_third_place:
        if any(
            update.position >= THIRD_PLACE_POSITION and update.qualifies
            for update in updates
        ):
            raise ThirdPlaceNotAllowedError()
        return

    new_count = count_third_place_qualifiers(updates)
    if other_groups_count + new_count > (max_third_place or 0):
        raise TooManyThirdPlaceError(max_third_place, other_groups_count, new_count)


def validate_group_batch(
    updates: Sequence[PositionUpdate], context: GroupValidationContext
):
    """Run every batch-level check in order, raising on the first failure."""
    check_team_membership(updates, context.roster_team_ids, context.group_id)
    check_unique_teams(updates)
    check_positions(updates)
    check_qualification_flags(updates)
    check_third_place_cap(
        updates,
        context.allows_third_place,
        context.max_third_place,
        context.other_groups_third_place_count,
    )
