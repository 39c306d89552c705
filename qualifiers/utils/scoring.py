"""
Progressive scoring of qualified-team predictions.

Each predicted team is scored on its own against the actual results known so
far. The decision table below is evaluated top to bottom and the first
matching row wins:

=====================================================  ==============  ===============================
Condition                                              Points          Reason
=====================================================  ==============  ===============================
not qualified, group has no position data              0               group_not_complete
not qualified                                          0               not_qualified
qualified, actual position unknown                     0               qualified_no_position_data
predicted 3rd without qualifying, team qualified       0               qualified_but_not_predicted
qualified, exact position                              base + bonus    exact_match
qualified, other position                              base            wrong_position
=====================================================  ==============  ===============================
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from django.db import models

from ..constants import (
    DEFAULT_EXACT_POSITION_POINTS,
    DEFAULT_QUALIFIED_TEAM_POINTS,
    THIRD_PLACE_POSITION,
)


class ScoringReason(models.TextChoices):
    GROUP_NOT_COMPLETE = "group_not_complete", "Group not complete"
    NOT_QUALIFIED = "not_qualified", "Did not qualify"
    QUALIFIED_NO_POSITION_DATA = (
        "qualified_no_position_data",
        "Qualified, but no position data",
    )
    QUALIFIED_BUT_NOT_PREDICTED = (
        "qualified_but_not_predicted",
        "Qualified, but was not predicted to qualify",
    )
    EXACT_MATCH = "exact_match", "Qualified in the exact position"
    WRONG_POSITION = "wrong_position", "Qualified in a different position"


@dataclass(frozen=True)
class ScoringConfig:
    base_points: int = DEFAULT_QUALIFIED_TEAM_POINTS
    exact_bonus: int = DEFAULT_EXACT_POSITION_POINTS

    @classmethod
    def from_tournament(cls, tournament) -> "ScoringConfig":
        return cls(base_points=tournament.base_points, exact_bonus=tournament.exact_bonus)

    @property
    def max_points(self) -> int:
        return self.base_points + self.exact_bonus


@dataclass
class TeamScoringResult:
    team_id: int
    team_name: str
    group_id: int
    predicted_position: int
    actual_position: Optional[int]
    predicted_to_qualify: bool
    actually_qualified: bool
    points_awarded: int
    reason: str


@dataclass
class GroupScoringBreakdown:
    group_id: int
    group_name: str
    teams: List[TeamScoringResult] = field(default_factory=list)

    @property
    def points(self) -> int:
        return sum(team.points_awarded for team in self.teams)


@dataclass
class QualifiedTeamsScoringResult:
    user_id: Any
    tournament_id: Any
    total_score: int
    breakdown: List[GroupScoringBreakdown] = field(default_factory=list)

    def _teams(self):
        for group in self.breakdown:
            yield from group.teams

    @property
    def correct_count(self) -> int:
        """Teams predicted to qualify that did qualify."""
        return sum(
            1
            for team in self._teams()
            if team.predicted_to_qualify and team.actually_qualified
        )

    @property
    def exact_count(self) -> int:
        return sum(
            1
            for team in self._teams()
            if team.reason == ScoringReason.EXACT_MATCH
        )

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_team_points(
    predicted_position: int,
    predicted_to_qualify: bool,
    actually_qualified: bool,
    actual_position: Optional[int],
    group_has_positions: bool,
    config: ScoringConfig,
) -> Tuple[int, str]:
    """Points and reason tag for one predicted team."""
    if not actually_qualified:
        if not group_has_positions:
            return 0, ScoringReason.GROUP_NOT_COMPLETE.value
        return 0, ScoringReason.NOT_QUALIFIED.value

    if actual_position is None:
        return 0, ScoringReason.QUALIFIED_NO_POSITION_DATA.value

    if predicted_position == THIRD_PLACE_POSITION and not predicted_to_qualify:
        return 0, ScoringReason.QUALIFIED_BUT_NOT_PREDICTED.value

    if predicted_position == actual_position:
        return config.base_points + config.exact_bonus, ScoringReason.EXACT_MATCH.value

    return config.base_points, ScoringReason.WRONG_POSITION.value


def score_group_prediction(
    group_id, group_name, entries, actual_results, config: ScoringConfig
) -> GroupScoringBreakdown:
    """
    Score every entry of one stored group prediction, keeping stored order.

    Args:
        entries: iterable of ``TeamPositionEntry``
        actual_results: ``services.standings.ActualResults``
    """
    breakdown = GroupScoringBreakdown(group_id=group_id, group_name=group_name)
    for entry in entries:
        actually_qualified = actual_results.is_qualified(entry.team_id)
        actual_position = actual_results.actual_position(entry.team_id)
        points, reason = calculate_team_points(
            predicted_position=entry.predicted_position,
            predicted_to_qualify=entry.predicted_to_qualify,
            actually_qualified=actually_qualified,
            actual_position=actual_position,
            group_has_positions=actual_results.group_has_positions(group_id),
            config=config,
        )
        breakdown.teams.append(
            TeamScoringResult(
                team_id=entry.team_id,
                team_name=actual_results.team_names.get(entry.team_id, "Unknown Team"),
                group_id=group_id,
                predicted_position=entry.predicted_position,
                actual_position=actual_position,
                predicted_to_qualify=entry.predicted_to_qualify,
                actually_qualified=actually_qualified,
                points_awarded=points,
                reason=reason,
            )
        )
    return breakdown
