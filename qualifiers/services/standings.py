from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from ..models import TournamentGroupTeam


@dataclass(frozen=True)
class QualifiedTeamActual:
    team_id: int
    group_id: int
    final_position: Optional[int]
    team_name: str = ""


@dataclass
class ActualResults:
    """
    Progressive view of the tournament's actual outcome.

    ``qualified`` covers 1st/2nd of completed groups plus third placed teams
    once the playoff bracket takes them. A team missing from ``positions``
    has no final standing yet.
    """

    qualified: Dict[int, QualifiedTeamActual] = field(default_factory=dict)
    positions: Dict[int, int] = field(default_factory=dict)
    groups_with_positions: Set[int] = field(default_factory=set)
    team_names: Dict[int, str] = field(default_factory=dict)

    def is_qualified(self, team_id) -> bool:
        return team_id in self.qualified

    def actual_position(self, team_id) -> Optional[int]:
        return self.positions.get(team_id)

    def group_has_positions(self, group_id) -> bool:
        return group_id in self.groups_with_positions


def find_qualified_teams(tournament) -> ActualResults:
    results = ActualResults()
    standings = TournamentGroupTeam.objects.filter(
        group__tournament=tournament
    ).select_related("group", "team")

    for standing in standings:
        results.team_names[standing.team_id] = standing.team.name
        if standing.final_position is not None:
            results.positions[standing.team_id] = standing.final_position
            results.groups_with_positions.add(standing.group_id)
        if standing.is_qualified:
            results.qualified[standing.team_id] = QualifiedTeamActual(
                team_id=standing.team_id,
                group_id=standing.group_id,
                final_position=standing.final_position,
                team_name=standing.team.name,
            )
    return results
