from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from qualifiers.models import (
    GroupPositionPrediction,
    Team,
    Tournament,
    TournamentGroup,
    TournamentGroupTeam,
)
from qualifiers.utils.positions import PositionUpdate

User = get_user_model()


def full_batch(teams, third_qualifies=False):
    """Updates placing ``teams`` in the given order, 1st and 2nd qualifying."""
    return [
        PositionUpdate(
            team_id=team.id,
            position=index + 1,
            qualifies=index < 2 or (index == 2 and third_qualifies),
        )
        for index, team in enumerate(teams)
    ]


class QualifiersDataMixin:
    """Helpers creating tournaments with 4-team groups."""

    def create_tournament(self, **kwargs):
        defaults = {
            "name": "Test Cup",
            "start_date": timezone.now() - timedelta(days=1),
            "allows_third_place_qualification": True,
            "max_third_place_qualifiers": 1,
        }
        defaults.update(kwargs)
        return Tournament.objects.create(**defaults)

    def create_group(self, tournament, letter):
        group = TournamentGroup.objects.create(tournament=tournament, letter=letter)
        teams = []
        for index in range(4):
            team = Team.objects.create(
                name=f"Team {letter}{index + 1}", short_name=f"{letter}{index + 1}"
            )
            TournamentGroupTeam.objects.create(group=group, team=team)
            teams.append(team)
        return group, teams

    def create_user(self, username="player"):
        return User.objects.create_user(username=username, password="secret")


class ScoringDataMixin(QualifiersDataMixin):
    """
    Group A is complete (A1, A2, A3, A4), group B has no results yet.
    Alice predicts both groups in roster order, Bob swaps A1/A2 and picks A3.
    """

    def setUp(self):
        self.tournament = self.create_tournament(
            qualified_team_points=2, exact_position_qualified_points=1
        )
        self.group_a, self.teams_a = self.create_group(self.tournament, "A")
        self.group_b, self.teams_b = self.create_group(self.tournament, "B")
        self.alice = self.create_user("alice")
        self.bob = self.create_user("bob")

        self.predict(self.alice, self.group_a, full_batch(self.teams_a))
        self.predict(self.alice, self.group_b, full_batch(self.teams_b))
        a1, a2, a3, a4 = self.teams_a
        self.predict(
            self.bob, self.group_a, full_batch([a2, a1, a3, a4], third_qualifies=True)
        )

        self.group_a.record_final_positions(
            {team.id: index + 1 for index, team in enumerate(self.teams_a)}
        )

    def predict(self, user, group, batch):
        GroupPositionPrediction.objects.upsert(
            user, self.tournament, group, [update.to_entry() for update in batch]
        )

    def reasons(self, result, group_index):
        return [team.reason for team in result.breakdown[group_index].teams]

