import logging
from typing import List

from django.conf import settings
from django.db import models

from ..constants import DIRECT_QUALIFICATION_POSITIONS
from ..utils.positions import TeamPositionEntry, entries_from_json, entries_to_json
from ..utils.validation import count_third_place_qualifiers
from .base import TimestampMixin
from .core import Tournament, TournamentGroup

logger = logging.getLogger(__name__)


class GroupPositionPredictionQuerySet(models.QuerySet):
    def for_user(self, user, tournament):
        return (
            self.filter(user=user, tournament=tournament)
            .select_related("group")
            .order_by("group__letter")
        )

    def upsert(self, user, tournament, group, entries):
        """
        Replace the stored positions of one group in a single write.

        Keyed by (user, tournament, group): updates the row if it exists,
        inserts it otherwise.
        """
        prediction, created = self.update_or_create(
            user=user,
            tournament=tournament,
            group=group,
            defaults={"team_positions": entries_to_json(entries)},
        )
        return prediction, created

    def initialize_for_user(self, user, tournament):
        """
        Create the starting prediction for every group the user has none for.

        Teams keep roster order, positions 1-2 are marked as qualifying and
        no third place pick is made.
        """
        existing = set(
            self.filter(user=user, tournament=tournament).values_list(
                "group_id", flat=True
            )
        )
        to_create = []
        for group in tournament.groups.exclude(id__in=existing):
            entries = [
                TeamPositionEntry(
                    team_id=team.id,
                    predicted_position=index + 1,
                    predicted_to_qualify=index < DIRECT_QUALIFICATION_POSITIONS,
                )
                for index, team in enumerate(group.roster())
            ]
            to_create.append(
                self.model(
                    user=user,
                    tournament=tournament,
                    group=group,
                    team_positions=entries_to_json(entries),
                )
            )

        if to_create:
            self.bulk_create(to_create)
            logger.info(
                f"Initialized {len(to_create)} group predictions for user "
                f"{user.pk} in tournament {tournament.pk}"
            )
        return len(to_create)


class GroupPositionPrediction(TimestampMixin):
    """A user's predicted final standings for one group"""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="group_position_predictions",
    )
    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="group_predictions"
    )
    group = models.ForeignKey(
        TournamentGroup, on_delete=models.CASCADE, related_name="predictions"
    )
    team_positions = models.JSONField(
        default=list,
        blank=True,
        help_text="Ordered list of {team_id, predicted_position, predicted_to_qualify}.",
    )

    objects = GroupPositionPredictionQuerySet.as_manager()

    class Meta:
        unique_together = ["user", "tournament", "group"]
        ordering = ["tournament", "user", "group"]

    def __str__(self) -> str:
        return f"{self.user}: {self.group}"

    @property
    def entries(self) -> List[TeamPositionEntry]:
        return entries_from_json(self.team_positions)

    def third_place_qualifier_count(self) -> int:
        return count_third_place_qualifiers(entry.to_update() for entry in self.entries)
