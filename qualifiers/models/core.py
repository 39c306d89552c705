import logging
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

from ..constants import (
    DEFAULT_EXACT_POSITION_POINTS,
    DEFAULT_QUALIFIED_TEAM_POINTS,
    DIRECT_QUALIFICATION_POSITIONS,
    PREDICTION_LOCK_DAYS,
    THIRD_PLACE_POSITION,
)
from .base import ActiveMixin, CompletionMixin, NamedMixin, TimestampMixin

logger = logging.getLogger(__name__)


class Tournament(NamedMixin, ActiveMixin, TimestampMixin):
    """Tournament with a group stage whose qualifiers users predict"""

    slug = models.SlugField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField(null=True, blank=True)
    dev_only = models.BooleanField(
        default=False,
        help_text="Development-only tournament, used for content staging.",
    )

    allows_third_place_qualification = models.BooleanField(default=False)
    max_third_place_qualifiers = models.PositiveIntegerField(default=0)

    qualified_team_points = models.IntegerField(
        null=True,
        blank=True,
        help_text="Points for a qualified team in any position (default 1).",
    )
    exact_position_qualified_points = models.IntegerField(
        null=True,
        blank=True,
        help_text="Bonus points for an exact position match (default 1).",
    )

    class Meta:
        ordering = ["-start_date"]

    @property
    def predictions_deadline(self):
        return self.start_date + timedelta(days=PREDICTION_LOCK_DAYS)

    @property
    def predictions_locked(self) -> bool:
        return not self.is_active or timezone.now() > self.predictions_deadline

    @property
    def base_points(self) -> int:
        if self.qualified_team_points is None:
            return DEFAULT_QUALIFIED_TEAM_POINTS
        return self.qualified_team_points

    @property
    def exact_bonus(self) -> int:
        if self.exact_position_qualified_points is None:
            return DEFAULT_EXACT_POSITION_POINTS
        return self.exact_position_qualified_points

    def save(self, *args, **kwargs):
        if not self.slug:
            base_slug = slugify(self.name)
            slug = base_slug
            counter = 1
            while Tournament.objects.filter(slug=slug).exists():
                slug = f"{base_slug}-{counter}"
                counter += 1
            self.slug = slug
        super().save(*args, **kwargs)


class Team(NamedMixin):
    short_name = models.CharField(max_length=20, blank=True)

    class Meta:
        ordering = ["name"]


class TournamentGroup(CompletionMixin, TimestampMixin):
    """A group of the tournament's group stage"""

    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="groups"
    )
    letter = models.CharField(max_length=5)
    teams = models.ManyToManyField(
        Team, through="TournamentGroupTeam", related_name="tournament_groups"
    )

    class Meta:
        ordering = ["tournament", "letter"]
        unique_together = ["tournament", "letter"]

    def __str__(self) -> str:
        return f"{self.tournament.name} - {self.label}"

    @property
    def label(self) -> str:
        return f"Group {self.letter}"

    def roster(self):
        """Teams of the group in roster order."""
        return [standing.team for standing in self.standings.select_related("team")]

    def save(self, *args, **kwargs):
        if self.pk is not None and not self.is_completed:
            was_completed = (
                TournamentGroup.objects.filter(pk=self.pk, is_completed=True)
                .exists()
            )
            if was_completed:
                raise ValidationError("A completed group cannot be reopened.")
        super().save(*args, **kwargs)

    def record_final_positions(self, positions):
        """
        Record the final standings of the group and mark it complete.

        Args:
            positions (dict): team id -> final position (1-based)
        """
        standings = {s.team_id: s for s in self.standings.all()}
        unknown = set(positions) - set(standings)
        if unknown:
            raise ValidationError(
                f"Teams {sorted(unknown)} are not part of {self.label}"
            )
        if len(set(positions.values())) != len(positions):
            raise ValidationError("Final positions must be unique within a group")

        for team_id, position in positions.items():
            standing = standings[team_id]
            standing.final_position = position
            standing.save(update_fields=["final_position"])

        self.is_completed = True
        self.save()
        logger.info(f"Recorded final positions for {self}")

    def mark_third_place_qualifier(self, qualifies=True):
        """Flag the group's third-placed team as qualified through the bracket."""
        if not self.is_completed:
            raise ValidationError(f"{self.label} is not complete yet")
        try:
            standing = self.standings.get(final_position=THIRD_PLACE_POSITION)
        except TournamentGroupTeam.DoesNotExist:
            raise ValidationError(f"{self.label} has no third placed team")
        standing.qualified_as_third_place = qualifies
        standing.save(update_fields=["qualified_as_third_place"])
        return standing


class TournamentGroupTeam(models.Model):
    """Roster row for a team in a group, carrying its actual standing"""

    group = models.ForeignKey(
        TournamentGroup, on_delete=models.CASCADE, related_name="standings"
    )
    team = models.ForeignKey(
        Team, on_delete=models.CASCADE, related_name="group_memberships"
    )
    final_position = models.PositiveSmallIntegerField(null=True, blank=True)
    qualified_as_third_place = models.BooleanField(default=False)

    class Meta:
        unique_together = ["group", "team"]
        ordering = ["group", "id"]

    def __str__(self) -> str:
        position = self.final_position or "-"
        return f"{self.team.name} ({self.group.label}: {position})"

    @property
    def is_qualified(self) -> bool:
        if self.qualified_as_third_place:
            return True
        return (
            self.group.is_completed
            and self.final_position is not None
            and self.final_position <= DIRECT_QUALIFICATION_POSITIONS
        )
