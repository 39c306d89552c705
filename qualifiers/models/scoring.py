from django.conf import settings
from django.db import models

from .base import TimestampMixin
from .core import Tournament


class UserTournamentScore(TimestampMixin, models.Model):
    """Stored qualified-teams score for a user in a tournament."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE)
    tournament = models.ForeignKey(
        Tournament, on_delete=models.CASCADE, related_name="user_scores"
    )
    qualified_teams_score = models.IntegerField(default=0)
    qualified_teams_correct = models.IntegerField(default=0)
    qualified_teams_exact = models.IntegerField(default=0)
    score_breakdown = models.JSONField(
        default=list,
        blank=True,
        help_text="Detailed breakdown of how points were scored.",
    )
    is_final = models.BooleanField(default=False)

    class Meta:
        unique_together = ("user", "tournament")
        ordering = ["tournament", "-qualified_teams_score"]

    def __str__(self) -> str:
        return f"{self.user} - {self.tournament}: {self.qualified_teams_score}"
