from django.contrib import admin, messages

from ..models.scoring import UserTournamentScore
from .site import grouped_admin_site


@admin.register(UserTournamentScore)
class UserTournamentScoreAdmin(admin.ModelAdmin):
    list_display = (
        "user",
        "tournament",
        "qualified_teams_score",
        "qualified_teams_correct",
        "qualified_teams_exact",
        "is_final",
    )
    list_filter = ("is_final", "tournament")
    search_fields = ("user__username", "tournament__name")
    readonly_fields = ("score_breakdown",)
    actions = ["mark_scores_final"]

    @admin.action(description="Mark selected scores as final")
    def mark_scores_final(self, request, queryset):
        updated = queryset.update(is_final=True)
        self.message_user(
            request,
            f"{updated} tournament scores were successfully marked as final.",
            messages.SUCCESS,
        )


grouped_admin_site.register(UserTournamentScore, UserTournamentScoreAdmin)
