from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from ..models.core import Team, Tournament, TournamentGroup, TournamentGroupTeam
from ..tasks.scoring import schedule_score_recalculation
from .site import grouped_admin_site


class TournamentGroupInline(admin.TabularInline):
    model = TournamentGroup
    extra = 0
    fields = ("letter", "is_completed")
    ordering = ["letter"]
    show_change_link = True


class TournamentGroupTeamInline(admin.TabularInline):
    model = TournamentGroupTeam
    extra = 0
    fields = ("team", "final_position", "qualified_as_third_place")


@admin.register(Tournament)
class TournamentAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "start_date",
        "is_active",
        "dev_only",
        "allows_third_place_qualification",
        "max_third_place_qualifiers",
        "predictions_locked",
    ]
    list_filter = ["is_active", "dev_only", "allows_third_place_qualification"]
    search_fields = ["name", "description"]
    date_hierarchy = "start_date"
    ordering = ["-start_date"]
    readonly_fields = ["slug"]
    inlines = [TournamentGroupInline]
    actions = ["recalculate_qualified_teams_scores"]

    @admin.display(boolean=True, description="Locked")
    def predictions_locked(self, obj):
        return obj.predictions_locked

    @admin.action(description="Recalculate qualified teams scores")
    def recalculate_qualified_teams_scores(self, request, queryset):
        for tournament in queryset:
            try:
                schedule_score_recalculation(tournament)
            except Exception as e:
                self.message_user(
                    request,
                    f"Failed to queue score recalculation for '{tournament.name}': {e}",
                    messages.ERROR,
                )
                continue
            self.message_user(
                request,
                f"Queued qualified teams score recalculation for '{tournament.name}'.",
                messages.SUCCESS,
            )


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ["name", "short_name"]
    search_fields = ["name", "short_name"]


@admin.register(TournamentGroup)
class TournamentGroupAdmin(admin.ModelAdmin):
    list_display = ["__str__", "tournament", "is_completed"]
    list_filter = ["is_completed", "tournament"]
    inlines = [TournamentGroupTeamInline]
    actions = ["mark_third_place_qualifiers"]

    @admin.action(description="Mark third placed teams as qualified")
    def mark_third_place_qualifiers(self, request, queryset):
        for group in queryset:
            try:
                standing = group.mark_third_place_qualifier()
            except ValidationError as e:
                self.message_user(request, f"{group}: {e.messages[0]}", messages.WARNING)
                continue
            self.message_user(
                request,
                f"{standing.team.name} qualified as third of {group.label}.",
                messages.SUCCESS,
            )


grouped_admin_site.register(Tournament, TournamentAdmin)
grouped_admin_site.register(Team, TeamAdmin)
grouped_admin_site.register(TournamentGroup, TournamentGroupAdmin)
