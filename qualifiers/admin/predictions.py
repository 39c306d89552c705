from django.contrib import admin

from ..models.predictions import GroupPositionPrediction
from .site import grouped_admin_site


@admin.register(GroupPositionPrediction)
class GroupPositionPredictionAdmin(admin.ModelAdmin):
    list_display = ["user", "tournament", "group", "third_place_picks", "updated_at"]
    list_filter = ["tournament"]
    search_fields = ["user__username", "tournament__name"]
    readonly_fields = ["created_at", "updated_at"]
    list_select_related = ["user", "tournament", "group"]

    @admin.display(description="3rd place picks")
    def third_place_picks(self, obj):
        return obj.third_place_qualifier_count()


grouped_admin_site.register(GroupPositionPrediction, GroupPositionPredictionAdmin)
