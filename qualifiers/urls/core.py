from django.urls import path

from ..views.qualification import (
    qualification_config_view,
    qualified_teams_score_view,
    update_group_positions_view,
    user_predictions_view,
)

urlpatterns = [
    path(
        "tournaments/<int:tournament_id>/groups/<int:group_id>/positions/",
        update_group_positions_view,
        name="update_group_positions",
    ),
    path(
        "tournaments/<int:tournament_id>/qualification-config/",
        qualification_config_view,
        name="qualification_config",
    ),
    path(
        "tournaments/<int:tournament_id>/qualified-teams/predictions/",
        user_predictions_view,
        name="qualified_teams_predictions",
    ),
    path(
        "tournaments/<int:tournament_id>/qualified-teams/score/",
        qualified_teams_score_view,
        name="qualified_teams_score",
    ),
]
