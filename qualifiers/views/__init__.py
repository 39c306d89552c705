from .qualification import (
    qualification_config_view,
    qualified_teams_score_view,
    update_group_positions_view,
    user_predictions_view,
)

__all__ = [
    "qualification_config_view",
    "qualified_teams_score_view",
    "update_group_positions_view",
    "user_predictions_view",
]
