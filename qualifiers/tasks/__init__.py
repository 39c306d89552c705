from .playoffs import propagate_group_positions, schedule_playoff_propagation
from .scoring import recalculate_qualified_teams_scores, schedule_score_recalculation

__all__ = [
    "propagate_group_positions",
    "schedule_playoff_propagation",
    "recalculate_qualified_teams_scores",
    "schedule_score_recalculation",
]
