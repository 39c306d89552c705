from .core import (
    Team,
    Tournament,
    TournamentGroup,
    TournamentGroupTeam,
)
from .predictions import GroupPositionPrediction
from .scoring import UserTournamentScore

__all__ = [
    "Tournament",
    "Team",
    "TournamentGroup",
    "TournamentGroupTeam",
    "GroupPositionPrediction",
    "UserTournamentScore",
]
