"""
Admin configuration for the qualifiers app.

Models are registered on the default admin site and on ``grouped_admin_site``.
"""
from .site import grouped_admin_site
from .core import TeamAdmin, TournamentAdmin, TournamentGroupAdmin
from .predictions import GroupPositionPredictionAdmin
from .scoring import UserTournamentScoreAdmin
from . import django_q  # noqa: F401

__all__ = [
    "grouped_admin_site",
    "TournamentAdmin",
    "TeamAdmin",
    "TournamentGroupAdmin",
    "GroupPositionPredictionAdmin",
    "UserTournamentScoreAdmin",
]
