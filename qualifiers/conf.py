"""
Runtime configuration for the qualifiers app.

Values come from the environment (or a .env file) through python-decouple and
are resolved once, when this module is first imported. Services receive the
resulting ``QualificationSettings`` as an argument so nothing below the
configuration layer reads the environment directly.
"""

from dataclasses import dataclass

from decouple import config

from .constants import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_SAVED_STATE_SECONDS,
    PRODUCTION_ENVIRONMENT,
)


@dataclass(frozen=True)
class QualificationSettings:
    environment: str = PRODUCTION_ENVIRONMENT
    allow_unlocked_editing_for_development_tournaments: bool = False
    propagate_playoff_guesses: bool = True
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    saved_state_seconds: float = DEFAULT_SAVED_STATE_SECONDS

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION_ENVIRONMENT

    def allows_dev_override(self, tournament, edit_mode: bool) -> bool:
        """
        Whether a locked tournament may still be edited.

        Only applies outside production, for tournaments flagged as
        development-only, and when the caller explicitly asked for edit mode.
        """
        return (
            self.allow_unlocked_editing_for_development_tournaments
            and not self.is_production
            and bool(getattr(tournament, "dev_only", False))
            and edit_mode
        )


def load_settings() -> QualificationSettings:
    environment = config("APP_ENVIRONMENT", default=PRODUCTION_ENVIRONMENT)
    allow_override = config(
        "ALLOW_UNLOCKED_EDITING_FOR_DEV_TOURNAMENTS", default=False, cast=bool
    )
    return QualificationSettings(
        environment=environment,
        # Never honoured in production, whatever the environment says
        allow_unlocked_editing_for_development_tournaments=(
            allow_override and environment != PRODUCTION_ENVIRONMENT
        ),
        propagate_playoff_guesses=config(
            "QUALIFIERS_PROPAGATE_PLAYOFF_GUESSES", default=True, cast=bool
        ),
        debounce_seconds=config(
            "QUALIFIERS_DEBOUNCE_SECONDS",
            default=DEFAULT_DEBOUNCE_SECONDS,
            cast=float,
        ),
        saved_state_seconds=config(
            "QUALIFIERS_SAVED_STATE_SECONDS",
            default=DEFAULT_SAVED_STATE_SECONDS,
            cast=float,
        ),
    )


qualification_settings = load_settings()
