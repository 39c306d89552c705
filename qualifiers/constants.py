# Group stage shape
DIRECT_QUALIFICATION_POSITIONS: int = 2
THIRD_PLACE_POSITION: int = 3

# Predictions close this many days after the tournament starts
PREDICTION_LOCK_DAYS: int = 5

# Default scoring points, used when the tournament leaves them unset
DEFAULT_QUALIFIED_TEAM_POINTS: int = 1
DEFAULT_EXACT_POSITION_POINTS: int = 1

# Client autosave timings (seconds)
DEFAULT_DEBOUNCE_SECONDS: float = 1.0
DEFAULT_SAVED_STATE_SECONDS: float = 2.0

PRODUCTION_ENVIRONMENT: str = "production"
