"""
Typed errors raised by the qualification prediction pipeline.

Every error carries a human-readable ``message`` and a stable machine-readable
``code``; callers branch on the code, never on the message.
"""


class ErrorCode:
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_DATA = "INVALID_DATA"
    TOURNAMENT_NOT_FOUND = "TOURNAMENT_NOT_FOUND"
    TOURNAMENT_LOCKED = "TOURNAMENT_LOCKED"
    INVALID_TEAM_GROUP = "INVALID_TEAM_GROUP"
    DUPLICATE_TEAMS = "DUPLICATE_TEAMS"
    INVALID_POSITION = "INVALID_POSITION"
    DUPLICATE_POSITION = "DUPLICATE_POSITION"
    INVALID_QUALIFICATION_FLAG = "INVALID_QUALIFICATION_FLAG"
    THIRD_PLACE_NOT_ALLOWED = "THIRD_PLACE_NOT_ALLOWED"
    MAX_THIRD_PLACE_EXCEEDED = "MAX_THIRD_PLACE_EXCEEDED"
    DATABASE_ERROR = "DATABASE_ERROR"


class QualificationPredictionError(Exception):
    """Base exception for the qualification prediction pipeline."""

    code = ErrorCode.INVALID_DATA
    default_message = "Invalid prediction data."

    def __init__(self, message=None, code=None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def as_dict(self):
        return {"code": self.code, "message": self.message}


class UnauthorizedError(QualificationPredictionError):
    code = ErrorCode.UNAUTHORIZED
    default_message = "You must be logged in to update predictions"


class InvalidDataError(QualificationPredictionError):
    code = ErrorCode.INVALID_DATA


class TournamentNotFoundError(QualificationPredictionError):
    code = ErrorCode.TOURNAMENT_NOT_FOUND
    default_message = "Tournament not found"


class TournamentLockedError(QualificationPredictionError):
    code = ErrorCode.TOURNAMENT_LOCKED
    default_message = "Predictions are locked for this tournament"


class InvalidTeamGroupError(QualificationPredictionError):
    code = ErrorCode.INVALID_TEAM_GROUP

    def __init__(self, team_id, group_id):
        self.team_id = team_id
        self.group_id = group_id
        super().__init__(f"Team {team_id} does not belong to group {group_id}")


class DuplicateTeamsError(QualificationPredictionError):
    code = ErrorCode.DUPLICATE_TEAMS
    default_message = "Each team can only appear once per group"


class InvalidPositionError(QualificationPredictionError):
    code = ErrorCode.INVALID_POSITION
    default_message = "Predicted position must be at least 1"


class DuplicatePositionsError(QualificationPredictionError):
    code = ErrorCode.DUPLICATE_POSITION

    def __init__(self, position):
        self.position = position
        super().__init__(
            f"Position {position} is assigned to multiple teams in the same group"
        )


class InvalidQualificationFlagError(QualificationPredictionError):
    code = ErrorCode.INVALID_QUALIFICATION_FLAG
    default_message = "Teams in positions 1-2 must be marked as qualifying"


class ThirdPlaceNotAllowedError(QualificationPredictionError):
    code = ErrorCode.THIRD_PLACE_NOT_ALLOWED
    default_message = "This tournament does not allow third place qualifiers"


class TooManyThirdPlaceError(QualificationPredictionError):
    code = ErrorCode.MAX_THIRD_PLACE_EXCEEDED

    def __init__(self, max_allowed, existing_count, new_count):
        self.max_allowed = max_allowed
        self.existing_count = existing_count
        self.new_count = new_count
        super().__init__(
            f"Maximum {max_allowed} third place qualifiers allowed. "
            f"You currently have {existing_count} selected. "
            f"Adding {new_count} would exceed the limit."
        )


class PersistenceError(QualificationPredictionError):
    code = ErrorCode.DATABASE_ERROR
    default_message = "Failed to save predictions. Please try again."
