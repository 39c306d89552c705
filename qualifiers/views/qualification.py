"""
JSON views for qualification predictions.

Errors are returned as ``{"success": false, "message", "error": {"code",
"message"}}`` with an HTTP status derived from the error code.
"""

import json

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from ..conf import qualification_settings
from ..errors import (
    ErrorCode,
    InvalidDataError,
    QualificationPredictionError,
    UnauthorizedError,
)
from ..forms import parse_updates
from ..models import Tournament
from ..services.qualification import (
    get_tournament_qualification_config,
    load_user_predictions,
    update_group_positions,
)
from ..services.scoring import calculate_qualified_teams_score
from ..services.users import get_logged_in_user
from ..utils.results import UpdateResult

ERROR_STATUS = {
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.TOURNAMENT_LOCKED: 403,
    ErrorCode.TOURNAMENT_NOT_FOUND: 404,
    ErrorCode.DATABASE_ERROR: 500,
}


def status_for(code) -> int:
    if code is None:
        return 200
    return ERROR_STATUS.get(code, 400)


def _error_response(error: QualificationPredictionError) -> JsonResponse:
    result = UpdateResult.from_error(error)
    return JsonResponse(result.as_dict(), status=status_for(error.code))


def _edit_mode_requested(value) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


@require_POST
def update_group_positions_view(request, tournament_id, group_id):
    """
    Replace the user's predicted standings for one group.

    Expects JSON body:
    {
        "updates": [{"team_id": 1, "position": 1, "qualifies": true}, ...],
        "edit_mode": false  // optional
    }
    """
    user = get_logged_in_user(request)
    if user is None:
        return _error_response(UnauthorizedError())

    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error_response(InvalidDataError("Invalid JSON"))
    if not isinstance(data, dict):
        return _error_response(InvalidDataError("Expected a JSON object"))

    try:
        updates = parse_updates(data.get("updates", []))
    except InvalidDataError as error:
        return _error_response(error)

    result = update_group_positions(
        user,
        group_id,
        tournament_id,
        updates,
        edit_mode=_edit_mode_requested(data.get("edit_mode", False)),
    )
    return JsonResponse(result.as_dict(), status=status_for(result.error_code))


@require_GET
def qualification_config_view(request, tournament_id):
    try:
        config = get_tournament_qualification_config(tournament_id)
    except QualificationPredictionError as error:
        return _error_response(error)
    return JsonResponse(config.as_dict())


@require_GET
def user_predictions_view(request, tournament_id):
    """
    The user's predictions, one row per team, created on the first visit.

    ``config.is_locked`` already accounts for the development edit override
    (``?edit_mode=true``).
    """
    user = get_logged_in_user(request)
    if user is None:
        return _error_response(UnauthorizedError())

    try:
        config = get_tournament_qualification_config(tournament_id)
        predictions = load_user_predictions(user, tournament_id)
    except QualificationPredictionError as error:
        return _error_response(error)

    config_data = config.as_dict()
    if config.is_locked and _edit_mode_requested(request.GET.get("edit_mode")):
        tournament = Tournament.objects.get(pk=tournament_id)
        if qualification_settings.allows_dev_override(tournament, edit_mode=True):
            config_data["is_locked"] = False

    return JsonResponse(
        {
            "tournament_id": int(tournament_id),
            "config": config_data,
            "predictions": predictions,
        }
    )


@require_GET
def qualified_teams_score_view(request, tournament_id):
    user = get_logged_in_user(request)
    if user is None:
        return _error_response(UnauthorizedError())

    try:
        result = calculate_qualified_teams_score(user.pk, tournament_id)
    except QualificationPredictionError as error:
        return _error_response(error)
    return JsonResponse(result.as_dict())
