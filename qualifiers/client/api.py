import logging
from typing import Any, Dict, List

import requests

from ..errors import PersistenceError
from ..utils.positions import PositionUpdate
from ..utils.results import UpdateResult

logger = logging.getLogger(__name__)


class QualificationApiClient:
    """
    HTTP client for the qualification prediction endpoints.

    ``update_group_positions`` matches the save callable expected by
    ``PredictionStateMachine``.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session = None,
        timeout: int = 10,
        edit_mode: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.edit_mode = edit_mode

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        csrf_token = self.session.cookies.get("csrftoken")
        if csrf_token:
            headers["X-CSRFToken"] = csrf_token
        return headers

    def _get(self, path: str):
        response = self.session.get(
            self._url(path), headers=self._headers(), timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def update_group_positions(self, group_id, tournament_id, updates) -> UpdateResult:
        payload = {
            "updates": [
                update.as_dict() if isinstance(update, PositionUpdate) else dict(update)
                for update in updates
            ],
            "edit_mode": self.edit_mode,
        }
        try:
            response = self.session.post(
                self._url(f"tournaments/{tournament_id}/groups/{group_id}/positions/"),
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to reach qualification API: {e}")
            return UpdateResult.from_error(PersistenceError())
        except ValueError:
            logger.error(
                f"Qualification API returned {response.status_code}: {response.text[:200]}"
            )
            return UpdateResult.from_error(PersistenceError())

        return UpdateResult.from_dict(data)

    def get_qualification_config(self, tournament_id) -> Dict[str, Any]:
        return self._get(f"tournaments/{tournament_id}/qualification-config/")

    def get_predictions(self, tournament_id) -> List[Dict[str, Any]]:
        return self._get(f"tournaments/{tournament_id}/qualified-teams/predictions/")[
            "predictions"
        ]

    def get_score(self, tournament_id) -> Dict[str, Any]:
        return self._get(f"tournaments/{tournament_id}/qualified-teams/score/")
