"""
Optimistic editing of group predictions with debounced autosave.

Edits are applied to an in-memory copy right away and saved group by group
after a quiet period. A confirmed save becomes the new baseline; a rejected
one restores the baseline and keeps the rejected payload for ``retry``.

Lifecycle::

    idle -> pending -> saving -> saved -> idle
                          \\-> error -> idle   (clear_error or successful retry)

Edits are refused while saving, after teardown and while the tournament is
locked.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from django.db import models

from ..conf import qualification_settings
from ..constants import DIRECT_QUALIFICATION_POSITIONS, THIRD_PLACE_POSITION
from ..errors import PersistenceError
from ..utils.positions import PositionUpdate
from ..utils.results import UpdateResult
from .scheduling import ThreadingScheduler

logger = logging.getLogger(__name__)


class SaveState(models.TextChoices):
    IDLE = "idle", "Idle"
    PENDING = "pending", "Pending"
    SAVING = "saving", "Saving"
    SAVED = "saved", "Saved"
    ERROR = "error", "Error"


@dataclass(frozen=True)
class ClientPrediction:
    group_id: int
    team_id: int
    predicted_position: int
    predicted_to_qualify: bool

    @classmethod
    def from_dict(cls, data) -> "ClientPrediction":
        return cls(
            group_id=data["group_id"],
            team_id=data["team_id"],
            predicted_position=int(data["predicted_position"]),
            predicted_to_qualify=bool(data.get("predicted_to_qualify", False)),
        )

    def to_update(self) -> PositionUpdate:
        return PositionUpdate(
            team_id=self.team_id,
            position=self.predicted_position,
            qualifies=self.predicted_to_qualify,
        )


def _as_update(update) -> PositionUpdate:
    if isinstance(update, PositionUpdate):
        return update
    return PositionUpdate(
        team_id=update["team_id"],
        position=int(update["position"]),
        qualifies=bool(update["qualifies"]),
    )


class PredictionStateMachine:
    """
    Client side state of a user's qualification predictions.

    Args:
        tournament_id: tournament the predictions belong to
        initial_predictions: ``ClientPrediction`` objects or dicts with
            ``group_id``, ``team_id``, ``predicted_position`` and
            ``predicted_to_qualify``, as served by the predictions endpoint
        save: callable(group_id, tournament_id, updates) returning an
            ``UpdateResult``, e.g. ``QualificationApiClient.update_group_positions``
        scheduler: clock and timers, a ``ThreadingScheduler`` by default
        settings: ``QualificationSettings`` for the debounce and saved delays
    """

    def __init__(
        self,
        tournament_id,
        initial_predictions,
        save,
        *,
        is_locked: bool = False,
        allows_third_place: bool = False,
        max_third_place: int = 0,
        scheduler=None,
        settings=None,
    ):
        settings = settings or qualification_settings
        self.tournament_id = tournament_id
        self.is_locked = is_locked
        self.allows_third_place = allows_third_place
        self.max_third_place = max_third_place or 0

        self._save = save
        self._scheduler = scheduler or ThreadingScheduler()
        self._debounce_seconds = settings.debounce_seconds
        self._saved_state_seconds = settings.saved_state_seconds
        self._lock = threading.RLock()

        predictions = {}
        for item in initial_predictions:
            if not isinstance(item, ClientPrediction):
                item = ClientPrediction.from_dict(item)
            predictions[item.team_id] = item
        self._predictions: Dict[int, ClientPrediction] = predictions
        self._baseline: Dict[int, ClientPrediction] = dict(predictions)

        self._state = SaveState.IDLE
        self._error: Optional[str] = None
        self._last_saved = None
        # group ids edited since the last save, in edit order
        self._dirty_groups: Dict[int, None] = {}
        self._retained_payload: Optional[Dict[int, List[PositionUpdate]]] = None
        self._debounce_call = None
        self._debounce_token = None
        self._saved_call = None
        self._closed = False

    @property
    def predictions(self) -> Dict[int, ClientPrediction]:
        with self._lock:
            return dict(self._predictions)

    @property
    def save_state(self) -> SaveState:
        return self._state

    @property
    def is_saving(self) -> bool:
        return self._state == SaveState.SAVING

    @property
    def last_saved(self):
        return self._last_saved

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def third_place_count(self) -> int:
        with self._lock:
            return self._count_third_place()

    @property
    def has_retained_payload(self) -> bool:
        return bool(self._retained_payload)

    def group_predictions(self, group_id) -> List[ClientPrediction]:
        with self._lock:
            return self._group_order(group_id)

    # Edits

    def update_position(self, group_id, team_id, new_position: int) -> bool:
        """
        Move a team to ``new_position`` within its group and renumber the rest.

        Positions 1-2 qualify and 4+ do not. A team arriving at 3rd starts
        without a third place pick, a team staying there keeps its pick.
        """
        with self._lock:
            if not self._can_edit():
                return False
            ordered = self._group_order(group_id)
            current = self._predictions.get(team_id)
            if current is None or current not in ordered:
                return False

            old_index = ordered.index(current)
            new_index = min(max(int(new_position), 1), len(ordered)) - 1
            if old_index == new_index:
                return False

            ordered.insert(new_index, ordered.pop(old_index))
            for index, prediction in enumerate(ordered):
                position = index + 1
                self._predictions[prediction.team_id] = replace(
                    prediction,
                    predicted_position=position,
                    predicted_to_qualify=self._qualifies_after_move(
                        prediction, position
                    ),
                )
            self._mark_dirty(group_id)
            return True

    def toggle_third_place(self, team_id) -> bool:
        with self._lock:
            if not self._can_edit() or not self.allows_third_place:
                return False
            prediction = self._predictions.get(team_id)
            if (
                prediction is None
                or prediction.predicted_position != THIRD_PLACE_POSITION
            ):
                return False

            qualifies = not prediction.predicted_to_qualify
            if qualifies and self._count_third_place() >= self.max_third_place:
                logger.info(
                    f"Third place pick for team {team_id} refused, "
                    f"limit of {self.max_third_place} reached"
                )
                return False

            self._predictions[team_id] = replace(
                prediction, predicted_to_qualify=qualifies
            )
            self._mark_dirty(prediction.group_id)
            return True

    def update_group_positions(self, group_id, updates) -> bool:
        """Apply a full group state at once. Teams outside the group are ignored."""
        with self._lock:
            if not self._can_edit():
                return False
            changed = False
            for update in updates:
                update = _as_update(update)
                prediction = self._predictions.get(update.team_id)
                if prediction is None or prediction.group_id != group_id:
                    continue
                self._predictions[update.team_id] = replace(
                    prediction,
                    predicted_position=update.position,
                    predicted_to_qualify=update.qualifies,
                )
                changed = True
            if changed:
                self._mark_dirty(group_id)
            return changed

    # Saving

    def force_save(self) -> bool:
        """
        Save the pending changes now instead of waiting for the debounce.

        After a failed save the retained payload is resubmitted.
        """
        with self._lock:
            self._cancel_debounce()
            resubmit = self._state == SaveState.ERROR and bool(self._retained_payload)
            payload = None if resubmit else self._begin_save()
        if resubmit:
            return self.retry()
        if payload is None:
            return False
        return self._run_save(payload)

    def retry(self) -> bool:
        with self._lock:
            if self._closed or self._state in (SaveState.PENDING, SaveState.SAVING):
                return False
            payload = self._retained_payload
            if not payload:
                self._state = SaveState.IDLE
                self._error = None
                return False
            self._retained_payload = None
            self._error = None
            self._state = SaveState.SAVING
        return self._run_save(payload)

    def clear_error(self):
        with self._lock:
            if self._state in (SaveState.PENDING, SaveState.SAVING):
                return
            self._state = SaveState.IDLE
            self._error = None

    def teardown(self) -> bool:
        """
        Stop all timers and flush pending changes without waiting for the result.

        Pending changes are the unsaved edits plus any payload kept from a
        failed save.

        Returns whether a final save was scheduled.
        """
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            self._cancel_debounce()
            self._cancel_saved_timer()
            payload = dict(self._retained_payload or {})
            payload.update(self._build_payload())
            self._retained_payload = None
            self._dirty_groups.clear()
            if self.is_locked or not payload:
                return False

        self._scheduler.call_later(0, lambda: self._flush(payload))
        return True

    # Internals

    def _can_edit(self) -> bool:
        return not (
            self._closed or self.is_locked or self._state == SaveState.SAVING
        )

    def _group_order(self, group_id) -> List[ClientPrediction]:
        return sorted(
            (p for p in self._predictions.values() if p.group_id == group_id),
            key=lambda p: (p.predicted_position, p.team_id),
        )

    def _count_third_place(self) -> int:
        return sum(
            1
            for p in self._predictions.values()
            if p.predicted_position == THIRD_PLACE_POSITION and p.predicted_to_qualify
        )

    @staticmethod
    def _qualifies_after_move(prediction, position) -> bool:
        if position <= DIRECT_QUALIFICATION_POSITIONS:
            return True
        if position == THIRD_PLACE_POSITION:
            return (
                prediction.predicted_position == THIRD_PLACE_POSITION
                and prediction.predicted_to_qualify
            )
        return False

    def _mark_dirty(self, group_id):
        self._dirty_groups[group_id] = None
        self._retained_payload = None
        self._error = None
        self._state = SaveState.PENDING
        self._cancel_saved_timer()
        self._cancel_debounce()
        token = object()
        self._debounce_token = token
        self._debounce_call = self._scheduler.call_later(
            self._debounce_seconds, lambda: self._on_debounce(token)
        )

    def _cancel_debounce(self):
        # a timer thread that already started cannot be cancelled, the token
        # tells it to stand down
        self._debounce_token = None
        if self._debounce_call is not None:
            self._debounce_call.cancel()
            self._debounce_call = None

    def _cancel_saved_timer(self):
        if self._saved_call is not None:
            self._saved_call.cancel()
            self._saved_call = None

    def _build_payload(self) -> Dict[int, List[PositionUpdate]]:
        return {
            group_id: [p.to_update() for p in self._group_order(group_id)]
            for group_id in self._dirty_groups
        }

    def _begin_save(self):
        if self._closed or self._state != SaveState.PENDING or not self._dirty_groups:
            return None
        payload = self._build_payload()
        self._dirty_groups.clear()
        self._state = SaveState.SAVING
        return payload

    def _on_debounce(self, token):
        with self._lock:
            if token is not self._debounce_token:
                return
            self._debounce_token = None
            self._debounce_call = None
            payload = self._begin_save()
        if payload is not None:
            self._run_save(payload)

    def _on_saved_timeout(self):
        with self._lock:
            self._saved_call = None
            if self._state == SaveState.SAVED:
                self._state = SaveState.IDLE

    def _call_save(self, group_id, updates) -> UpdateResult:
        result = self._save(group_id, self.tournament_id, updates)
        if isinstance(result, dict):
            result = UpdateResult.from_dict(result)
        return result

    @staticmethod
    def _apply(target, group_id, updates):
        for update in updates:
            prediction = target.get(update.team_id)
            if prediction is not None and prediction.group_id == group_id:
                target[update.team_id] = replace(
                    prediction,
                    predicted_position=update.position,
                    predicted_to_qualify=update.qualifies,
                )

    def _run_save(self, payload) -> bool:
        confirmed = {}
        failure = None
        for group_id, updates in payload.items():
            try:
                result = self._call_save(group_id, updates)
            except Exception as e:
                logger.warning(f"Saving group {group_id} failed: {e}", exc_info=True)
                failure = str(e) or PersistenceError.default_message
                break
            if not result.success:
                failure = result.message or PersistenceError.default_message
                logger.warning(
                    f"Saving group {group_id} was rejected: "
                    f"{result.error_code} - {failure}"
                )
                break
            confirmed[group_id] = updates

        with self._lock:
            if self._closed:
                return failure is None
            for group_id, updates in confirmed.items():
                self._apply(self._predictions, group_id, updates)
                self._apply(self._baseline, group_id, updates)

            if failure is None:
                self._baseline = dict(self._predictions)
                self._state = SaveState.SAVED
                self._last_saved = self._scheduler.now()
                self._saved_call = self._scheduler.call_later(
                    self._saved_state_seconds, self._on_saved_timeout
                )
                return True

            self._predictions = dict(self._baseline)
            self._retained_payload = {
                group_id: updates
                for group_id, updates in payload.items()
                if group_id not in confirmed
            }
            self._state = SaveState.ERROR
            self._error = failure
            return False

    def _flush(self, payload):
        for group_id, updates in payload.items():
            try:
                result = self._call_save(group_id, updates)
            except Exception as e:
                logger.warning(
                    f"Final save of group {group_id} failed: {e}", exc_info=True
                )
                continue
            if not result.success:
                logger.warning(
                    f"Final save of group {group_id} was rejected: {result.message}"
                )
