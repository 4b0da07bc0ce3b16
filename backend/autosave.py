# Autosave controller for the admin clinic edit form
from __future__ import annotations

import asyncio
import copy
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config import get_autosave_delay_seconds, get_saved_display_seconds
from models import EDITABLE_FIELDS, editable_values
from store import ClinicNotFoundError, ClinicStore, StoreError
from validation import FieldError, errors_by_field, validate_clinic

logger = logging.getLogger(__name__)


class SaveState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class AutosaveController:
    """
    Owns the editable draft of one clinic.

    Edits re-arm a trailing-edge debounce timer; when it fires the draft is
    validated and, if valid, written with a single store.update() call.
    At most one save is in flight. A timer that fires during a save is
    deferred: it re-arms once that save resolves, so edits made mid-save go
    out in the next cycle.

    Must be driven from inside a running asyncio event loop.
    """

    def __init__(
        self,
        clinic_id: str,
        values: Dict[str, Any],
        store: ClinicStore,
        delay: Optional[float] = None,
        saved_display: Optional[float] = None,
        enabled: bool = True,
        validator: Callable[[Dict[str, Any]], List[FieldError]] = validate_clinic,
    ):
        self.clinic_id = clinic_id
        self.enabled = enabled
        self.delay = get_autosave_delay_seconds() if delay is None else delay
        self.saved_display = get_saved_display_seconds() if saved_display is None else saved_display
        self._store = store
        self._validator = validator

        self._values: Dict[str, Any] = {name: copy.deepcopy(values.get(name)) for name in EDITABLE_FIELDS}
        self._snapshot: Dict[str, Any] = copy.deepcopy(self._values)
        self._dirty = False
        self.state = SaveState.CLEAN
        self._errors: List[FieldError] = []
        self.save_error: Optional[str] = None
        self.not_found = False
        self.last_saved_at: Optional[datetime] = None

        self._timer: Optional[asyncio.TimerHandle] = None
        self._revert_timer: Optional[asyncio.TimerHandle] = None
        self._save_task: Optional[asyncio.Task] = None
        self._deferred_fire = False
        self._edited_during_save = False
        self._closed = False

    @classmethod
    async def load(cls, store: ClinicStore, clinic_id: str, **kwargs) -> "AutosaveController":
        """Load a clinic into a fresh controller. Store errors propagate to the caller."""
        clinic = await store.select_by_id(clinic_id)
        return cls(clinic.id, editable_values(clinic), store, **kwargs)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def values(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    @property
    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._snapshot)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_saving(self) -> bool:
        return self._save_task is not None

    @property
    def errors(self) -> List[FieldError]:
        return list(self._errors)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors) or self.save_error is not None

    def get_field_error(self, field: str) -> Optional[str]:
        return errors_by_field(self._errors).get(field)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def set_field(self, name: str, value: Any) -> None:
        if name not in EDITABLE_FIELDS:
            raise KeyError(name)
        self._values[name] = copy.deepcopy(value)
        self._dirty = True

        if self.state in (SaveState.CLEAN, SaveState.SAVED):
            self._cancel_revert()
            self.state = SaveState.DIRTY
        elif self.state == SaveState.SAVING:
            self._edited_during_save = True

        self._arm()

    def change_handler(self, name: str) -> Callable[[Any], None]:
        """Per-field callback for form inputs"""
        if name not in EDITABLE_FIELDS:
            raise KeyError(name)
        return lambda value: self.set_field(name, value)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    async def save(self) -> bool:
        """
        Save now, bypassing the debounce timer.
        Returns True when the draft was persisted; False when a save is
        already in flight, nothing is pending, validation failed or the
        store call failed.
        """
        if self.is_saving or self.state not in (SaveState.DIRTY, SaveState.ERROR):
            return False
        self._cancel_timer()
        task = self._start_save()
        if task is None:
            return False
        return await task

    def reset(self) -> bool:
        """Restore the last loaded-or-saved snapshot and clear errors"""
        if self.is_saving:
            return False
        self._cancel_timer()
        self._cancel_revert()
        self._values = copy.deepcopy(self._snapshot)
        self._dirty = False
        self._errors = []
        self.save_error = None
        self.not_found = False
        self.state = SaveState.CLEAN
        return True

    def close(self) -> None:
        """Stop pending timers when the edit view goes away. An in-flight save still completes."""
        self._closed = True
        self._cancel_timer()
        self._cancel_revert()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _arm(self) -> None:
        self._cancel_timer()
        if not self.enabled or self._closed:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _cancel_revert(self) -> None:
        if self._revert_timer is not None:
            self._revert_timer.cancel()
            self._revert_timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self.is_saving:
            self._deferred_fire = True
            return
        if self._dirty and self.state in (SaveState.DIRTY, SaveState.ERROR):
            self._start_save()

    def _start_save(self) -> Optional[asyncio.Task]:
        errors = self._validator(self._values)
        if errors:
            self._errors = list(errors)
            self.save_error = None
            self.state = SaveState.ERROR
            logger.debug("Autosave blocked for clinic %s: %d validation error(s)", self.clinic_id, len(errors))
            return None

        self._errors = []
        self.save_error = None
        self.not_found = False
        self.state = SaveState.SAVING
        self._edited_during_save = False
        captured = copy.deepcopy(self._values)
        self._save_task = asyncio.get_running_loop().create_task(self._persist(captured))
        return self._save_task

    async def _persist(self, captured: Dict[str, Any]) -> bool:
        ok = False
        try:
            await self._store.update(self.clinic_id, captured)
        except ClinicNotFoundError as exc:
            self.not_found = True
            self.save_error = str(exc)
            self.state = SaveState.ERROR
            logger.warning("Clinic %s no longer exists; draft kept", self.clinic_id)
        except StoreError as exc:
            self.save_error = str(exc) or "Failed to save clinic"
            self.state = SaveState.ERROR
            logger.warning("Saving clinic %s failed: %s", self.clinic_id, exc)
        except Exception:
            # Store adapters may raise outside the StoreError hierarchy
            self.save_error = "Failed to save clinic"
            self.state = SaveState.ERROR
            logger.exception("Unexpected error saving clinic %s", self.clinic_id)
        else:
            ok = True
            self._snapshot = captured
            self.last_saved_at = datetime.now(timezone.utc)
            logger.info("Saved clinic %s", self.clinic_id)
            if self._edited_during_save:
                self.state = SaveState.DIRTY
            else:
                self._dirty = False
                self.state = SaveState.SAVED
                self._schedule_revert()
        finally:
            self._save_task = None
            if self._deferred_fire:
                self._deferred_fire = False
                if self._dirty:
                    self._arm()
        return ok

    def _schedule_revert(self) -> None:
        if self._closed:
            return
        loop = asyncio.get_running_loop()
        self._revert_timer = loop.call_later(self.saved_display, self._revert_to_clean)

    def _revert_to_clean(self) -> None:
        self._revert_timer = None
        if self.state == SaveState.SAVED:
            self.state = SaveState.CLEAN
