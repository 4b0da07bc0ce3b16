"""
Tests for autosave.py - debounced, validated, non-overlapping saves of the edit form.

Each test drives the controller inside asyncio.run() with short delays.
"""
import asyncio

import pytest

from autosave import AutosaveController, SaveState
from store import ClinicNotFoundError, StoreError
from conftest import RecordingStore, run

DELAY = 0.05
DISPLAY = 0.15
CLINIC_ID = "test-clinic"


def make_store(valid_values, update_delay=0.0):
    return RecordingStore([{"id": CLINIC_ID, **valid_values}], update_delay=update_delay)


def make_controller(store, valid_values, **kwargs):
    kwargs.setdefault("delay", DELAY)
    kwargs.setdefault("saved_display", DISPLAY)
    return AutosaveController(CLINIC_ID, valid_values, store, **kwargs)


# =============================================================================
# TEST: state transitions on edit
# =============================================================================
class TestEditing:

    def test_starts_clean(self, valid_values):
        async def scenario():
            controller = make_controller(make_store(valid_values), valid_values)
            assert controller.state == SaveState.CLEAN
            assert controller.is_dirty is False
            assert controller.values == {k: valid_values.get(k) for k in controller.values}
        run(scenario())

    def test_edit_marks_dirty(self, valid_values):
        async def scenario():
            controller = make_controller(make_store(valid_values), valid_values)
            controller.set_field("name", "Renamed Vet")
            assert controller.state == SaveState.DIRTY
            assert controller.is_dirty is True
            assert controller.values["name"] == "Renamed Vet"
            controller.close()
        run(scenario())

    def test_unknown_field_rejected(self, valid_values):
        async def scenario():
            controller = make_controller(make_store(valid_values), valid_values)
            with pytest.raises(KeyError):
                controller.set_field("verification_status", "verified")
            with pytest.raises(KeyError):
                controller.change_handler("id")
        run(scenario())

    def test_change_handler_sets_field(self, valid_values):
        async def scenario():
            controller = make_controller(make_store(valid_values), valid_values)
            controller.change_handler("city")("Shah Alam")
            assert controller.values["city"] == "Shah Alam"
            controller.close()
        run(scenario())

    def test_values_are_copies(self, valid_values):
        async def scenario():
            controller = make_controller(make_store(valid_values), valid_values)
            controller.values["animals_treated"].append("Cats")
            assert controller.values["animals_treated"] == ["Dogs"]
        run(scenario())


# =============================================================================
# TEST: debounce
# =============================================================================
class TestDebounce:

    def test_burst_of_edits_yields_one_save_after_last_edit(self, valid_values):
        async def scenario():
            loop = asyncio.get_running_loop()
            store = make_store(valid_values)
            controller = make_controller(store, valid_values)

            for i in range(5):
                controller.set_field("name", f"Name {i}")
                await asyncio.sleep(DELAY / 5)
            controller.set_field("name", "Final Name")
            last_edit = loop.time()

            await asyncio.sleep(DELAY * 3)
            assert len(store.update_calls) == 1
            called_at, clinic_id, changes = store.update_calls[0]
            assert clinic_id == CLINIC_ID
            assert changes["name"] == "Final Name"
            assert called_at - last_edit >= DELAY - 0.01
            controller.close()
        run(scenario())

    def test_no_save_before_quiet_period(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values, delay=0.2)
            controller.set_field("name", "Renamed")
            await asyncio.sleep(0.05)
            assert store.update_calls == []
            controller.close()
        run(scenario())

    def test_saved_then_clean(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values)
            controller.set_field("name", "Renamed")
            await asyncio.sleep(DELAY * 1.5)
            assert controller.state == SaveState.SAVED
            assert controller.is_dirty is False
            assert controller.last_saved_at is not None
            await asyncio.sleep(DISPLAY * 2)
            assert controller.state == SaveState.CLEAN
        run(scenario())

    def test_disabled_autosave_never_fires(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "Renamed")
            await asyncio.sleep(DELAY * 3)
            assert store.update_calls == []
            assert controller.state == SaveState.DIRTY
            assert await controller.save() is True
            assert len(store.update_calls) == 1
        run(scenario())

    def test_close_cancels_pending_timer(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values)
            controller.set_field("name", "Renamed")
            controller.close()
            await asyncio.sleep(DELAY * 3)
            assert store.update_calls == []
        run(scenario())


# =============================================================================
# TEST: validation gate
# =============================================================================
class TestValidationGate:

    def test_invalid_draft_never_persists(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values)
            controller.set_field("city", "")
            await asyncio.sleep(DELAY * 3)
            assert store.update_calls == []
            assert controller.state == SaveState.ERROR
            assert controller.is_dirty is True
            assert controller.get_field_error("city") == "City is required"
        run(scenario())

    def test_manual_save_with_blank_city(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("city", "")
            assert await controller.save() is False
            assert store.update_calls == []
            assert [e.field for e in controller.errors] == ["city"]
        run(scenario())

    def test_fixing_the_error_autosaves_on_next_cycle(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values)
            controller.set_field("city", "")
            await asyncio.sleep(DELAY * 2)
            assert controller.state == SaveState.ERROR

            controller.set_field("city", "Klang")
            assert controller.state == SaveState.ERROR
            await asyncio.sleep(DELAY * 2)
            assert len(store.update_calls) == 1
            assert controller.errors == []
            assert controller.state in (SaveState.SAVED, SaveState.CLEAN)
            controller.close()
        run(scenario())


# =============================================================================
# TEST: mutual exclusion
# =============================================================================
class TestInFlightSaves:

    def test_manual_save_refused_while_saving(self, valid_values):
        async def scenario():
            store = make_store(valid_values, update_delay=0.1)
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "First")
            first = asyncio.ensure_future(controller.save())
            await asyncio.sleep(0)
            assert controller.is_saving
            assert controller.state == SaveState.SAVING
            assert await controller.save() is False
            assert await first is True
            assert len(store.update_calls) == 1
        run(scenario())

    def test_edit_during_save_goes_out_in_next_cycle(self, valid_values):
        async def scenario():
            store = make_store(valid_values, update_delay=DELAY * 2)
            controller = make_controller(store, valid_values)
            controller.set_field("name", "First")
            await asyncio.sleep(DELAY * 1.2)
            assert controller.is_saving

            controller.set_field("name", "Second")
            assert controller.state == SaveState.SAVING
            await asyncio.sleep(DELAY * 1.2)
            # Debounce fired mid-save; it must not start an overlapping call
            assert len(store.update_calls) == 1
            assert store.update_calls[0][2]["name"] == "First"

            await asyncio.sleep(DELAY * 6)
            assert len(store.update_calls) == 2
            assert store.update_calls[1][2]["name"] == "Second"
            assert store.update_calls[1][0] >= store.update_calls[0][0] + DELAY * 2
            controller.close()
        run(scenario())

    def test_state_after_save_with_pending_edit_is_dirty(self, valid_values):
        async def scenario():
            store = make_store(valid_values, update_delay=0.05)
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "First")
            pending = asyncio.ensure_future(controller.save())
            await asyncio.sleep(0)
            controller.set_field("name", "Second")
            assert await pending is True
            assert controller.state == SaveState.DIRTY
            assert controller.is_dirty is True
            assert controller.snapshot["name"] == "First"
        run(scenario())


# =============================================================================
# TEST: store failures
# =============================================================================
class TestSaveFailures:

    def test_transport_failure_keeps_draft_dirty(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            store.fail_with = StoreError("gateway timeout")
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "Renamed")
            assert await controller.save() is False
            assert controller.state == SaveState.ERROR
            assert controller.is_dirty is True
            assert controller.values["name"] == "Renamed"
            assert controller.save_error == "gateway timeout"
            assert controller.not_found is False

            store.fail_with = None
            assert await controller.save() is True
            assert controller.state == SaveState.SAVED
            assert controller.save_error is None
        run(scenario())

    def test_unexpected_store_exception_returns_to_error(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            store.fail_with = ConnectionError("socket closed")
            controller = make_controller(store, valid_values)
            controller.set_field("name", "Renamed")
            await asyncio.sleep(DELAY * 2)
            assert controller.state == SaveState.ERROR
            assert controller.is_saving is False
            assert controller.is_dirty is True
            assert controller.save_error == "Failed to save clinic"

            # Debounce retries from the error state
            store.fail_with = None
            controller.set_field("name", "Renamed again")
            await asyncio.sleep(DELAY * 2)
            assert len(store.update_calls) == 2
            assert controller.state in (SaveState.SAVED, SaveState.CLEAN)
            assert controller.save_error is None
            controller.close()
        run(scenario())

    def test_manual_save_after_unexpected_exception(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            store.fail_with = RuntimeError("adapter bug")
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "Renamed")
            assert await controller.save() is False
            assert controller.state == SaveState.ERROR

            store.fail_with = None
            assert await controller.save() is True
            assert controller.state == SaveState.SAVED
        run(scenario())

    def test_not_found_is_reported_distinctly(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            await store.delete(CLINIC_ID)
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "Renamed")
            assert await controller.save() is False
            assert controller.not_found is True
            assert controller.state == SaveState.ERROR
            assert controller.is_dirty is True
        run(scenario())

    def test_load_missing_clinic_raises_not_found(self, valid_values):
        async def scenario():
            with pytest.raises(ClinicNotFoundError):
                await AutosaveController.load(make_store(valid_values), "nope")
        run(scenario())


# =============================================================================
# TEST: reset / load
# =============================================================================
class TestReset:

    def test_reset_restores_snapshot_and_clears_errors(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "One")
            controller.set_field("city", "")
            controller.set_field("animals_treated", ["Birds"])
            await controller.save()
            assert controller.errors

            assert controller.reset() is True
            assert controller.values == controller.snapshot
            assert controller.values["name"] == valid_values["name"]
            assert controller.errors == []
            assert controller.state == SaveState.CLEAN
            assert controller.is_dirty is False
        run(scenario())

    def test_reset_after_save_uses_saved_values(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values, enabled=False)
            controller.set_field("name", "Saved Name")
            assert await controller.save() is True
            controller.set_field("name", "Unsaved Name")
            controller.reset()
            assert controller.values["name"] == "Saved Name"
        run(scenario())

    def test_reset_cancels_pending_autosave(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = make_controller(store, valid_values)
            controller.set_field("name", "Renamed")
            controller.reset()
            await asyncio.sleep(DELAY * 3)
            assert store.update_calls == []
        run(scenario())

    def test_load_builds_controller_from_store(self, valid_values):
        async def scenario():
            store = make_store(valid_values)
            controller = await AutosaveController.load(store, CLINIC_ID, delay=DELAY)
            assert controller.values["name"] == valid_values["name"]
            assert controller.values["hours"] == valid_values["hours"]
            assert controller.state == SaveState.CLEAN
        run(scenario())
