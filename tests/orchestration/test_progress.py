"""Tests for ProgressEvent and CallbackContext."""

from dataclasses import dataclass

from resource_spine.core.enums import HandlerErrorCode, OperationStatus
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent


@dataclass
class Model:
    name: str


class TestCallbackContext:
    """Tests for flags, probe counters and persistence."""

    def test_fresh_context_is_empty(self):
        ctx = CallbackContext()
        assert ctx.is_done("updated") is False
        assert ctx.probe_count("probe") == 0

    def test_mark_done(self):
        ctx = CallbackContext()
        ctx.mark_done("updated")
        assert ctx.is_done("updated")

    def test_flags_are_monotonic(self):
        ctx = CallbackContext()
        ctx.set_flag("updated", True)
        ctx.set_flag("updated", False)
        assert ctx.is_done("updated") is True

    def test_false_flag_on_unset_name(self):
        ctx = CallbackContext()
        ctx.set_flag("updated", False)
        assert ctx.is_done("updated") is False

    def test_increment_probe(self):
        ctx = CallbackContext()
        assert ctx.increment_probe("p") == 1
        assert ctx.increment_probe("p") == 2
        assert ctx.probe_count("p") == 2

    def test_round_trip_through_dict(self):
        ctx = CallbackContext()
        ctx.mark_done("updated")
        ctx.increment_probe("p")
        restored = CallbackContext.from_dict(ctx.to_dict())
        assert restored == ctx

    def test_from_none_is_fresh(self):
        assert CallbackContext.from_dict(None) == CallbackContext()

    def test_from_partial_dict(self):
        restored = CallbackContext.from_dict({"flags": {"rebooted": True}})
        assert restored.is_done("rebooted")
        assert restored.probes == {}


class TestProgressEventFactories:
    """Tests for constructors and predicates."""

    def test_progress(self):
        event = ProgressEvent.progress(Model("a"), CallbackContext())
        assert event.status is OperationStatus.IN_PROGRESS
        assert event.is_in_progress()
        assert not event.is_terminal()
        assert not event.is_suspended()

    def test_success_is_terminal(self):
        event = ProgressEvent.success(Model("a"), CallbackContext())
        assert event.is_success()
        assert event.is_terminal()

    def test_failed_carries_code_and_message(self):
        event = ProgressEvent.failed(Model("a"), CallbackContext(), HandlerErrorCode.NOT_FOUND, "gone")
        assert event.is_failed()
        assert event.is_terminal()
        assert event.error_code is HandlerErrorCode.NOT_FOUND
        assert event.message == "gone"

    def test_failed_message_defaults_to_code(self):
        event = ProgressEvent.failed(Model("a"), CallbackContext(), HandlerErrorCode.THROTTLING)
        assert event.message == "Throttling"

    def test_in_progress_with_delay_is_suspended(self):
        event = ProgressEvent.in_progress_with_delay(Model("a"), CallbackContext(), 30)
        assert event.is_suspended()
        assert event.callback_delay_seconds == 30

    def test_negative_delay_clamped(self):
        event = ProgressEvent.in_progress_with_delay(Model("a"), CallbackContext(), -5)
        assert event.callback_delay_seconds == 0


class TestProgressEventDerivation:
    """Derived records are new objects sharing the context."""

    def test_with_model_does_not_mutate(self):
        original = ProgressEvent.progress(Model("a"), CallbackContext())
        changed = original.with_model(Model("b"))
        assert original.resource_model.name == "a"
        assert changed.resource_model.name == "b"
        assert changed.callback_context is original.callback_context

    def test_with_output(self):
        original = ProgressEvent.progress(Model("a"), CallbackContext())
        changed = original.with_output("defaults", {"x": 1})
        assert changed.outputs == {"defaults": {"x": 1}}
        assert original.outputs == {}

    def test_as_in_progress_clears_error_and_delay(self):
        failed = ProgressEvent.failed(Model("a"), CallbackContext(), HandlerErrorCode.THROTTLING)
        resumed = failed.as_in_progress()
        assert resumed.is_in_progress()
        assert resumed.error_code is None
        assert resumed.message is None
        assert resumed.callback_delay_seconds == 0

    def test_then_applies_step(self):
        event = ProgressEvent.progress(Model("a"), CallbackContext())
        assert event.then(lambda p: p.with_model(Model("b"))).resource_model.name == "b"

    def test_then_short_circuits_on_failure(self):
        calls = []
        failed = ProgressEvent.failed(Model("a"), CallbackContext(), HandlerErrorCode.NOT_FOUND)
        result = failed.then(lambda p: calls.append(p) or p)
        assert result is failed
        assert calls == []

    def test_then_short_circuits_when_suspended(self):
        suspended = ProgressEvent.in_progress_with_delay(Model("a"), CallbackContext(), 10)
        assert suspended.then(lambda p: ProgressEvent.success(p.resource_model, p.callback_context)) is suspended


class TestProgressEventSerialization:
    def test_to_dict_in_progress(self):
        ctx = CallbackContext()
        ctx.mark_done("updated")
        payload = ProgressEvent.in_progress_with_delay(Model("a"), ctx, 30).to_dict()
        assert payload == {
            "status": "IN_PROGRESS",
            "callbackDelaySeconds": 30,
            "resourceModel": {"name": "a"},
            "callbackContext": {"flags": {"updated": True}, "probes": {}},
        }

    def test_to_dict_failed(self):
        payload = ProgressEvent.failed(Model("a"), CallbackContext(), HandlerErrorCode.NOT_FOUND, "gone").to_dict()
        assert payload["status"] == "FAILED"
        assert payload["errorCode"] == "NotFound"
        assert payload["message"] == "gone"

    def test_to_dict_uses_model_to_dict(self):
        class Wire:
            def to_dict(self):
                return {"Id": "x"}

        payload = ProgressEvent.success(Wire(), CallbackContext()).to_dict()
        assert payload["resourceModel"] == {"Id": "x"}
