"""Tests for bounded, non-blocking stabilization."""

import pytest

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.orchestration.delays import ConstantDelay, NoDelay
from resource_spine.orchestration.probing import (
    OnExhausted,
    await_stable,
    probe_exhausted,
    stabilize,
    stable_flag,
)
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.testing import client_error


def _answers(*values):
    """Predicate returning ``values`` in order and counting its calls."""
    calls = []

    def predicate(*args):
        calls.append(args)
        return values[len(calls) - 1]

    return predicate, calls


class TestAwaitStable:
    """The probe primitive."""

    def test_false_false_true_scenario(self, context):
        predicate, calls = _answers(False, False, True)
        assert await_stable(context, "p", 3, predicate) is False
        assert await_stable(context, "p", 3, predicate) is False
        assert await_stable(context, "p", 3, predicate) is True
        assert len(calls) == 3
        assert context.probe_count("p") == 3

    def test_exhausted_returns_false_without_evaluating(self, context):
        predicate, calls = _answers(False, False, True)
        await_stable(context, "p", 2, predicate)
        await_stable(context, "p", 2, predicate)
        assert await_stable(context, "p", 2, predicate) is False
        assert len(calls) == 2
        assert probe_exhausted(context, "p", 2)

    def test_counters_are_per_probe(self, context):
        await_stable(context, "a", 1, lambda: False)
        assert await_stable(context, "b", 1, lambda: True) is True

    def test_bound_survives_serialization(self):
        context = CallbackContext()
        await_stable(context, "p", 2, lambda: False)
        restored = CallbackContext.from_dict(context.to_dict())
        await_stable(restored, "p", 2, lambda: False)
        assert await_stable(restored, "p", 2, lambda: True) is False

    def test_rejects_zero_attempts(self, context):
        with pytest.raises(ValueError):
            await_stable(context, "p", 0, lambda: True)

    def test_predicate_fault_propagates(self, context):
        def predicate():
            raise client_error("Throttling")

        with pytest.raises(Exception):
            await_stable(context, "p", 3, predicate)
        assert context.probe_count("p") == 1


class TestStabilize:
    """The stabilization pipeline step."""

    def _progress(self, context=None):
        return ProgressEvent.progress({"id": "db-1"}, context or CallbackContext())

    def test_stable_marks_flag_and_continues(self, sink):
        step = stabilize("p", lambda p: True, sink=sink)
        result = step(self._progress())
        assert result.is_in_progress()
        assert not result.is_suspended()
        assert result.callback_context.is_done(stable_flag("p"))
        assert "resource_stabilized" in sink.events()

    def test_not_stable_suspends_with_delay(self):
        step = stabilize("p", lambda p: False, delay_policy=ConstantDelay(delay=45))
        result = step(self._progress())
        assert result.is_suspended()
        assert result.callback_delay_seconds == 45

    def test_zero_delay_still_suspends(self):
        step = stabilize("p", lambda p: False, delay_policy=NoDelay())
        assert step(self._progress()).callback_delay_seconds == 1

    def test_stable_step_does_not_probe_again(self):
        predicate, calls = _answers(True)
        step = stabilize("p", predicate)
        context = CallbackContext()
        step(self._progress(context))
        step(self._progress(context))
        assert len(calls) == 1

    def test_exhausted_fails_with_not_stabilized(self):
        step = stabilize("p", lambda p: False, max_attempts=2)
        context = CallbackContext()
        assert step(self._progress(context)).is_suspended()
        result = step(self._progress(context))
        assert result.error_code is HandlerErrorCode.NOT_STABILIZED
        assert "after 2 attempts" in result.message

    def test_exhausted_ignore_continues(self, sink):
        step = stabilize("p", lambda p: False, max_attempts=1, on_exhausted=OnExhausted.IGNORE, sink=sink)
        result = step(self._progress())
        assert result.is_in_progress()
        assert not result.is_suspended()
        assert "stabilization_abandoned" in sink.events()

    def test_probing_disabled_is_pass_through(self):
        predicate, calls = _answers(False)
        progress = self._progress()
        assert stabilize("p", predicate, probing_enabled=False)(progress) is progress
        assert calls == []

    def test_predicate_fault_is_classified(self):
        def predicate(progress):
            raise client_error("Throttling")

        result = stabilize("p", predicate)(self._progress())
        assert result.error_code is HandlerErrorCode.THROTTLING

    def test_three_invocations_scenario(self):
        """Negative, negative, positive across serialized invocations."""
        predicate, calls = _answers(False, False, True)
        step = stabilize("p", predicate, max_attempts=3)
        context = CallbackContext()
        statuses = []
        for _ in range(3):
            result = step(self._progress(context))
            statuses.append(result.is_suspended())
            context = CallbackContext.from_dict(result.callback_context.to_dict())
        assert statuses == [True, True, False]
        assert len(calls) == 3

    def test_named_after_probe(self):
        assert stabilize("x", lambda p: True).__name__ == "stabilize[x]"
