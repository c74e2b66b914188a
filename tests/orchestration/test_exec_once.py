"""Tests for the exactly-once step wrapper."""

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.orchestration.exec_once import exec_once, once
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.rules.rule_set import ErrorRuleSet
from resource_spine.rules.status import fail_with, ignore
from resource_spine.testing import client_error


def _flag_accessors(name):
    return (lambda ctx: ctx.is_done(name)), (lambda ctx, value: ctx.set_flag(name, value))


class TestExecOnce:
    def test_runs_and_sets_flag(self):
        calls = []
        get_flag, set_flag = _flag_accessors("updated")
        progress = ProgressEvent.progress({}, CallbackContext())
        exec_once(progress, lambda p: calls.append(1) or p, get_flag, set_flag)
        assert calls == [1]
        assert progress.callback_context.is_done("updated")

    def test_skips_when_flag_set(self):
        calls = []
        get_flag, set_flag = _flag_accessors("updated")
        ctx = CallbackContext(flags={"updated": True})
        progress = ProgressEvent.progress({}, ctx)
        result = exec_once(progress, lambda p: calls.append(1) or p, get_flag, set_flag)
        assert calls == []
        assert result.is_in_progress()
        assert result.resource_model is progress.resource_model

    def test_failed_step_leaves_flag_unset(self):
        get_flag, set_flag = _flag_accessors("updated")
        progress = ProgressEvent.progress({}, CallbackContext())
        result = exec_once(
            progress,
            lambda p: ProgressEvent.failed(p.resource_model, p.callback_context, HandlerErrorCode.THROTTLING),
            get_flag,
            set_flag,
        )
        assert result.is_failed()
        assert not progress.callback_context.is_done("updated")

    def test_suspended_step_sets_flag(self):
        get_flag, set_flag = _flag_accessors("updated")
        progress = ProgressEvent.progress({}, CallbackContext())
        exec_once(progress, lambda p: p.with_delay(30), get_flag, set_flag)
        assert progress.callback_context.is_done("updated")

    def test_ignored_fault_sets_flag(self):
        calls = []

        def step(progress):
            calls.append(1)
            raise client_error("DBInstanceAlreadyExists")

        rule_set = ErrorRuleSet.builder().with_error_codes(ignore(), "DBInstanceAlreadyExists").build()
        get_flag, set_flag = _flag_accessors("created")
        ctx = CallbackContext()
        result = exec_once(ProgressEvent.progress({}, ctx), step, get_flag, set_flag, rule_set=rule_set)
        assert result.is_in_progress()
        assert ctx.is_done("created")
        exec_once(ProgressEvent.progress({}, ctx), step, get_flag, set_flag, rule_set=rule_set)
        assert calls == [1]

    def test_failing_fault_is_returned_not_raised(self, sink):
        def step(progress):
            raise client_error("ThrottlingException")

        get_flag, set_flag = _flag_accessors("created")
        ctx = CallbackContext()
        result = exec_once(ProgressEvent.progress({}, ctx), step, get_flag, set_flag, sink=sink)
        assert result.error_code is HandlerErrorCode.THROTTLING
        assert not ctx.is_done("created")
        assert "fault_classified" in sink.events()


class TestOnce:
    def test_named_after_flag(self):
        assert once("rebooted", lambda p: p).__name__ == "once[rebooted]"

    def test_runs_at_most_once_across_invocations(self, sink):
        calls = []
        step = once("updated", lambda p: calls.append(1) or p, sink=sink)
        ctx = CallbackContext()
        step(ProgressEvent.progress({}, ctx))
        step(ProgressEvent.progress({}, ctx))
        step(ProgressEvent.progress({}, ctx))
        assert calls == [1]
        assert sink.events().count("step_already_done") == 2

    def test_independent_flags(self):
        calls = []
        ctx = CallbackContext()
        once("a", lambda p: calls.append("a") or p)(ProgressEvent.progress({}, ctx))
        once("b", lambda p: calls.append("b") or p)(ProgressEvent.progress({}, ctx))
        assert calls == ["a", "b"]

    def test_rule_set_passed_through(self):
        def step(progress):
            raise client_error("InvalidParameterValue")

        rule_set = ErrorRuleSet.builder().with_error_codes(fail_with("NotUpdatable"), "InvalidParameterValue").build()
        result = once("updated", step, rule_set=rule_set)(ProgressEvent.progress({}, CallbackContext()))
        assert result.error_code is HandlerErrorCode.NOT_UPDATABLE
