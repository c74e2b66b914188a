"""Exactly-once execution of mutating steps across resumed invocations.

The scheduler re-enters the whole pipeline every time an operation is still
in progress. A step with a non-idempotent external effect (a modify call, a
reboot) must therefore remember that it already ran. It does so through a
named flag in the ``CallbackContext``, which the scheduler persists between
invocations.

Flags are monotonic: they go from False to True once and are never cleared by
the core. Only a fresh context (a logically new operation) starts over.

Example:
    >>> pipeline = Pipeline([Step("modify", once("updated", modify_instance))])
    >>> first = pipeline.run(ProgressEvent.progress(model, ctx))   # modify runs
    >>> again = pipeline.run(ProgressEvent.progress(model, ctx))   # skipped
"""

from __future__ import annotations

from typing import Callable, TypeVar

from resource_spine.core.logging import EventSink, get_logger
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.orchestration.translate import handle_exception
from resource_spine.rules.rule_set import ErrorRuleSet

logger = get_logger(__name__)

ModelT = TypeVar("ModelT")
StepFn = Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]


def exec_once(
    progress: ProgressEvent[ModelT],
    step_fn: StepFn,
    get_flag: Callable[[CallbackContext], bool],
    set_flag: Callable[[CallbackContext, bool], None],
    *,
    rule_set: ErrorRuleSet | None = None,
    sink: EventSink | None = None,
) -> ProgressEvent[ModelT]:
    """
    Run ``step_fn`` unless ``get_flag`` says it already ran.

    Already done: the input record is returned, in progress. Otherwise the
    step runs and, unless it failed, ``set_flag(context, True)`` records it.
    A fault raised by the step is classified with ``rule_set`` first, so an
    ignored fault still counts as done.
    """
    if get_flag(progress.callback_context):
        return progress.as_in_progress()
    try:
        result = step_fn(progress)
    except Exception as exc:  # noqa: BLE001
        result = handle_exception(progress, exc, rule_set, sink=sink)
    if not result.is_failed():
        set_flag(result.callback_context, True)
    return result


def once(
    flag: str,
    step_fn: StepFn,
    *,
    rule_set: ErrorRuleSet | None = None,
    sink: EventSink | None = None,
) -> StepFn:
    """Pipeline step running ``step_fn`` at most once per logical operation."""
    sink = sink or logger

    def get_flag(context: CallbackContext) -> bool:
        return context.is_done(flag)

    def set_flag(context: CallbackContext, value: bool) -> None:
        context.set_flag(flag, value)

    def run_once(progress: ProgressEvent[ModelT]) -> ProgressEvent[ModelT]:
        if get_flag(progress.callback_context):
            sink.debug("step_already_done", flag=flag)
        return exec_once(progress, step_fn, get_flag, set_flag, rule_set=rule_set, sink=sink)

    run_once.__name__ = f"once[{flag}]"
    return run_once


__all__ = ["exec_once", "once"]
