"""Outcome Translator — turn a classified fault into the next Progress Record.

A fault raised by an external call is caught at the step boundary where the
call was made, classified through the step's rule set and converted here:

=============== ==========================================================
Outcome         Next record
=============== ==========================================================
Ignore          IN_PROGRESS, model and context unchanged, no error fields
FailWith(code)  FAILED with ``code`` and the fault's description
anything else   FAILED with ``InternalError``
=============== ==========================================================

The translator never mutates the record it is given.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.core.errors import error_code_of, error_message_of
from resource_spine.core.logging import EventSink, get_logger
from resource_spine.orchestration.progress import ProgressEvent
from resource_spine.rules.defaults import DEFAULT_ERROR_RULE_SET
from resource_spine.rules.rule_set import ErrorRuleSet, classify
from resource_spine.rules.status import ErrorStatus, FailWith, Ignore

logger = get_logger(__name__)

ModelT = TypeVar("ModelT")
StepFn = Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]


def to_progress(
    status: ErrorStatus | None,
    progress: ProgressEvent[ModelT],
    fault: BaseException | None = None,
) -> ProgressEvent[ModelT]:
    """Convert a classification outcome into the next record."""
    if isinstance(status, Ignore):
        return progress.as_in_progress()
    message = error_message_of(fault) if fault is not None else None
    if isinstance(status, FailWith):
        return ProgressEvent.failed(
            progress.resource_model,
            progress.callback_context,
            status.code,
            message,
        )
    return ProgressEvent.failed(
        progress.resource_model,
        progress.callback_context,
        HandlerErrorCode.INTERNAL_ERROR,
        message,
    )


def handle_exception(
    progress: ProgressEvent[ModelT],
    fault: BaseException,
    rule_set: ErrorRuleSet | None,
    *,
    sink: EventSink | None = None,
) -> ProgressEvent[ModelT]:
    """Classify ``fault`` with ``rule_set`` and translate the outcome.

    Without a rule set the shared default table classifies.
    """
    sink = sink or logger
    if rule_set is None:
        rule_set = DEFAULT_ERROR_RULE_SET
    status = classify(fault, rule_set)
    event = "fault_ignored" if isinstance(status, Ignore) else "fault_classified"
    sink.info(
        event,
        fault_type=type(fault).__name__,
        error_code=error_code_of(fault),
        rule_set=rule_set.name,
        outcome=repr(status),
    )
    return to_progress(status, progress, fault)


def call_guarded(
    progress: ProgressEvent[ModelT],
    fn: StepFn,
    rule_set: ErrorRuleSet | None,
    *,
    sink: EventSink | None = None,
) -> ProgressEvent[ModelT]:
    """Run ``fn(progress)``; any raised fault is classified, never re-raised."""
    try:
        return fn(progress)
    except Exception as exc:  # noqa: BLE001 - faults are classified, not propagated
        return handle_exception(progress, exc, rule_set, sink=sink)


__all__ = ["to_progress", "handle_exception", "call_guarded"]
