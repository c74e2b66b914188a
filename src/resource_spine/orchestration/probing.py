"""
Stabilization Poller — cooperative, bounded waiting on the control plane.

After an asynchronous change (modify, reboot) the remote resource takes a
while to settle. Nothing here blocks: each call makes one read-only probe. A
negative probe hands a resume delay back to the scheduler, which re-invokes
the whole pipeline later; completed steps are skipped by their exec-once
flags and the probe runs again.

Attempt counters live in ``CallbackContext.probes``, so the bound holds across
invocations of the same logical operation: the predicate is evaluated at most
``max_attempts`` times in total.

ARCHITECTURE
────────────
::

    stabilize("update-db-instance-available", is_available, max_attempts=3)

    invocation 1: probe #1 false ─► IN_PROGRESS (+delay)  scheduler waits
    invocation 2: probe #2 false ─► IN_PROGRESS (+delay)  scheduler waits
    invocation 3: probe #3 true  ─► flag "<probe>:stable", pipeline continues
    (probe #3 false instead) ─► FAIL: FAILED(NotStabilized)
                              ─► IGNORE: best-effort, pipeline continues

Tags:
    resource-spine, orchestration, stabilization, polling, backoff

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, TypeVar

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.core.logging import EventSink, get_logger
from resource_spine.orchestration.delays import ConstantDelay, DelayPolicy
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.orchestration.translate import handle_exception
from resource_spine.rules.rule_set import ErrorRuleSet

logger = get_logger(__name__)

ModelT = TypeVar("ModelT")
StepFn = Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]


class OnExhausted(str, Enum):
    """What a stabilization step does once its attempts are used up."""

    FAIL = "fail"  # Terminal NotStabilized failure
    IGNORE = "ignore"  # Best-effort: continue as if stable


def await_stable(
    context: CallbackContext,
    probe_name: str,
    max_attempts: int,
    predicate: Callable[[], bool],
) -> bool:
    """
    Evaluate ``predicate`` once, unless ``max_attempts`` were already made.

    Returns True as soon as the predicate holds. Returns False when it does
    not, and permanently False (without evaluating) once the attempt counter
    for ``probe_name`` reached ``max_attempts``.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    if context.probe_count(probe_name) >= max_attempts:
        return False
    context.increment_probe(probe_name)
    return bool(predicate())


def probe_exhausted(context: CallbackContext, probe_name: str, max_attempts: int) -> bool:
    return context.probe_count(probe_name) >= max_attempts


def stable_flag(probe_name: str) -> str:
    return f"{probe_name}:stable"


def stabilize(
    probe_name: str,
    predicate: Callable[[ProgressEvent[ModelT]], bool],
    *,
    max_attempts: int = 3,
    delay_policy: DelayPolicy | None = None,
    on_exhausted: OnExhausted = OnExhausted.FAIL,
    rule_set: ErrorRuleSet | None = None,
    probing_enabled: bool = True,
    sink: EventSink | None = None,
) -> StepFn:
    """
    Build a pipeline step that waits for ``predicate`` to hold.

    Args:
        probe_name: Counter and flag key in the callback context
        predicate: Read-only check against the external resource
        max_attempts: Total probes allowed for the logical operation
        delay_policy: Resume delay after a negative probe (default 30s)
        on_exhausted: Fail with ``NotStabilized`` or continue best-effort
        rule_set: Classification for faults raised by the predicate
        probing_enabled: When False the step is a pass-through
        sink: Event sink for diagnostics
    """
    delay_policy = delay_policy or ConstantDelay()
    sink = sink or logger

    def stabilization_step(progress: ProgressEvent[ModelT]) -> ProgressEvent[ModelT]:
        context = progress.callback_context
        if not probing_enabled or context.is_done(stable_flag(probe_name)):
            return progress

        try:
            stable = await_stable(context, probe_name, max_attempts, lambda: predicate(progress))
        except Exception as exc:  # noqa: BLE001 - probe faults are classified
            return handle_exception(progress, exc, rule_set, sink=sink)

        attempts = context.probe_count(probe_name)
        if stable:
            context.mark_done(stable_flag(probe_name))
            sink.info("resource_stabilized", probe=probe_name, attempts=attempts)
            return progress

        if not probe_exhausted(context, probe_name, max_attempts):
            # Zero would not suspend the pipeline
            delay = max(1, delay_policy.next_delay(attempts - 1))
            sink.info(
                "resource_not_stable",
                probe=probe_name,
                attempts=attempts,
                max_attempts=max_attempts,
                resume_in=delay,
            )
            return progress.with_delay(delay)

        if on_exhausted is OnExhausted.IGNORE:
            sink.warning("stabilization_abandoned", probe=probe_name, attempts=attempts)
            return progress

        sink.warning("stabilization_failed", probe=probe_name, attempts=attempts)
        return ProgressEvent.failed(
            progress.resource_model,
            context,
            HandlerErrorCode.NOT_STABILIZED,
            f"Resource did not stabilize ({probe_name}) after {attempts} attempts",
        )

    stabilization_step.__name__ = f"stabilize[{probe_name}]"
    return stabilization_step


__all__ = [
    "OnExhausted",
    "await_stable",
    "probe_exhausted",
    "stable_flag",
    "stabilize",
]
