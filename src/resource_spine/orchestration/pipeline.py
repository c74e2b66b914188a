"""
Step Pipeline — strictly ordered composition of reconciler steps.

Manifesto:
    A reconciler is a short list of side-effecting steps against one remote
    API, and later steps depend on the external effects of earlier ones (the
    parameter group must be associated before the main modify call). So the
    pipeline is deliberately small: steps run left to right, one at a time,
    and the first terminal record (or a request to be resumed later) ends the
    invocation. Re-running the whole pipeline must be safe; conditional steps
    pass the record through untouched when their precondition is false and
    mutating steps are wrapped with ``once()``.

ARCHITECTURE
────────────
::

    Pipeline.run(progress)
      for step in steps:
          record terminal (SUCCESS/FAILED)?  ─► stop, return record
          record suspended (IN_PROGRESS+delay)? ─► stop, return record
          step.condition(record) false?      ─► pass through (step_skipped)
          record = step.fn(record)            (raw faults → rule set)
      return record

Example::

    pipeline = Pipeline(
        [
            Step("validate", validate),
            when(needs_default_vpc, Step("default-vpc", set_default_vpc)),
            Step("update", once("updated", modify)),
        ],
        name="db-instance-update",
    )
    result = pipeline.run(ProgressEvent.progress(model, context))

Tags:
    resource-spine, orchestration, pipeline, sequential, short-circuit

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Generic, Iterable, TypeVar

from resource_spine.core.logging import EventSink, get_logger
from resource_spine.orchestration.progress import ProgressEvent
from resource_spine.orchestration.translate import handle_exception
from resource_spine.rules.rule_set import ErrorRuleSet

logger = get_logger(__name__)

ModelT = TypeVar("ModelT")
StepFn = Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]
Condition = Callable[[ProgressEvent[ModelT]], bool]


@dataclass(frozen=True)
class Step(Generic[ModelT]):
    """A named pipeline step with an optional precondition."""

    name: str
    fn: StepFn
    condition: Condition | None = None

    def should_run(self, progress: ProgressEvent[ModelT]) -> bool:
        return self.condition is None or bool(self.condition(progress))


def when(condition: Condition, step: Step[ModelT]) -> Step[ModelT]:
    """Make ``step`` conditional; a false precondition is a pass-through."""
    if step.condition is None:
        return replace(step, condition=condition)
    previous = step.condition
    return replace(step, condition=lambda p: previous(p) and condition(p))


class Pipeline(Generic[ModelT]):
    """
    Ordered list of steps applied to a Progress Record.

    Attributes:
        steps: Steps in execution order
        name: Diagnostic name used in events
        rule_set: Classification for faults that escape a step; ``None``
            uses the shared default table
    """

    def __init__(
        self,
        steps: Iterable[Step[ModelT] | StepFn],
        *,
        name: str = "pipeline",
        rule_set: ErrorRuleSet | None = None,
        sink: EventSink | None = None,
    ):
        self.steps: list[Step[ModelT]] = [
            s if isinstance(s, Step) else Step(getattr(s, "__name__", f"step-{i}"), s)
            for i, s in enumerate(steps, start=1)
        ]
        self.name = name
        self.rule_set = rule_set
        self.sink = sink or logger

    def run(self, progress: ProgressEvent[ModelT]) -> ProgressEvent[ModelT]:
        """Apply the steps in order, stopping at the first terminal or suspended record."""
        current = progress
        for index, step in enumerate(self.steps):
            if current.is_terminal() or current.is_suspended():
                self.sink.info(
                    "pipeline_stopped",
                    pipeline=self.name,
                    at_step=step.name,
                    status=current.status.value,
                    error_code=current.error_code.value if current.error_code else None,
                    remaining=len(self.steps) - index,
                )
                return current

            try:
                if not step.should_run(current):
                    self.sink.debug("step_skipped", pipeline=self.name, step=step.name)
                    continue
                self.sink.debug("step_started", pipeline=self.name, step=step.name)
                current = step.fn(current)
            except Exception as exc:  # noqa: BLE001 - raw faults never escape the pipeline
                self.sink.warning(
                    "step_raised",
                    pipeline=self.name,
                    step=step.name,
                    fault_type=type(exc).__name__,
                )
                current = handle_exception(current, exc, self.rule_set, sink=self.sink)

        self.sink.debug(
            "pipeline_completed",
            pipeline=self.name,
            status=current.status.value,
            suspended=current.is_suspended(),
        )
        return current

    def __call__(self, progress: ProgressEvent[ModelT]) -> ProgressEvent[ModelT]:
        return self.run(progress)

    def __repr__(self) -> str:
        return f"Pipeline({self.name!r}, steps={[s.name for s in self.steps]})"


__all__ = ["Step", "Pipeline", "when"]
