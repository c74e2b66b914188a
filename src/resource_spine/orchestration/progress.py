"""
Progress Record — the value threaded through every reconciler pipeline.

Every step receives a ``ProgressEvent`` and returns one. The record carries
the desired resource model, the step-completion context that survives across
scheduler invocations, and the current status (plus error fields on failure
and a resume delay while waiting on the control plane).

Design Principles:
- Steps never mutate the record they receive; ``with_*`` helpers and the
  factories build new records
- The ``CallbackContext`` is the one deliberately mutable part: exec-once
  flags and probe counters are written in place so the scheduler can persist
  the very object it handed in
- ``outputs`` is per-invocation scratch data passed from one step to a later
  one; it is never persisted

ARCHITECTURE
────────────
::

    ProgressEvent
      ├── .progress(model, ctx)                    → IN_PROGRESS
      ├── .success(model, ctx)                     → SUCCESS   (terminal)
      ├── .failed(model, ctx, code, message)       → FAILED    (terminal)
      ├── .in_progress_with_delay(model, ctx, s)   → IN_PROGRESS, suspended
      ├── .then(step)                              → short-circuit chaining
      └── .to_dict()                               → scheduler result

    CallbackContext
      ├── flags   {step name → bool}   monotonic, exec-once
      └── probes  {probe name → int}   stabilization attempt counters

Example::

    event = ProgressEvent.progress(model, CallbackContext())
    event = event.then(set_defaults).then(once("updated", modify))
    if event.is_failed():
        report(event.error_code, event.message)

Tags:
    resource-spine, orchestration, progress, callback-context, envelope

Doc-Types:
    api-reference
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field, is_dataclass, replace
from typing import Any, Callable, Generic, TypeVar

from resource_spine.core.enums import HandlerErrorCode, OperationStatus

ModelT = TypeVar("ModelT")


@dataclass
class CallbackContext:
    """
    Step-completion context for one logical operation.

    Created once per reconciliation (or restored by the scheduler), mutated
    by the exec-once wrapper and the stabilization poller, serialized between
    invocations. Flags only ever go from False to True; a logically new
    operation starts from a fresh context.
    """

    flags: dict[str, bool] = field(default_factory=dict)
    probes: dict[str, int] = field(default_factory=dict)

    def is_done(self, name: str) -> bool:
        return bool(self.flags.get(name, False))

    def mark_done(self, name: str) -> None:
        self.flags[name] = True

    def set_flag(self, name: str, value: bool) -> None:
        """Set a flag; ``False`` never clears a flag that is already set."""
        if value:
            self.flags[name] = True
        else:
            self.flags.setdefault(name, False)

    def probe_count(self, name: str) -> int:
        return self.probes.get(name, 0)

    def increment_probe(self, name: str) -> int:
        self.probes[name] = self.probes.get(name, 0) + 1
        return self.probes[name]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the scheduler to persist verbatim."""
        return {"flags": dict(self.flags), "probes": dict(self.probes)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CallbackContext:
        if not data:
            return cls()
        return cls(
            flags={str(k): bool(v) for k, v in (data.get("flags") or {}).items()},
            probes={str(k): int(v) for k, v in (data.get("probes") or {}).items()},
        )

    def __repr__(self) -> str:
        done = sorted(k for k, v in self.flags.items() if v)
        return f"CallbackContext(done={done}, probes={self.probes})"


@dataclass(frozen=True)
class ProgressEvent(Generic[ModelT]):
    """
    Result of running one or more pipeline steps.

    Attributes:
        resource_model: Desired/observed state of the managed resource
        callback_context: Step-completion context (shared, mutable)
        status: IN_PROGRESS, SUCCESS or FAILED
        error_code: Outcome code when FAILED
        message: Human-readable detail when FAILED
        callback_delay_seconds: Resume delay requested from the scheduler
        outputs: Per-invocation data for later steps (not persisted)
    """

    resource_model: ModelT
    callback_context: CallbackContext
    status: OperationStatus = OperationStatus.IN_PROGRESS
    error_code: HandlerErrorCode | None = None
    message: str | None = None
    callback_delay_seconds: int = 0
    outputs: dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def progress(cls, model: ModelT, context: CallbackContext) -> ProgressEvent[ModelT]:
        return cls(resource_model=model, callback_context=context)

    @classmethod
    def in_progress_with_delay(
        cls,
        model: ModelT,
        context: CallbackContext,
        delay_seconds: int,
    ) -> ProgressEvent[ModelT]:
        return cls(
            resource_model=model,
            callback_context=context,
            callback_delay_seconds=max(0, int(delay_seconds)),
        )

    @classmethod
    def success(cls, model: ModelT, context: CallbackContext) -> ProgressEvent[ModelT]:
        return cls(resource_model=model, callback_context=context, status=OperationStatus.SUCCESS)

    @classmethod
    def failed(
        cls,
        model: ModelT,
        context: CallbackContext,
        error_code: HandlerErrorCode,
        message: str | None = None,
    ) -> ProgressEvent[ModelT]:
        return cls(
            resource_model=model,
            callback_context=context,
            status=OperationStatus.FAILED,
            error_code=error_code,
            message=message or error_code.value,
        )

    # =========================================================================
    # Status
    # =========================================================================

    def is_in_progress(self) -> bool:
        return self.status is OperationStatus.IN_PROGRESS

    def is_success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    def is_failed(self) -> bool:
        return self.status is OperationStatus.FAILED

    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_suspended(self) -> bool:
        """In progress and asking the scheduler to come back later."""
        return self.is_in_progress() and self.callback_delay_seconds > 0

    # =========================================================================
    # Derivation
    # =========================================================================

    def with_model(self, model: ModelT) -> ProgressEvent[ModelT]:
        return replace(self, resource_model=model)

    def with_output(self, key: str, value: Any) -> ProgressEvent[ModelT]:
        return replace(self, outputs={**self.outputs, key: value})

    def with_delay(self, delay_seconds: int) -> ProgressEvent[ModelT]:
        return replace(self, callback_delay_seconds=max(0, int(delay_seconds)))

    def as_in_progress(self) -> ProgressEvent[ModelT]:
        """Same model and context, in progress, no error fields, no delay."""
        return replace(
            self,
            status=OperationStatus.IN_PROGRESS,
            error_code=None,
            message=None,
            callback_delay_seconds=0,
        )

    def then(
        self, step: Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]
    ) -> ProgressEvent[ModelT]:
        """Apply ``step`` unless this record is terminal or suspended."""
        if self.is_terminal() or self.is_suspended():
            return self
        return step(self)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Scheduler result: status, error fields, delay, model and context."""
        result: dict[str, Any] = {"status": self.status.value}
        if self.error_code is not None:
            result["errorCode"] = self.error_code.value
        if self.message:
            result["message"] = self.message
        if self.callback_delay_seconds:
            result["callbackDelaySeconds"] = self.callback_delay_seconds
        model = self.resource_model
        if hasattr(model, "to_dict"):
            result["resourceModel"] = model.to_dict()
        elif is_dataclass(model) and not isinstance(model, type):
            result["resourceModel"] = asdict(model)
        else:
            result["resourceModel"] = copy.deepcopy(model)
        result["callbackContext"] = self.callback_context.to_dict()
        return result

    def __repr__(self) -> str:
        if self.is_failed():
            status = f"FAILED({self.error_code.value if self.error_code else '?'})"
        elif self.is_suspended():
            status = f"IN_PROGRESS(+{self.callback_delay_seconds}s)"
        else:
            status = self.status.value
        return f"ProgressEvent({status}, {self.callback_context!r})"


__all__ = ["CallbackContext", "ProgressEvent"]
