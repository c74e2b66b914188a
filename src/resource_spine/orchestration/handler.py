"""
Handler — the scheduler-facing entry point of every reconciler.

Manifesto:
    The scheduler knows nothing about steps, flags or rule sets. It calls
    ``handle_request(request, callback_context)`` and gets back one Progress
    Record: terminal, or in progress with an optional resume delay and the
    context it must hand back next time. A missing context means a logically
    new operation, so a fresh one is created. Whatever escapes a pipeline is
    still classified; a raw exception never reaches the scheduler.

ARCHITECTURE
────────────
::

    scheduler ──► BaseHandler.handle_request(request, ctx | dict | None)
                    ├── ctx None → CallbackContext()
                    ├── ctx dict → CallbackContext.from_dict()
                    ├── LogContext(handler, resource, request_token)
                    ├── self.handle(request, ctx)   (subclass pipeline)
                    └── escaped fault → default rule set → FAILED
              ◄── ProgressEvent  (.to_dict() for the wire)

Tags:
    resource-spine, orchestration, handler, scheduler, entry-point

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Generic, Iterable, Mapping, TypeVar

from resource_spine.core.errors import RuleSetConfigError
from resource_spine.core.logging import EventSink, LogContext, get_logger
from resource_spine.orchestration.delays import (
    ConstantDelay,
    DelayPolicy,
    delay_policy_from_settings,
)
from resource_spine.orchestration.exec_once import once
from resource_spine.orchestration.pipeline import Pipeline, Step
from resource_spine.orchestration.probing import OnExhausted, stabilize
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.orchestration.translate import handle_exception
from resource_spine.rules.defaults import DEFAULT_RULE_SET_NAME
from resource_spine.rules.loader import packaged_rule_sets, rule_sets_for
from resource_spine.rules.rule_set import ErrorRuleSet

logger = get_logger(__name__)

ModelT = TypeVar("ModelT")


@dataclass
class ResourceHandlerRequest(Generic[ModelT]):
    """
    One scheduler request.

    Tag maps are ``{key: value}``; system tags are applied by the platform
    and merged with the resource tags before diffing.
    """

    desired_resource_state: ModelT
    previous_resource_state: ModelT | None = None
    desired_resource_tags: dict[str, str] | None = None
    previous_resource_tags: dict[str, str] | None = None
    system_tags: dict[str, str] | None = None
    previous_system_tags: dict[str, str] | None = None
    rollback: bool = False
    logical_resource_identifier: str | None = None
    client_request_token: str | None = None

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        model_factory: Callable[[Mapping[str, Any]], ModelT],
    ) -> ResourceHandlerRequest[ModelT]:
        """Build a request from its camelCase wire form."""
        previous = data.get("previousResourceState")
        return cls(
            desired_resource_state=model_factory(data.get("desiredResourceState") or {}),
            previous_resource_state=model_factory(previous) if previous is not None else None,
            desired_resource_tags=data.get("desiredResourceTags"),
            previous_resource_tags=data.get("previousResourceTags"),
            system_tags=data.get("systemTags"),
            previous_system_tags=data.get("previousSystemTags"),
            rollback=bool(data.get("rollback", False)),
            logical_resource_identifier=data.get("logicalResourceIdentifier"),
            client_request_token=data.get("clientRequestToken"),
        )


def merge_tags(*tag_maps: Mapping[str, str] | None) -> dict[str, str]:
    """Merge tag maps left to right; later maps win."""
    merged: dict[str, str] = {}
    for tags in tag_maps:
        if tags:
            merged.update(tags)
    return merged


@dataclass
class HandlerConfig:
    """
    Per-handler tuning.

    Attributes:
        probing_enabled: When False, stabilization steps pass through
        stabilization_max_attempts: Probe bound per logical operation
        delay_policy: Resume delay after a negative probe
        max_parameters_per_request: Batch size for parameter modify/reset calls
        rule_sets: Named classification tables (packaged + operator overrides)
    """

    probing_enabled: bool = True
    stabilization_max_attempts: int = 3
    delay_policy: DelayPolicy = field(default_factory=ConstantDelay)
    max_parameters_per_request: int = 20
    rule_sets: dict[str, ErrorRuleSet] = field(default_factory=packaged_rule_sets)

    @classmethod
    def from_settings(cls, settings: Any = None) -> HandlerConfig:
        if settings is None:
            from resource_spine.core.settings import ReconcilerSettings

            settings = ReconcilerSettings()
        return cls(
            probing_enabled=settings.probing_enabled,
            stabilization_max_attempts=settings.stabilization_max_attempts,
            delay_policy=delay_policy_from_settings(settings),
            max_parameters_per_request=settings.max_parameters_per_request,
            rule_sets=rule_sets_for(settings.rules_file),
        )

    def rule_set(self, name: str) -> ErrorRuleSet:
        try:
            return self.rule_sets[name]
        except KeyError:
            raise RuleSetConfigError(
                f"Unknown rule set {name!r}; known: {sorted(self.rule_sets)}"
            ) from None


class BaseHandler(ABC, Generic[ModelT]):
    """
    Base class for reconcilers.

    Subclasses implement ``handle()`` by building a ``Pipeline`` (usually
    with ``self.pipeline()``) and running it on the desired state.
    """

    name: ClassVar[str] = "handler"

    def __init__(self, config: HandlerConfig | None = None, *, sink: EventSink | None = None):
        self.config = config or HandlerConfig()
        self.sink = sink or logger

    def handle_request(
        self,
        request: ResourceHandlerRequest[ModelT],
        callback_context: CallbackContext | Mapping[str, Any] | None = None,
    ) -> ProgressEvent[ModelT]:
        """Run one invocation and return the record for the scheduler."""
        if isinstance(callback_context, CallbackContext):
            context = callback_context
        else:
            context = CallbackContext.from_dict(callback_context)

        with LogContext(
            handler=self.name,
            resource=request.logical_resource_identifier,
            request_token=request.client_request_token,
        ):
            self.sink.info("handler_invoked", done=sorted(k for k, v in context.flags.items() if v))
            try:
                result = self.handle(request, context)
            except Exception as exc:  # noqa: BLE001 - the scheduler only sees records
                self.sink.error("handler_raised", fault_type=type(exc).__name__)
                result = handle_exception(
                    ProgressEvent.progress(request.desired_resource_state, context),
                    exc,
                    self.config.rule_set(DEFAULT_RULE_SET_NAME),
                    sink=self.sink,
                )
            self.sink.info(
                "handler_returned",
                status=result.status.value,
                error_code=result.error_code.value if result.error_code else None,
                callback_delay_seconds=result.callback_delay_seconds,
            )
        return result

    @abstractmethod
    def handle(
        self,
        request: ResourceHandlerRequest[ModelT],
        context: CallbackContext,
    ) -> ProgressEvent[ModelT]:
        """Reconcile ``request`` starting from ``context``."""
        ...

    # =========================================================================
    # Helpers for subclasses
    # =========================================================================

    def rule_set(self, name: str) -> ErrorRuleSet:
        return self.config.rule_set(name)

    def pipeline(
        self,
        steps: Iterable[Step[ModelT] | Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]],
        *,
        rule_set: str = DEFAULT_RULE_SET_NAME,
    ) -> Pipeline[ModelT]:
        return Pipeline(steps, name=self.name, rule_set=self.rule_set(rule_set), sink=self.sink)

    def stabilize(
        self,
        probe_name: str,
        predicate: Callable[[ProgressEvent[ModelT]], bool],
        *,
        on_exhausted: OnExhausted = OnExhausted.FAIL,
        rule_set: str = DEFAULT_RULE_SET_NAME,
    ) -> Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]:
        """Stabilization step bounded and paced by this handler's config."""
        return stabilize(
            probe_name,
            predicate,
            max_attempts=self.config.stabilization_max_attempts,
            delay_policy=self.config.delay_policy,
            on_exhausted=on_exhausted,
            rule_set=self.rule_set(rule_set),
            probing_enabled=self.config.probing_enabled,
            sink=self.sink,
        )

    def once(
        self,
        flag: str,
        step_fn: Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]],
        *,
        rule_set: str = DEFAULT_RULE_SET_NAME,
    ) -> Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]]:
        """Exactly-once step whose raised faults are classified with ``rule_set``."""
        return once(flag, step_fn, rule_set=self.rule_set(rule_set), sink=self.sink)


__all__ = [
    "BaseHandler",
    "HandlerConfig",
    "ResourceHandlerRequest",
    "merge_tags",
]
