"""Reconciler orchestration: progress records, pipelines, exec-once and probing.

Architecture::

    progress.py    ProgressEvent + CallbackContext (the threaded value)
    translate.py   classified fault → next ProgressEvent
    pipeline.py    Step, when(), Pipeline (ordered, short-circuiting)
    exec_once.py   exec_once(), once() (monotonic step flags)
    probing.py     await_stable(), stabilize() (bounded, non-blocking)
    delays.py      resume-delay policies
    handler.py     BaseHandler, HandlerConfig, ResourceHandlerRequest
"""

from resource_spine.orchestration.delays import (
    ConstantDelay,
    DelayPolicy,
    ExponentialDelay,
    NoDelay,
    delay_policy_from_settings,
)
from resource_spine.orchestration.exec_once import exec_once, once
from resource_spine.orchestration.handler import (
    BaseHandler,
    HandlerConfig,
    ResourceHandlerRequest,
    merge_tags,
)
from resource_spine.orchestration.pipeline import Pipeline, Step, when
from resource_spine.orchestration.probing import (
    OnExhausted,
    await_stable,
    probe_exhausted,
    stabilize,
)
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.orchestration.translate import call_guarded, handle_exception, to_progress

__all__ = [
    "ConstantDelay",
    "DelayPolicy",
    "ExponentialDelay",
    "NoDelay",
    "delay_policy_from_settings",
    "exec_once",
    "once",
    "BaseHandler",
    "HandlerConfig",
    "ResourceHandlerRequest",
    "merge_tags",
    "Pipeline",
    "Step",
    "when",
    "OnExhausted",
    "await_stable",
    "probe_exhausted",
    "stabilize",
    "CallbackContext",
    "ProgressEvent",
    "call_guarded",
    "handle_exception",
    "to_progress",
]
