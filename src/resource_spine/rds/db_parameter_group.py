"""
DB Parameter Group — create/update handlers and parameter application.

Applying declared parameters is a five-step sub-pipeline run once per
logical operation (flag ``parameters_applied``):

1. describe the engine defaults for the group's family
2. validate the declared parameters against them; an unknown parameter, or
   an unmodifiable one set to a non-default value, fails with
   ``InvalidRequest``
3. describe the group's current parameters
4. reset parameters that drifted from their default and are no longer
   declared
5. modify declared parameters whose value differs from the current one

Resets and modifications are sent in batches of at most
``HandlerConfig.max_parameters_per_request``. The default and current
parameter tables travel from step to step in ``ProgressEvent.outputs``.
"""

from __future__ import annotations

import hashlib
from dataclasses import replace
from typing import Any, ClassVar, Mapping

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.core.errors import NotFoundError
from resource_spine.orchestration.handler import ResourceHandlerRequest, merge_tags
from resource_spine.orchestration.pipeline import Pipeline, Step, when
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.rds import rule_sets, translator
from resource_spine.rds.base import RdsHandler, fetch_db_parameter_group, partition
from resource_spine.rds.models import DBParameterGroup, Parameter, Tag

DEFAULT_PARAMETERS = "default_parameters"
CURRENT_PARAMETERS = "current_parameters"
MAX_LENGTH_GROUP_NAME = 255

Progress = ProgressEvent[DBParameterGroup]


def parameter_value(value: Any) -> str:
    """Declared values compare as strings; booleans in lower case."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def invalid_parameters(
    declared: Mapping[str, Any], defaults: Mapping[str, Parameter]
) -> list[str]:
    """Declared parameters the engine does not know or will not let change."""
    invalid = []
    for name, value in declared.items():
        default = defaults.get(name)
        if default is None:
            invalid.append(name)
        elif not default.is_modifiable and default.value != parameter_value(value):
            invalid.append(name)
    return sorted(invalid)


def parameters_to_reset(
    declared: Mapping[str, Any] | None,
    defaults: Mapping[str, Parameter],
    current: Mapping[str, Parameter],
) -> dict[str, Parameter]:
    """Current parameters off their default that the model no longer declares."""
    if declared is None:
        return {}
    result = {}
    for name, parameter in current.items():
        default = defaults.get(name)
        if (
            parameter.value is not None
            and default is not None
            and parameter.value != default.value
            and name not in declared
        ):
            result[name] = parameter
    return result


def parameters_to_modify(
    declared: Mapping[str, Any] | None,
    current: Mapping[str, Parameter],
) -> dict[str, Parameter]:
    """Declared parameters whose current value differs, with the new value."""
    result = {}
    for name, value in (declared or {}).items():
        parameter = current.get(name)
        if parameter is None:
            continue
        new_value = parameter_value(value)
        if new_value != parameter.value:
            result[name] = translator.build_parameter_with_new_value(new_value, parameter)
    return result


def generate_group_name(logical_id: str | None, token: str | None) -> str:
    """Stable name derived from the logical id and the request token."""
    suffix = hashlib.sha256((token or "").encode("utf-8")).hexdigest()[:12]
    prefix = (logical_id or "dbparametergroup").lower()
    return f"{prefix}-{suffix}"[:MAX_LENGTH_GROUP_NAME]


class _ParameterGroupHandler(RdsHandler[DBParameterGroup]):
    """Parameter application and read, shared by create and update."""

    def apply_parameters(self, progress: Progress) -> Progress:
        steps = Pipeline(
            [
                Step("describe-default-parameters", self.describe_default_parameters),
                Step("validate-parameters", self.validate_parameters),
                Step("describe-current-parameters", self.describe_current_parameters),
                Step("reset-parameters", self.reset_parameters),
                Step("modify-parameters", self.modify_parameters),
            ],
            name=f"{self.name}:apply-parameters",
            rule_set=self.rule_set(rule_sets.DB_PARAMETER_GROUP),
            sink=self.sink,
        )
        return steps.run(progress)

    def describe_default_parameters(self, progress: Progress) -> Progress:
        def call(p: Progress) -> Progress:
            pages = self.rds.paginate(
                "describe_engine_default_parameters",
                translator.describe_engine_default_parameters_request(p.resource_model),
            )
            defaults = {
                param.name: param
                for page in pages
                for param in map(Parameter.from_api, (page.get("EngineDefaults") or {}).get("Parameters") or [])
            }
            return p.with_output(DEFAULT_PARAMETERS, defaults)

        return self.guarded(progress, call, rule_sets.DB_PARAMETER_GROUP)

    def validate_parameters(self, progress: Progress) -> Progress:
        defaults = progress.outputs.get(DEFAULT_PARAMETERS, {})
        invalid = invalid_parameters(progress.resource_model.parameters or {}, defaults)
        if invalid:
            self.sink.warning("invalid_parameters", parameters=invalid)
            return ProgressEvent.failed(
                progress.resource_model,
                progress.callback_context,
                HandlerErrorCode.INVALID_REQUEST,
                f"Invalid / unmodifiable / Unsupported DB Parameter: {invalid[0]}",
            )
        return progress

    def describe_current_parameters(self, progress: Progress) -> Progress:
        def call(p: Progress) -> Progress:
            pages = self.rds.paginate(
                "describe_db_parameters",
                translator.describe_db_parameters_request(p.resource_model),
            )
            current = {
                param.name: param
                for page in pages
                for param in map(Parameter.from_api, page.get("Parameters") or [])
            }
            return p.with_output(CURRENT_PARAMETERS, current)

        return self.guarded(progress, call, rule_sets.DB_PARAMETER_GROUP)

    def reset_parameters(self, progress: Progress) -> Progress:
        to_reset = parameters_to_reset(
            progress.resource_model.parameters,
            progress.outputs.get(DEFAULT_PARAMETERS, {}),
            progress.outputs.get(CURRENT_PARAMETERS, {}),
        )
        return self._send_batches(progress, to_reset, "reset_db_parameter_group")

    def modify_parameters(self, progress: Progress) -> Progress:
        to_modify = parameters_to_modify(
            progress.resource_model.parameters,
            progress.outputs.get(CURRENT_PARAMETERS, {}),
        )
        return self._send_batches(progress, to_modify, "modify_db_parameter_group")

    def _send_batches(
        self, progress: Progress, parameters: Mapping[str, Parameter], operation: str
    ) -> Progress:
        ordered = [parameters[name] for name in sorted(parameters)]
        for batch in partition(ordered, self.config.max_parameters_per_request):
            if operation == "reset_db_parameter_group":
                request = translator.reset_db_parameters_request(progress.resource_model, batch)
            else:
                request = translator.modify_db_parameter_group_request(progress.resource_model, batch)

            def call(p: Progress, request: dict = request, batch: list = batch) -> Progress:
                self.rds.invoke(operation, request)
                self.sink.info(
                    "parameters_sent",
                    operation=operation,
                    parameters=[param.name for param in batch],
                    total=len(batch),
                )
                return p

            result = self.guarded(progress, call, rule_sets.DB_PARAMETER_GROUP)
            if result.is_failed():
                return result
        return progress

    def group_arn(self, progress: Progress) -> str:
        group = fetch_db_parameter_group(self.rds, progress.resource_model.db_parameter_group_name)
        if group is None:
            raise NotFoundError(
                f"DB parameter group {progress.resource_model.db_parameter_group_name} not found"
            )
        return group["DBParameterGroupArn"]

    def read(self, progress: Progress) -> Progress:
        def call(p: Progress) -> Progress:
            model = p.resource_model
            group = fetch_db_parameter_group(self.rds, model.db_parameter_group_name)
            if group is None:
                return ProgressEvent.failed(
                    model,
                    p.callback_context,
                    HandlerErrorCode.NOT_FOUND,
                    f"DB parameter group {model.db_parameter_group_name} not found",
                )
            observed = translator.translate_db_parameter_group_from_api(group, model.parameters)
            return ProgressEvent.success(replace(observed, tags=model.tags), p.callback_context)

        return self.guarded(progress, call, rule_sets.DB_PARAMETER_GROUP)


class DBParameterGroupCreateHandler(_ParameterGroupHandler):
    """Create a DB parameter group and apply its declared parameters."""

    name: ClassVar[str] = "db-parameter-group-create"

    def handle(
        self,
        request: ResourceHandlerRequest[DBParameterGroup],
        context: CallbackContext,
    ) -> Progress:
        model = request.desired_resource_state
        if not model.db_parameter_group_name:
            model = replace(
                model,
                db_parameter_group_name=generate_group_name(
                    request.logical_resource_identifier, request.client_request_token
                ),
            )
        tags = translator.translate_tags_from_request(
            merge_tags(request.system_tags, request.desired_resource_tags)
        ) | set(model.tags or [])

        pipeline = self.pipeline(
            [
                Step(
                    "create",
                    self.once("created", lambda p: self.create(p, tags), rule_set=rule_sets.DB_PARAMETER_GROUP),
                ),
                Step(
                    "apply-parameters",
                    self.once("parameters_applied", self.apply_parameters, rule_set=rule_sets.DB_PARAMETER_GROUP),
                ),
                Step("read", self.read),
            ],
            rule_set=rule_sets.DB_PARAMETER_GROUP,
        )
        return pipeline.run(ProgressEvent.progress(model, context))

    def create(self, progress: Progress, tags: set[Tag]) -> Progress:
        def call(p: Progress) -> Progress:
            self.rds.invoke(
                "create_db_parameter_group",
                translator.create_db_parameter_group_request(p.resource_model, tags),
            )
            self.sink.info("db_parameter_group_created", name=p.resource_model.db_parameter_group_name)
            return p

        return self.guarded(progress, call, rule_sets.DB_PARAMETER_GROUP)


class DBParameterGroupUpdateHandler(_ParameterGroupHandler):
    """Update tags and parameters of an existing DB parameter group."""

    name: ClassVar[str] = "db-parameter-group-update"

    def handle(
        self,
        request: ResourceHandlerRequest[DBParameterGroup],
        context: CallbackContext,
    ) -> Progress:
        previous = request.previous_resource_state
        desired = request.desired_resource_state
        if not desired.db_parameter_group_name and previous is not None:
            desired = replace(desired, db_parameter_group_name=previous.db_parameter_group_name)

        previous_tags = translator.translate_tags_from_request(
            merge_tags(request.previous_system_tags, request.previous_resource_tags)
        ) | set((previous.tags if previous is not None else None) or [])
        desired_tags = translator.translate_tags_from_request(
            merge_tags(request.system_tags, request.desired_resource_tags)
        ) | set(desired.tags or [])

        pipeline = self.pipeline(
            [
                when(
                    lambda _: previous_tags != desired_tags,
                    Step(
                        "update-tags",
                        lambda p: self.update_tags(
                            p,
                            self.group_arn,
                            previous_tags,
                            desired_tags,
                            rule_sets.DB_PARAMETER_GROUP_SOFT_FAIL_TAG,
                        ),
                    ),
                ),
                Step(
                    "apply-parameters",
                    self.once("parameters_applied", self.apply_parameters, rule_set=rule_sets.DB_PARAMETER_GROUP),
                ),
                Step("read", self.read),
            ],
            rule_set=rule_sets.DB_PARAMETER_GROUP,
        )
        return pipeline.run(ProgressEvent.progress(desired, context))


__all__ = [
    "DBParameterGroupCreateHandler",
    "DBParameterGroupUpdateHandler",
    "invalid_parameters",
    "parameter_value",
    "parameters_to_modify",
    "parameters_to_reset",
]
