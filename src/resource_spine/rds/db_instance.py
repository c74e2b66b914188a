"""
DB Instance Update — reconcile a changed DB instance declaration.

Manifesto:
    An update is a fixed sequence of preparations followed by three
    mutating phases (modify, reboot, role changes) and two idempotent ones
    (tags, read). The scheduler re-invokes the whole handler while the
    instance is still settling, so each mutating phase runs under its own
    exec-once flag and every preparation is a conditional pass-through that
    is safe to repeat.

ARCHITECTURE
────────────
::

    immutable change?  ─► FAILED(NotUpdatable) "Resource is immutable"  (no API calls)

    set-parameter-group-name   rollback ∧ group changed ∧ version changed
    set-default-vpc            no VPC security groups declared
    unset-max-allocated-storage previously set, now absent
    ensure-engine              engine missing → live engine
    update        once("updated")        ModifyDBInstance
    await-update  probe "update-db-instance-available"         (FAIL)
    reboot        once("rebooted")       only when pending-reboot
    await-reboot  probe "reboot-db-instance-available"         (best-effort)
    update-roles  once("updated_roles")  remove, then add
    update-tags   soft-fail on access denied
    read          DescribeDBInstances → SUCCESS

Guardrails:
    ❌ DON'T: Call the RDS client outside ``self.guarded``/a pipeline step
    ✅ DO: Give each mutating call its own exec-once flag

Tags:
    resource-spine, rds, db-instance, update, reconciler

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import replace
from functools import partial
from typing import ClassVar

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.core.errors import error_code_of
from resource_spine.orchestration.handler import ResourceHandlerRequest, merge_tags
from resource_spine.orchestration.pipeline import Step, when
from resource_spine.orchestration.probing import OnExhausted
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.rds import rule_sets, translator
from resource_spine.rds.base import RdsHandler, fetch_db_instance
from resource_spine.rds.immutability import is_change_mutable
from resource_spine.rds.models import DBInstance, DBInstanceRole

PENDING_REBOOT_STATUS = "pending-reboot"
AVAILABLE_STATUS = "available"
APPLYING_STATUS = "applying"
DEFAULT_SECURITY_GROUP_NAME = "default"

UPDATE_PROBE = "update-db-instance-available"
REBOOT_PROBE = "reboot-db-instance-available"
REBOOT_REQUESTED = "reboot_requested"

_NOT_FOUND_CODES = ("DBInstanceNotFound", "DBInstanceNotFoundFault")

Progress = ProgressEvent[DBInstance]


def should_set_parameter_group_name(request: ResourceHandlerRequest[DBInstance]) -> bool:
    desired = request.desired_resource_state
    previous = request.previous_resource_state
    if previous is None:
        return False
    return (
        desired.db_parameter_group_name != previous.db_parameter_group_name
        and desired.engine_version != previous.engine_version
        and bool(request.rollback)
    )


def should_set_default_vpc(model: DBInstance) -> bool:
    return not model.vpc_security_groups


def should_unset_max_allocated_storage(request: ResourceHandlerRequest[DBInstance]) -> bool:
    previous = request.previous_resource_state
    return (
        previous is not None
        and previous.max_allocated_storage is not None
        and request.desired_resource_state.max_allocated_storage is None
    )


def is_db_instance_stabilized(instance: dict) -> bool:
    """Available, with no parameter group still applying changes."""
    if instance.get("DBInstanceStatus") != AVAILABLE_STATUS:
        return False
    return all(
        group.get("ParameterApplyStatus") != APPLYING_STATUS
        for group in instance.get("DBParameterGroups") or []
    )


class DBInstanceUpdateHandler(RdsHandler[DBInstance]):
    """Update an existing DB instance in place."""

    name: ClassVar[str] = "db-instance-update"

    def handle(
        self,
        request: ResourceHandlerRequest[DBInstance],
        context: CallbackContext,
    ) -> Progress:
        desired = request.desired_resource_state
        previous = request.previous_resource_state

        if not is_change_mutable(previous, desired):
            return ProgressEvent.failed(
                desired, context, HandlerErrorCode.NOT_UPDATABLE, "Resource is immutable"
            )

        previous_tags = translator.translate_tags_from_request(
            merge_tags(request.previous_system_tags, request.previous_resource_tags)
        )
        desired_tags = translator.translate_tags_from_request(
            merge_tags(request.system_tags, request.desired_resource_tags)
        )
        previous_roles = set(previous.associated_roles or []) if previous is not None else set()
        desired_roles = set(desired.associated_roles or [])

        pipeline = self.pipeline(
            [
                when(
                    lambda _: should_set_parameter_group_name(request),
                    Step("set-parameter-group-name", self.set_parameter_group_name),
                ),
                when(
                    lambda p: should_set_default_vpc(p.resource_model),
                    Step("set-default-vpc", self.set_default_vpc),
                ),
                when(
                    lambda _: should_unset_max_allocated_storage(request),
                    Step("unset-max-allocated-storage", self.unset_max_allocated_storage),
                ),
                Step("ensure-engine", self.ensure_engine_set),
                Step(
                    "update",
                    self.once(
                        "updated",
                        partial(self.update_db_instance, request),
                        rule_set=rule_sets.DB_INSTANCE_MODIFY,
                    ),
                ),
                Step(
                    "await-update",
                    self.stabilize(
                        UPDATE_PROBE,
                        self.is_stabilized,
                        rule_set=rule_sets.DB_INSTANCE_MODIFY,
                    ),
                ),
                Step(
                    "reboot",
                    self.once("rebooted", self.reboot_if_pending, rule_set=rule_sets.DB_INSTANCE_MODIFY),
                ),
                when(
                    lambda p: p.callback_context.is_done(REBOOT_REQUESTED),
                    Step(
                        "await-reboot",
                        self.stabilize(
                            REBOOT_PROBE,
                            self.is_stabilized,
                            on_exhausted=OnExhausted.IGNORE,
                            rule_set=rule_sets.DB_INSTANCE_REBOOT,
                        ),
                    ),
                ),
                Step(
                    "update-roles",
                    self.once(
                        "updated_roles",
                        partial(
                            self.update_associated_roles,
                            previous_roles=previous_roles,
                            desired_roles=desired_roles,
                        ),
                        rule_set=rule_sets.DB_INSTANCE_MODIFY,
                    ),
                ),
                Step(
                    "update-tags",
                    lambda p: self.update_tags(
                        p,
                        self.instance_arn,
                        previous_tags,
                        desired_tags,
                        rule_sets.DB_INSTANCE_SOFT_FAIL_TAG,
                    ),
                ),
                Step("read", self.read),
            ],
            rule_set=rule_sets.DB_INSTANCE_MODIFY,
        )
        return pipeline.run(ProgressEvent.progress(desired, context))

    # =========================================================================
    # Preparation
    # =========================================================================

    def set_parameter_group_name(self, progress: Progress) -> Progress:
        """
        Keep the declared parameter group only if it fits the engine version.

        An empty engine-version lookup drops the name to ``None`` so the
        modify call leaves the group alone.
        """
        model = progress.resource_model
        group_name = model.db_parameter_group_name
        if not group_name:
            return progress

        groups = self.rds.invoke(
            "describe_db_parameter_groups",
            translator.describe_db_parameter_groups_request(group_name),
        ).get("DBParameterGroups") or []
        if not groups:
            return progress

        family = groups[0].get("DBParameterGroupFamily")
        versions = self.rds.invoke(
            "describe_db_engine_versions",
            translator.describe_db_engine_versions_request(family, model.engine, model.engine_version),
        ).get("DBEngineVersions") or []

        if not versions:
            self.sink.info("parameter_group_dropped", parameter_group=group_name, family=family)
            return progress.with_model(replace(model, db_parameter_group_name=None))
        return progress

    def set_default_vpc(self, progress: Progress) -> Progress:
        def call(p: Progress) -> Progress:
            instance = fetch_db_instance(self.rds, p.resource_model)
            vpc_id = (instance.get("DBSubnetGroup") or {}).get("VpcId")
            if not vpc_id or self.ec2 is None:
                return p
            groups = self.ec2.invoke(
                "describe_security_groups",
                translator.describe_security_groups_request(vpc_id, DEFAULT_SECURITY_GROUP_NAME),
            ).get("SecurityGroups") or []
            group_id = groups[0].get("GroupId") if groups else None
            if not group_id:
                return p
            return p.with_model(replace(p.resource_model, vpc_security_groups=[group_id]))

        return self.guarded(progress, call, rule_sets.DB_INSTANCE)

    def unset_max_allocated_storage(self, progress: Progress) -> Progress:
        # Autoscaling is disabled by setting the maximum to the current size
        def call(p: Progress) -> Progress:
            instance = fetch_db_instance(self.rds, p.resource_model)
            return p.with_model(
                replace(p.resource_model, max_allocated_storage=instance.get("AllocatedStorage"))
            )

        return self.guarded(progress, call, rule_sets.DB_INSTANCE_MODIFY)

    def ensure_engine_set(self, progress: Progress) -> Progress:
        if progress.resource_model.engine:
            return progress

        def call(p: Progress) -> Progress:
            instance = fetch_db_instance(self.rds, p.resource_model)
            return p.with_model(replace(p.resource_model, engine=instance.get("Engine")))

        return self.guarded(progress, call, rule_sets.DB_INSTANCE)

    # =========================================================================
    # Mutations
    # =========================================================================

    def update_db_instance(
        self, request: ResourceHandlerRequest[DBInstance], progress: Progress
    ) -> Progress:
        def call(p: Progress) -> Progress:
            modify_request = translator.modify_db_instance_request(
                request.previous_resource_state, p.resource_model, bool(request.rollback)
            )
            self.rds.invoke("modify_db_instance", modify_request)
            self.sink.info("db_instance_modified", changed=sorted(modify_request))
            return p

        return self.guarded(progress, call, rule_sets.DB_INSTANCE_MODIFY)

    def should_reboot(self, progress: Progress) -> bool:
        try:
            instance = fetch_db_instance(self.rds, progress.resource_model)
        except Exception as exc:
            if error_code_of(exc) in _NOT_FOUND_CODES:
                return False
            raise
        groups = instance.get("DBParameterGroups") or []
        return bool(groups) and groups[0].get("ParameterApplyStatus") == PENDING_REBOOT_STATUS

    def reboot_if_pending(self, progress: Progress) -> Progress:
        def call(p: Progress) -> Progress:
            if not self.should_reboot(p):
                return p
            self.rds.invoke(
                "reboot_db_instance", translator.reboot_db_instance_request(p.resource_model)
            )
            p.callback_context.mark_done(REBOOT_REQUESTED)
            self.sink.info("db_instance_rebooted")
            return p

        return self.guarded(progress, call, rule_sets.DB_INSTANCE_REBOOT)

    def update_associated_roles(
        self,
        progress: Progress,
        *,
        previous_roles: set[DBInstanceRole],
        desired_roles: set[DBInstanceRole],
    ) -> Progress:
        model = progress.resource_model
        current = progress
        for role in sorted(previous_roles - desired_roles, key=lambda r: r.role_arn):
            current = self.guarded(
                current,
                lambda p, role=role: self._invoke_role(
                    p, "remove_role_from_db_instance",
                    translator.remove_role_from_db_instance_request(model, role),
                ),
                rule_sets.DB_INSTANCE_ROLES,
            )
            if current.is_failed():
                return current
        for role in sorted(desired_roles - previous_roles, key=lambda r: r.role_arn):
            current = self.guarded(
                current,
                lambda p, role=role: self._invoke_role(
                    p, "add_role_to_db_instance",
                    translator.add_role_to_db_instance_request(model, role),
                ),
                rule_sets.DB_INSTANCE_ROLES,
            )
            if current.is_failed():
                return current
        return current

    def _invoke_role(self, progress: Progress, operation: str, request: dict) -> Progress:
        self.rds.invoke(operation, request)
        self.sink.info("db_instance_role_changed", operation=operation, role_arn=request["RoleArn"])
        return progress

    # =========================================================================
    # Observation
    # =========================================================================

    def is_stabilized(self, progress: Progress) -> bool:
        return is_db_instance_stabilized(fetch_db_instance(self.rds, progress.resource_model))

    def instance_arn(self, progress: Progress) -> str:
        return fetch_db_instance(self.rds, progress.resource_model)["DBInstanceArn"]

    def read(self, progress: Progress) -> Progress:
        def call(p: Progress) -> Progress:
            observed = translator.translate_db_instance_from_api(
                fetch_db_instance(self.rds, p.resource_model)
            )
            return ProgressEvent.success(observed, p.callback_context)

        return self.guarded(progress, call, rule_sets.DB_INSTANCE)


__all__ = [
    "DBInstanceUpdateHandler",
    "is_db_instance_stabilized",
    "should_set_default_vpc",
    "should_set_parameter_group_name",
    "should_unset_max_allocated_storage",
]
