"""Shared plumbing for the RDS reconcilers: clients, guarded calls, tag diffs."""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from resource_spine.core.errors import NotFoundError
from resource_spine.core.logging import EventSink
from resource_spine.orchestration.handler import BaseHandler, HandlerConfig
from resource_spine.orchestration.progress import ProgressEvent
from resource_spine.orchestration.translate import call_guarded
from resource_spine.rds import translator
from resource_spine.rds.client import ProxyClient, make_clients
from resource_spine.rds.models import DBInstance, Tag

ModelT = TypeVar("ModelT")


def fetch_db_instance(rds: ProxyClient, model: DBInstance) -> dict[str, Any]:
    """Live description of the instance ``model`` names."""
    response = rds.invoke("describe_db_instances", translator.describe_db_instances_request(model))
    instances = response.get("DBInstances") or []
    if not instances:
        raise NotFoundError(f"DB instance {model.db_instance_identifier} not found").with_context(
            resource=model.db_instance_identifier
        )
    return instances[0]


def fetch_db_parameter_group(rds: ProxyClient, name: str) -> dict[str, Any] | None:
    response = rds.invoke(
        "describe_db_parameter_groups", translator.describe_db_parameter_groups_request(name)
    )
    groups = response.get("DBParameterGroups") or []
    return groups[0] if groups else None


def partition(items: Iterable[Any], size: int) -> Iterable[list[Any]]:
    """Split ``items`` into lists of at most ``size`` elements."""
    batch: list[Any] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


class RdsHandler(BaseHandler[ModelT]):
    """
    Base for handlers that talk to RDS (and EC2 for network lookups).

    Attributes:
        rds: Proxy over the RDS client
        ec2: Proxy over the EC2 client (only some handlers need it)
    """

    def __init__(
        self,
        rds: ProxyClient,
        ec2: ProxyClient | None = None,
        config: HandlerConfig | None = None,
        *,
        sink: EventSink | None = None,
    ):
        super().__init__(config, sink=sink)
        self.rds = rds
        self.ec2 = ec2

    @classmethod
    def from_settings(cls, settings: Any = None, *, sink: EventSink | None = None):
        """Handler wired to real AWS clients and the operator's settings."""
        if settings is None:
            from resource_spine.core.settings import ReconcilerSettings

            settings = ReconcilerSettings()
        rds, ec2 = make_clients(settings, sink=sink)
        return cls(rds, ec2, HandlerConfig.from_settings(settings), sink=sink)

    def guarded(
        self,
        progress: ProgressEvent[ModelT],
        fn: Callable[[ProgressEvent[ModelT]], ProgressEvent[ModelT]],
        rule_set: str,
    ) -> ProgressEvent[ModelT]:
        """Run one external call; faults are classified with the named set."""
        return call_guarded(progress, fn, self.rule_set(rule_set), sink=self.sink)

    def update_tags(
        self,
        progress: ProgressEvent[ModelT],
        resource_arn: Callable[[ProgressEvent[ModelT]], str],
        previous_tags: set[Tag],
        desired_tags: set[Tag],
        rule_set: str,
    ) -> ProgressEvent[ModelT]:
        """Remove stale tags, then add new ones. No-op when nothing changed."""
        to_add = desired_tags - previous_tags
        # A changed value is re-added, not removed
        to_remove = {t for t in previous_tags - desired_tags if t.key not in {d.key for d in to_add}}
        if not to_add and not to_remove:
            return progress

        def call(p: ProgressEvent[ModelT]) -> ProgressEvent[ModelT]:
            arn = resource_arn(p)
            if to_remove:
                self.rds.invoke(
                    "remove_tags_from_resource",
                    translator.remove_tags_from_resource_request(arn, to_remove),
                )
            if to_add:
                self.rds.invoke(
                    "add_tags_to_resource",
                    translator.add_tags_to_resource_request(arn, to_add),
                )
            self.sink.info("tags_updated", added=len(to_add), removed=len(to_remove))
            return p

        return self.guarded(progress, call, rule_set)


__all__ = [
    "RdsHandler",
    "fetch_db_instance",
    "fetch_db_parameter_group",
    "partition",
]
