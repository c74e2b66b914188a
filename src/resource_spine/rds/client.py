"""Thin synchronous proxy over boto3 clients.

Steps call the control plane through ``ProxyClient`` rather than a raw boto3
client, so every call is logged the same way and tests can substitute a stub
with the same two methods. Faults are never caught here: a botocore
``ClientError`` propagates to the step boundary, where the step's rule set
classifies it.

Example:
    >>> rds, ec2 = make_clients(ReconcilerSettings(region_name="eu-west-1"))
    >>> rds.invoke("describe_db_instances", {"DBInstanceIdentifier": "db-1"})
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping

import boto3
from botocore.config import Config

from resource_spine.core.logging import EventSink, get_logger

logger = get_logger(__name__)


class ProxyClient:
    """
    Invoke operations of one AWS service client by snake_case name.

    Attributes:
        client: Underlying boto3 client
        service: Service name used in log events
        sink: Where call events go (module logger by default)
    """

    def __init__(self, client: Any, service: str | None = None, *, sink: EventSink | None = None):
        self.client = client
        self.sink = sink or logger
        if service is None:
            meta = getattr(client, "meta", None)
            service = meta.service_model.service_name if meta is not None else "aws"
        self.service = service

    def invoke(self, operation: str, request: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Call ``operation`` (e.g. ``"modify_db_instance"``) with ``request`` kwargs."""
        request = dict(request or {})
        self.sink.debug("service_call", service=self.service, operation=operation)
        return getattr(self.client, operation)(**request)

    def paginate(
        self, operation: str, request: Mapping[str, Any] | None = None
    ) -> Iterator[dict[str, Any]]:
        """Yield every page of a paginated ``operation``."""
        request = dict(request or {})
        self.sink.debug("service_paginate", service=self.service, operation=operation)
        paginator = self.client.get_paginator(operation)
        yield from paginator.paginate(**request)

    def __repr__(self) -> str:
        return f"ProxyClient({self.service!r})"


def make_client(service: str, settings: Any, *, sink: EventSink | None = None) -> ProxyClient:
    """Build a ``ProxyClient`` for ``service`` from reconciler settings."""
    client_kwargs: dict[str, Any] = {
        "service_name": service,
        "config": Config(retries={"mode": "standard"}),
    }
    if settings.region_name:
        client_kwargs["region_name"] = settings.region_name
    if settings.endpoint_url:
        client_kwargs["endpoint_url"] = settings.endpoint_url

    sink = sink or logger
    client = boto3.client(**client_kwargs)
    sink.info(
        "aws_client_initialized",
        service=service,
        region=settings.region_name,
        endpoint=settings.endpoint_url,
    )
    return ProxyClient(client, service, sink=sink)


def make_clients(settings: Any, *, sink: EventSink | None = None) -> tuple[ProxyClient, ProxyClient]:
    """RDS and EC2 proxies, in that order."""
    return make_client("rds", settings, sink=sink), make_client("ec2", settings, sink=sink)


__all__ = ["ProxyClient", "make_client", "make_clients"]
