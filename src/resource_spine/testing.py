"""Test Harness — doubles and factories for testing reconcilers.

Manifesto:
Handler tests need a control plane that answers from a script, a sink that
remembers what was logged, and botocore faults without a network. This
module provides them so test code stays short and reads like the scenario
it checks.

ARCHITECTURE
────────────
::

    Test doubles:
      StubProxyClient    → scripted responses per operation, records calls
      RecordingSink      → EventSink that keeps (level, event, fields)

    Factories:
      client_error(code, message, operation) → botocore ClientError
      make_request(desired, previous, **kw)  → ResourceHandlerRequest

Example::

    rds = StubProxyClient({
        "describe_db_instances": {"DBInstances": [instance]},
        "modify_db_instance": client_error("Throttling"),
    })
    handler = DBInstanceUpdateHandler(rds, StubProxyClient())
    result = handler.handle_request(make_request(desired, previous))
    assert result.error_code is HandlerErrorCode.THROTTLING
    assert rds.call_count("modify_db_instance") == 1

Tags:
    resource-spine, testing, harness, stubs

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping

from botocore.exceptions import ClientError

from resource_spine.orchestration.handler import ResourceHandlerRequest

# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def client_error(code: str, message: str = "", operation: str = "Operation") -> ClientError:
    """A botocore ``ClientError`` carrying service error ``code``."""
    return ClientError({"Error": {"Code": code, "Message": message or code}}, operation)


def make_request(desired: Any, previous: Any = None, **kwargs: Any) -> ResourceHandlerRequest:
    return ResourceHandlerRequest(
        desired_resource_state=desired,
        previous_resource_state=previous,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class StubProxyClient:
    """ProxyClient double answering from a script.

    Parameters
    ----------
    responses
        Mapping of ``operation → answer``. An answer is a response dict, an
        exception (raised), a callable ``request → answer``, or a list of
        answers consumed in order (the last one repeats). For ``paginate``
        a response dict is one page; a list of dicts is several pages.
        Unscripted operations answer ``{}``.
    """

    def __init__(self, responses: Mapping[str, Any] | None = None, service: str = "stub") -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.service = service
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._cursor: dict[str, int] = {}

    def _next(self, operation: str) -> Any:
        answer = self.responses.get(operation, {})
        if isinstance(answer, list):
            if not answer:
                return {}
            index = self._cursor.get(operation, 0)
            self._cursor[operation] = index + 1
            return answer[min(index, len(answer) - 1)]
        return answer

    def _resolve(self, answer: Any, request: dict[str, Any]) -> Any:
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            return self._resolve(answer(request), request)
        return answer

    def invoke(self, operation: str, request: Mapping[str, Any] | None = None) -> dict[str, Any]:
        request = dict(request or {})
        self.calls.append((operation, request))
        return self._resolve(self._next(operation), request)

    def paginate(self, operation: str, request: Mapping[str, Any] | None = None) -> Iterator[dict[str, Any]]:
        request = dict(request or {})
        self.calls.append((operation, request))
        answer = self.responses.get(operation, [{}])
        pages = answer if isinstance(answer, list) else [answer]
        for page in pages:
            yield self._resolve(page, request)

    def set(self, operation: str, answer: Any) -> None:
        self.responses[operation] = answer
        self._cursor.pop(operation, None)

    def calls_to(self, operation: str) -> list[dict[str, Any]]:
        return [request for op, request in self.calls if op == operation]

    def call_count(self, operation: str) -> int:
        return len(self.calls_to(operation))

    def operations(self) -> list[str]:
        return [op for op, _ in self.calls]


class RecordingSink:
    """EventSink that records every event.

    Example::

        sink = RecordingSink()
        Pipeline(steps, sink=sink).run(progress)
        assert "pipeline_stopped" in sink.events()
    """

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def debug(self, event: str, **fields: Any) -> None:
        self.records.append(("debug", event, fields))

    def info(self, event: str, **fields: Any) -> None:
        self.records.append(("info", event, fields))

    def warning(self, event: str, **fields: Any) -> None:
        self.records.append(("warning", event, fields))

    def error(self, event: str, **fields: Any) -> None:
        self.records.append(("error", event, fields))

    def events(self, level: str | None = None) -> list[str]:
        return [event for lvl, event, _ in self.records if level is None or lvl == level]

    def fields_of(self, event: str) -> list[dict[str, Any]]:
        return [fields for _, name, fields in self.records if name == event]


__all__ = [
    "RecordingSink",
    "StubProxyClient",
    "client_error",
    "make_request",
]
