"""
Error rule sets — ordered, chainable fault classification tables.

Manifesto:
    Every reconciler talks to the same control plane and sees the same
    family of faults (throttling, access denied, bad parameters), but each
    resource adds a handful of its own (instance not found, group quota
    exceeded) and sometimes wants a shared fault treated differently (ignore
    access denied while tagging). Copying the shared table into every
    resource would drift. Instead a resource-specific set holds only its own
    rules and chains to the shared table as its fallback; the more specific
    rules always win.

Architecture:
    ::

        classify(fault, SOFT_FAIL_TAG)
              │
              ▼
        ┌──────────────────────┐  no match  ┌──────────────────────┐  no match  ┌─────────────┐  no match
        │ SOFT_FAIL_TAG rules  │ ─────────► │ DB_INSTANCE rules    │ ─────────► │ DEFAULT     │ ─────────► FailWith(InternalError)
        │ AccessDenied→Ignore  │            │ NotFound→NotFound …  │            │ Throttling… │
        └──────────────────────┘            └──────────────────────┘            └─────────────┘
              │ first match wins
              ▼
        Ignore | FailWith(code)

Examples:
    >>> base = ErrorRuleSet.builder().with_error_codes(
    ...     fail_with(HandlerErrorCode.THROTTLING), "Throttling").build()
    >>> derived = ErrorRuleSet.builder().with_error_classes(
    ...     ignore(), AccessDeniedError).build().or_else(base)
    >>> derived.handle(AccessDeniedError("nope"))
    Ignore()
    >>> classify(ServiceError("slow down", error_code="Throttling"), derived)
    FailWith(Throttling)

Guardrails:
    ❌ DON'T: Copy the default table into a resource-specific set
    ✅ DO: Chain to it with ``or_else`` / ``derived(..., fallback=...)``

    ❌ DON'T: Put side effects in predicates
    ✅ DO: Keep matchers pure; classification is re-run on every resume

Tags:
    error-classification, rule-set, fallback-chain, resource-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Iterator

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.rules.matchers import Matcher, by_code, by_kind, by_predicate
from resource_spine.rules.status import ErrorStatus, fail_with

DEFAULT_STATUS = fail_with(HandlerErrorCode.INTERNAL_ERROR)


@dataclass(frozen=True)
class ErrorRule:
    """A single ``matcher -> status`` pair."""

    matcher: Matcher
    status: ErrorStatus

    def describe(self) -> str:
        return f"{self.matcher.describe()} -> {self.status!r}"


@dataclass(frozen=True)
class ErrorRuleSet:
    """
    Ordered rules plus an optional fallback set.

    Attributes:
        rules: Rules evaluated in declaration order, first match wins
        fallback: Set consulted when no rule here matches
        name: Diagnostic name (shows up in logs and the CLI)
    """

    rules: tuple[ErrorRule, ...] = ()
    fallback: ErrorRuleSet | None = None
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))

    @staticmethod
    def builder() -> ErrorRuleSetBuilder:
        return ErrorRuleSetBuilder()

    def handle(self, fault: BaseException) -> ErrorStatus:
        """Classify ``fault`` against this set and its fallback chain."""
        return classify(fault, self)

    def or_else(self, fallback: ErrorRuleSet) -> ErrorRuleSet:
        """
        Return a new set whose fallback chain ends in ``fallback``.

        Rules already in this set (and in any fallback it already has) keep
        priority over ``fallback``.
        """
        if self.fallback is None:
            return replace(self, fallback=fallback)
        return replace(self, fallback=self.fallback.or_else(fallback))

    def chain(self) -> Iterator[ErrorRuleSet]:
        """Yield this set followed by each fallback, most specific first."""
        current: ErrorRuleSet | None = self
        while current is not None:
            yield current
            current = current.fallback

    def __repr__(self) -> str:
        names = [s.name or "<anonymous>" for s in self.chain()]
        return f"ErrorRuleSet({' -> '.join(names)}, rules={len(self.rules)})"


@dataclass
class ErrorRuleSetBuilder:
    """Fluent helper for assembling the ordered rule list in code."""

    _rules: list[ErrorRule] = field(default_factory=list)
    _name: str = ""

    def named(self, name: str) -> ErrorRuleSetBuilder:
        self._name = name
        return self

    def with_error_classes(
        self, status: ErrorStatus, *kinds: type[BaseException]
    ) -> ErrorRuleSetBuilder:
        self._rules.append(ErrorRule(by_kind(*kinds), status))
        return self

    def with_error_codes(self, status: ErrorStatus, *codes: str) -> ErrorRuleSetBuilder:
        self._rules.append(ErrorRule(by_code(*codes), status))
        return self

    def with_predicate(
        self,
        status: ErrorStatus,
        predicate: Callable[[BaseException], bool],
        label: str = "",
    ) -> ErrorRuleSetBuilder:
        self._rules.append(ErrorRule(by_predicate(predicate, label), status))
        return self

    def build(self) -> ErrorRuleSet:
        return ErrorRuleSet(rules=tuple(self._rules), name=self._name)


def derived(
    rules: Iterable[ErrorRule],
    fallback: ErrorRuleSet | None = None,
    name: str = "",
) -> ErrorRuleSet:
    """Build a set whose ``rules`` take priority over ``fallback``."""
    return ErrorRuleSet(rules=tuple(rules), fallback=fallback, name=name)


def classify(fault: BaseException, rule_set: ErrorRuleSet | None) -> ErrorStatus:
    """
    Map ``fault`` to an outcome.

    Scans each set of the chain in order and returns the status of the first
    rule whose matcher accepts the fault. Falls through to
    ``FailWith(InternalError)`` when nothing in the chain matches.
    """
    if rule_set is None:
        return DEFAULT_STATUS
    for current in rule_set.chain():
        for rule in current.rules:
            if rule.matcher.matches(fault):
                return rule.status
    return DEFAULT_STATUS


__all__ = [
    "DEFAULT_STATUS",
    "ErrorRule",
    "ErrorRuleSet",
    "ErrorRuleSetBuilder",
    "classify",
    "derived",
]
