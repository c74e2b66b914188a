"""Fault matchers — the three ways a rule can recognise a fault.

A matcher is a tagged variant evaluated through one interface,
``matches(fault) -> bool``:

========== =============================================================
Variant    Accepts a fault when
========== =============================================================
ByKind     ``isinstance(fault, kinds)``
ByCode     the fault's normalized service error code is one of ``codes``
ByPredicate ``predicate(fault)`` returns a truthy value
========== =============================================================

Matchers must be pure. A predicate that raises is treated as "no match" so
classification itself can never raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from resource_spine.core.errors import error_code_of


@dataclass(frozen=True)
class ByKind:
    """Match faults by exception class (subclasses included)."""

    kinds: tuple[type[BaseException], ...]

    def matches(self, fault: BaseException) -> bool:
        return isinstance(fault, self.kinds)

    def describe(self) -> str:
        return "kind in " + ", ".join(k.__qualname__ for k in self.kinds)


@dataclass(frozen=True)
class ByCode:
    """Match faults by the external service error code string."""

    codes: frozenset[str]

    def matches(self, fault: BaseException) -> bool:
        code = error_code_of(fault)
        return code is not None and code in self.codes

    def describe(self) -> str:
        return "code in " + ", ".join(sorted(self.codes))


@dataclass(frozen=True)
class ByPredicate:
    """Match faults with an arbitrary side-effect-free predicate."""

    predicate: Callable[[BaseException], bool]
    label: str = ""

    def matches(self, fault: BaseException) -> bool:
        try:
            return bool(self.predicate(fault))
        except Exception:  # noqa: BLE001 - a broken predicate is a non-match
            return False

    def describe(self) -> str:
        name = self.label or getattr(self.predicate, "__qualname__", repr(self.predicate))
        return f"predicate {name}"


Matcher = Union[ByKind, ByCode, ByPredicate]


def by_kind(*kinds: type[BaseException]) -> ByKind:
    if not kinds:
        raise ValueError("by_kind() needs at least one exception class")
    return ByKind(tuple(kinds))


def _code_value(code: str | Enum) -> str:
    value = code.value if isinstance(code, Enum) else code
    return str(value).strip()


def by_code(*codes: str | Enum) -> ByCode:
    if not codes:
        raise ValueError("by_code() needs at least one error code")
    return ByCode(frozenset(_code_value(c) for c in codes))


def by_predicate(predicate: Callable[[BaseException], bool], label: str = "") -> ByPredicate:
    return ByPredicate(predicate, label)


__all__ = [
    "ByKind",
    "ByCode",
    "ByPredicate",
    "Matcher",
    "by_kind",
    "by_code",
    "by_predicate",
]
