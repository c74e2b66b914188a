"""Outcome of classifying a fault: ``Ignore`` or ``FailWith(code)``.

The variant set is closed. ``Ignore`` is a soft continue (the step is treated
as having had no effect and the pipeline moves on); ``FailWith`` is terminal
and carries a stable ``HandlerErrorCode``.
"""

from __future__ import annotations

from dataclasses import dataclass

from resource_spine.core.enums import HandlerErrorCode


@dataclass(frozen=True)
class ErrorStatus:
    """Base of the two outcome variants. Never instantiated directly."""

    def __post_init__(self) -> None:
        if type(self) is ErrorStatus:
            raise TypeError("ErrorStatus is abstract; use ignore() or fail_with()")

    @property
    def is_ignore(self) -> bool:
        return isinstance(self, Ignore)


@dataclass(frozen=True)
class Ignore(ErrorStatus):
    """Treat the fault as non-fatal and continue with the next step."""

    def __repr__(self) -> str:
        return "Ignore()"


@dataclass(frozen=True)
class FailWith(ErrorStatus):
    """Terminate the operation with ``code``."""

    code: HandlerErrorCode

    def __repr__(self) -> str:
        return f"FailWith({self.code.value})"


def ignore() -> Ignore:
    return Ignore()


def fail_with(code: HandlerErrorCode | str) -> FailWith:
    """Build a ``FailWith`` outcome, accepting the code's string value too."""
    return FailWith(HandlerErrorCode(code))


__all__ = ["ErrorStatus", "Ignore", "FailWith", "ignore", "fail_with"]
