"""Resume-delay policies for suspended reconciliations.

A step that is waiting on the control plane never sleeps; it hands a delay
back to the scheduler. These policies decide that delay from the number of
probes already made for the same stabilization.

Example:
    >>> from resource_spine.orchestration.delays import ExponentialDelay
    >>>
    >>> policy = ExponentialDelay(base_delay=10, max_delay=300, jitter=False)
    >>> [policy.next_delay(attempt) for attempt in range(4)]
    [10, 20, 40, 80]
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class DelayPolicy(ABC):
    """Abstract base for resume-delay policies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> int:
        """Seconds to wait before the scheduler re-invokes.

        Args:
            attempt: Zero-based number of probes already made

        Returns:
            Delay in whole seconds (never negative)
        """
        ...


@dataclass
class ConstantDelay(DelayPolicy):
    """Same delay for every probe."""

    delay: int = 30

    def next_delay(self, attempt: int) -> int:
        return max(0, int(self.delay))


@dataclass
class ExponentialDelay(DelayPolicy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) +/- jitter
    """

    base_delay: int = 5
    max_delay: int = 300
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.25

    def next_delay(self, attempt: int) -> int:
        delay = min(self.base_delay * (self.multiplier ** max(0, attempt)), self.max_delay)

        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = min(max(0, delay), self.max_delay)

        return int(round(delay))


@dataclass
class NoDelay(DelayPolicy):
    """Ask to be resumed immediately."""

    def next_delay(self, attempt: int) -> int:
        return 0


def delay_policy_from_settings(settings: Any) -> DelayPolicy:
    """Build the policy named by ``settings.backoff``."""
    if settings.backoff == "exponential":
        return ExponentialDelay(
            base_delay=settings.callback_delay_seconds,
            max_delay=settings.max_callback_delay_seconds,
        )
    return ConstantDelay(delay=settings.callback_delay_seconds)


__all__ = [
    "DelayPolicy",
    "ConstantDelay",
    "ExponentialDelay",
    "NoDelay",
    "delay_policy_from_settings",
]
