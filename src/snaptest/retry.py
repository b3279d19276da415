"""Retry budget shared by the polling helpers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval retry budget.

    max_attempts: number of rounds before giving up.
    interval: seconds slept between rounds.
    timeout: per-attempt timeout (dial timeout for TCP probes).
    sleep: injected so tests can run without real delays; defaults to time.sleep.
    """
    max_attempts: int = 10
    interval: float = 1.0
    timeout: float = 2.0
    sleep: Optional[Callable[[float], None]] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.interval < 0:
            raise ValueError(f"interval must be >= 0, got {self.interval}")

    def with_attempts(self, max_attempts: int) -> "RetryPolicy":
        return RetryPolicy(
            max_attempts=max_attempts,
            interval=self.interval,
            timeout=self.timeout,
            sleep=self.sleep,
        )

    def wait(self) -> None:
        if self.interval > 0:
            sleep = self.sleep or time.sleep
            sleep(self.interval)
