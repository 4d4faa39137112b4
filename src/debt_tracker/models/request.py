"""Immutable request and retry-policy values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded linear backoff for transient transport failures.

    The wait before attempt *n* (n >= 2) is ``base_delay * (n - 1)`` seconds.
    """

    max_attempts: int = 3
    base_delay: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    def delay_before(self, attempt: int) -> float:
        """Return the wait in seconds before 1-indexed *attempt*."""
        return self.base_delay * max(attempt - 1, 0)


@dataclass(frozen=True)
class RequestSpec:
    """A single API call: method, path relative to the base URL, JSON body."""

    method: str
    path: str
    body: Any = None
    requires_auth: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
