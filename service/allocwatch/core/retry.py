"""Retry policy value objects for the polling streams."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from ..errors import TransportTimeout


class FailureKind(str, Enum):
    timeout = "timeout"
    other = "other"


def classify_failure(exc: BaseException) -> FailureKind:
    if isinstance(exc, TransportTimeout):
        return FailureKind.timeout
    return FailureKind.other


def capped_exponential(base: float = 1.0, cap: float = 5.0) -> Callable[[int], float]:
    """Delay for zero-based ``attempt``: ``min(base * 2**attempt, cap)`` seconds."""

    def backoff(attempt: int) -> float:
        return min(base * 2 ** attempt, cap)

    return backoff


def constant(delay: float) -> Callable[[int], float]:
    def backoff(attempt: int) -> float:
        return delay

    return backoff


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts one fetch may make, and how long to wait between them.

    ``max_attempts`` counts total attempts (not retries) per failure kind.
    The budget is checked against the kind of the latest failure.
    """

    max_attempts: Dict[FailureKind, int]
    backoff: Callable[[int], float] = field(default_factory=capped_exponential)
    classify: Callable[[BaseException], FailureKind] = classify_failure

    def attempts_for(self, kind: FailureKind) -> int:
        return self.max_attempts.get(kind, 1)

    def delay(self, attempt: int) -> float:
        return self.backoff(attempt)


def status_policy(
    timeout_attempts: int = 5,
    error_attempts: int = 3,
    base: float = 1.0,
    cap: float = 5.0,
) -> RetryPolicy:
    return RetryPolicy(
        max_attempts={FailureKind.timeout: timeout_attempts, FailureKind.other: error_attempts},
        backoff=capped_exponential(base, cap),
    )


def live_matches_policy(attempts: int = 2, delay: float = 1.0) -> RetryPolicy:
    return RetryPolicy(
        max_attempts={FailureKind.timeout: attempts, FailureKind.other: attempts},
        backoff=constant(delay),
    )


@dataclass
class RetryState:
    """Per-stream failure bookkeeping; reset on success and on job start."""

    consecutive_failures: int = 0
    next_delay: float = 0.0
    failure_kind: Optional[FailureKind] = None

    def record_failure(self, kind: FailureKind, delay: float) -> None:
        self.consecutive_failures += 1
        self.failure_kind = kind
        self.next_delay = delay

    def reset(self) -> None:
        self.consecutive_failures = 0
        self.next_delay = 0.0
        self.failure_kind = None
