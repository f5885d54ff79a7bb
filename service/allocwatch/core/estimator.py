"""Locally simulated progress, reconciled with backend reports.

The estimate advances linearly so that it reaches ``ceiling`` at the
assumed total duration, and never passes the ceiling on its own. Backend
progress can only raise it. The value never decreases within a run.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from ..models.job import JobStatus


class ProgressEstimator:
    def __init__(self, tick_interval: float = 0.5, ceiling: float = 90.0, reestimate_tolerance: float = 10.0):
        self.tick_interval = tick_interval
        self.ceiling = ceiling
        self.reestimate_tolerance = reestimate_tolerance
        self.reset()

    def reset(self) -> None:
        self.value = 0.0
        self.elapsed = 0.0
        self.total_duration: Optional[float] = None
        self.increment = 0.0
        self.frozen = False

    def start(self, total_duration: float) -> None:
        """Begin a fresh run expected to take ``total_duration`` seconds."""
        self.reset()
        self._schedule(total_duration)

    @property
    def remaining_seconds(self) -> Optional[float]:
        if self.total_duration is None:
            return None
        return max(0.0, self.total_duration - self.elapsed)

    def tick(self) -> float:
        if self.frozen:
            return self.value
        self.elapsed += self.tick_interval
        if self.value < self.ceiling:
            self.value = min(self.ceiling, self.value + self.increment)
        return self.value

    def reconcile(self, status: JobStatus) -> float:
        """Merge a running-job status report into the estimate."""
        if self.frozen:
            return self.value
        if status.progress_percent > self.value:
            logger.debug("Raising estimate {:.1f} -> {:.1f} from backend", self.value, status.progress_percent)
            self.value = status.progress_percent
        remaining = status.estimated_remaining_seconds
        if remaining is not None and self.total_duration is not None:
            implied_total = self.elapsed + remaining
            if abs(implied_total - self.total_duration) > self.reestimate_tolerance:
                logger.debug("Re-estimating duration {:.0f}s -> {:.0f}s", self.total_duration, implied_total)
                self._schedule(implied_total)
        return self.value

    def complete(self) -> None:
        self.value = 100.0
        self.frozen = True

    def freeze(self) -> None:
        self.frozen = True

    def _schedule(self, total_duration: float) -> None:
        # Spread what is left below the ceiling over the time left.
        self.total_duration = total_duration
        remaining = total_duration - self.elapsed
        if remaining <= 0:
            self.increment = 0.0
            return
        ticks_left = remaining / self.tick_interval
        self.increment = max(0.0, self.ceiling - self.value) / ticks_left
