"""Synthetic allocation job for the sandbox backend.

Progress is a pure function of elapsed time, so tests can drive the job
by moving an injected clock. Stage boundaries are percentages.
"""

from __future__ import annotations

import csv
import io
import random
import time
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from ..models.job import JobConfig
from . import sample_data

STAGES = [
    (10.0, "loading", "Loading student and internship data"),
    (40.0, "similarity", "Computing similarity scores"),
    (70.0, "prediction", "Predicting placement success"),
    (100.0, "optimization", "Optimizing allocations"),
]

CSV_FIELDS = ["student_id", "student_name", "company", "position", "similarity_score", "success_probability"]


class SandboxError(RuntimeError):
    pass


class SyntheticAllocationEngine:
    """Runs one allocation at a time; a new start replaces the previous run."""

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        speedup: float = 1.0,
        overhead_seconds: float = 20.0,
        fail_at: Optional[float] = None,
        seed: int = 7,
    ):
        self._clock = clock
        self._speedup = speedup
        self._overhead = overhead_seconds
        self.fail_at = fail_at
        self._seed = seed
        self._started_at: Optional[float] = None
        self._duration = 0.0
        self._matches: List[Dict[str, Any]] = []
        self._started_wall: Optional[float] = None

    def start(self, config: JobConfig) -> Dict[str, Any]:
        if self._started_at is not None and self._running():
            raise SandboxError("An allocation is already running")
        self._started_at = self._clock()
        self._duration = max(1.0, (config.optimization_time + self._overhead) / self._speedup)
        self._matches = _generate_matches(config, random.Random(self._seed))
        self._started_wall = time.time()
        logger.info("Sandbox allocation started, finishing in {:.1f}s", self._duration)
        return {"accepted": True, "message": "Allocation started"}

    def _progress(self) -> float:
        if self._started_at is None:
            return 0.0
        progress = min(100.0, (self._clock() - self._started_at) / self._duration * 100.0)
        if self.fail_at is not None:
            progress = min(progress, self.fail_at)
        return progress

    def _running(self) -> bool:
        if self._started_at is None:
            return False
        elapsed = self._clock() - self._started_at
        if self.fail_at is not None and elapsed / self._duration * 100.0 >= self.fail_at:
            return False
        return elapsed < self._duration

    def status(self) -> Dict[str, Any]:
        if self._started_at is None:
            return {"running": False, "progress": 0, "stage": "idle", "message": "No allocation started"}
        progress = self._progress()
        running = self._running()
        if running:
            stage, message = next((name, msg) for limit, name, msg in STAGES if progress < limit)
            remaining = max(0.0, self._duration - (self._clock() - self._started_at))
            return {
                "running": True,
                "progress": round(progress, 1),
                "stage": stage,
                "message": message,
                "estimated_time": round(remaining, 1),
                "total": len(self._matches),
            }
        if progress >= 100.0:
            return {"running": False, "progress": 100, "stage": "completed", "message": "Allocation complete"}
        return {"running": False, "progress": round(progress, 1), "stage": "error", "message": "Optimizer crashed"}

    def live_matches(self) -> Dict[str, Any]:
        if not self._running():
            return {"current_matches": []}
        shown = int(len(self._matches) * self._progress() / 100.0)
        return {"current_matches": self._matches[:shown]}

    def latest(self) -> Optional[Dict[str, Any]]:
        if self._started_at is None or self._running() or self._progress() < 100.0:
            return None
        finished = self._started_wall + self._duration
        return {"allocations": self._matches, "total": len(self._matches), "timestamp": finished}

    def latest_csv(self) -> Optional[str]:
        result = self.latest()
        if result is None:
            return None
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(result["allocations"])
        return buffer.getvalue()


def _generate_matches(config: JobConfig, rng: random.Random) -> List[Dict[str, Any]]:
    matches = []
    for student in sample_data.SAMPLE_STUDENTS:
        internship = rng.choice(sample_data.SAMPLE_INTERNSHIPS)
        # Broader similarity search finds slightly better matches.
        breadth_bonus = min(config.top_k_similarity, 50) / 500.0
        matches.append(
            {
                **student,
                **internship,
                "similarity_score": round(min(1.0, rng.uniform(0.55, 0.9) + breadth_bonus), 3),
                "success_probability": round(rng.uniform(0.5, 0.95), 3),
            }
        )
    return matches
