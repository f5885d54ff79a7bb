from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

MILESTONE_MESSAGES: Dict[int, str] = {
    25: "Similarity analysis in progress",
    50: "Running prediction models",
    75: "Optimizing allocations",
}


@dataclass(frozen=True)
class Milestone:
    threshold: int
    message: str


class MilestoneNotifier:
    """Fires each threshold at most once per run.

    A threshold fires on the first observation at or above it, so a jump
    such as 20 -> 60 fires 25 and 50 together, in ascending order.
    """

    def __init__(self, thresholds: Iterable[int] = (25, 50, 75), messages: Optional[Dict[int, str]] = None):
        self.thresholds = sorted(set(thresholds))
        self.messages = dict(MILESTONE_MESSAGES if messages is None else messages)
        self.fired: Set[int] = set()

    def reset(self) -> None:
        self.fired = set()

    def observe(self, progress: float) -> List[Milestone]:
        crossed = []
        for threshold in self.thresholds:
            if threshold in self.fired or progress < threshold:
                continue
            self.fired.add(threshold)
            crossed.append(Milestone(threshold, self.messages.get(threshold, f"{threshold}% complete")))
        return crossed
