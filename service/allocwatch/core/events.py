"""Named lifecycle and milestone events for presentation collaborators."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List

from loguru import logger

from ..models.job import MonitorEvent

Subscriber = Callable[[MonitorEvent], None]

STARTED = "started"
MILESTONE = "milestone"
CONNECTION_DEGRADED = "connection_degraded"
CONNECTION_RESTORED = "connection_restored"
COMPLETED = "completed"
FAILED = "failed"
STOPPED = "stopped"


class EventBus:
    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self.history: List[MonitorEvent] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, name: str, **payload) -> MonitorEvent:
        event = MonitorEvent(name=name, payload=payload, emitted_at=datetime.now(timezone.utc))
        self.history.append(event)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber {!r} failed on {} event", callback, name)
        return event

    def clear_history(self) -> None:
        self.history.clear()
