"""Fixed-period timer with explicit arm/disarm.

Ticks fire by wall-clock time: an asynchronous tick is spawned as its
own task and never awaited by the timer loop, so a slow response does
not delay the next fire.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Optional, Set

from loguru import logger

Tick = Callable[[], Any]


class PollingScheduler:
    def __init__(self, name: str):
        self.name = name
        self.interval: Optional[float] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._armed = False

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self, interval: float, tick: Tick, *, fire_now: bool = False) -> bool:
        """Start firing ``tick`` every ``interval`` seconds.

        With ``fire_now`` the first tick fires as soon as the loop runs
        instead of one interval later. Returns False without side effects
        if already armed. Must be called from inside a running event loop.
        """
        if self._armed:
            return False
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._armed = True
        self.interval = interval
        self._loop_task = asyncio.get_running_loop().create_task(
            self._run(interval, tick, fire_now), name=f"scheduler:{self.name}"
        )
        logger.debug("Armed {} every {:.2f}s", self.name, interval)
        return True

    def disarm(self) -> None:
        """Stop firing and cancel outstanding ticks. Safe to call repeatedly."""
        if not self._armed:
            return
        self._armed = False
        current = asyncio.current_task()
        if self._loop_task is not None and self._loop_task is not current:
            self._loop_task.cancel()
        self._loop_task = None
        for task in list(self._pending):
            # A tick may disarm its own scheduler (terminal status); let it finish.
            if task is not current:
                task.cancel()
        self._pending.clear()
        logger.debug("Disarmed {}", self.name)

    async def _run(self, interval: float, tick: Tick, fire_now: bool) -> None:
        # A loop superseded by disarm() + arm() from inside its own tick
        # is not cancelled; it must notice it is no longer the live loop.
        me = asyncio.current_task()
        if fire_now and self._loop_task is me:
            self._fire(tick)
        while True:
            await asyncio.sleep(interval)
            if self._loop_task is not me:
                return
            self._fire(tick)

    def _fire(self, tick: Tick) -> None:
        try:
            result = tick()
        except Exception:
            logger.exception("Tick for {} raised", self.name)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Tick for {} failed", self.name)
