"""Status channel: authoritative status and live-match reads with retry.

Retries run inside the calling poll, never inside the scheduler, so a
slow retry sequence does not stop the next timer from firing.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, TypeVar

from loguru import logger

from ..client import AllocationClient
from ..errors import ConnectionDegraded, TransportError, TransportTimeout
from ..models.job import JobStatus, LiveMatch
from .retry import RetryPolicy, RetryState, live_matches_policy, status_policy

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class StatusChannel:
    def __init__(
        self,
        client: AllocationClient,
        *,
        status_retry: Optional[RetryPolicy] = None,
        live_matches_retry: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._client = client
        self._status_policy = status_retry or status_policy()
        self._live_policy = live_matches_retry or live_matches_policy()
        self._sleep = sleep
        self.status_state = RetryState()
        self.live_matches_state = RetryState()

    def reset(self) -> None:
        self.status_state.reset()
        self.live_matches_state.reset()

    async def fetch_status(self) -> JobStatus:
        """Fetch job status, retrying transient failures.

        Raises ``ConnectionDegraded`` once the policy's budget for the
        latest failure kind is spent.
        """
        return await self._with_retry("status", self._client.get_status, self._status_policy, self.status_state)

    async def fetch_live_matches(self) -> List[LiveMatch]:
        """Fetch live matches; a timeout yields an empty list instead of an error."""
        return await self._with_retry(
            "live matches", self._live_matches_or_empty, self._live_policy, self.live_matches_state
        )

    async def _live_matches_or_empty(self) -> List[LiveMatch]:
        try:
            return await self._client.get_live_matches()
        except TransportTimeout:
            logger.warning("Live matches request timed out, skipping")
            return []

    async def _with_retry(
        self,
        stream: str,
        fetch: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        state: RetryState,
    ) -> T:
        attempt = 0
        while True:
            try:
                result = await fetch()
            except TransportError as exc:
                kind = policy.classify(exc)
                delay = policy.delay(attempt)
                attempt += 1
                state.record_failure(kind, delay)
                if attempt >= policy.attempts_for(kind):
                    logger.warning("{} request failed {} time(s), giving up: {}", stream, attempt, exc)
                    raise ConnectionDegraded(stream, attempt, exc) from exc
                logger.debug("{} request failed ({}), retrying in {:.1f}s: {}", stream, kind.value, delay, exc)
                await self._sleep(delay)
            else:
                state.reset()
                return result
