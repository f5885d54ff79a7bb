"""AllocationClient — async HTTP client for the allocation backend.

Thin wrappers over the backend endpoints. Every transport failure is
translated into ``TransportTimeout`` or ``TransportError`` so callers
never see ``httpx`` exceptions.

Usage::

    from allocwatch.client import AllocationClient
    from allocwatch.models.job import JobConfig

    async with AllocationClient("http://localhost:8000") as client:
        ack = await client.start_allocation(JobConfig(optimization_time=60))
        status = await client.get_status()
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from .errors import TransportError, TransportTimeout
from .models.job import JobConfig, JobStatus, LatestResult, LiveMatch, StartAck


class AllocationClient:
    """Asynchronous HTTP client for the allocation API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        submit_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.submit_timeout = submit_timeout
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def aclose(self):
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    # -- helpers --

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransportTimeout(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        if not resp.is_success:
            raise TransportError(resp.text[:500], status_code=resp.status_code)
        return resp

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        resp = await self._request(method, path, **kwargs)
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"{method} {path} returned invalid JSON") from exc

    # -- Health --

    async def health(self) -> Dict[str, Any]:
        """GET /health — backend liveness."""
        return await self._json("GET", "/health")

    # -- Allocation job --

    async def start_allocation(self, config: JobConfig) -> StartAck:
        """POST /api/allocation/start — submit a job with the short submit timeout."""
        data = await self._json(
            "POST",
            "/api/allocation/start",
            json=config.model_dump(),
            timeout=self.submit_timeout,
        )
        return _parse(StartAck, data or {}, "start")

    async def get_status(self) -> JobStatus:
        """GET /api/allocation/status — authoritative job status."""
        data = await self._json("GET", "/api/allocation/status")
        return _parse(JobStatus, data, "status")

    async def get_live_matches(self) -> List[LiveMatch]:
        """GET /api/allocation/live-matches — provisional matches, possibly empty."""
        data = await self._json("GET", "/api/allocation/live-matches")
        matches = data.get("current_matches") if isinstance(data, dict) else None
        if not isinstance(matches, list):
            logger.debug("Live matches payload has no current_matches list")
            return []
        return [_parse(LiveMatch, item, "live match") for item in matches]

    # -- Results --

    async def get_latest_result(self) -> LatestResult:
        """GET /api/allocations/latest — final allocations of the last run."""
        data = await self._json("GET", "/api/allocations/latest")
        return _parse(LatestResult, data, "latest result")

    async def download_result(self) -> bytes:
        """GET /api/download/allocations — CSV export of the last run."""
        resp = await self._request("GET", "/api/download/allocations")
        return resp.content


def _parse(model, data: Any, what: str):
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise TransportError(f"Malformed {what} payload: {exc.error_count()} validation error(s)") from exc
