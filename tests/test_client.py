"""Tests for AllocationClient — runs against httpx.MockTransport in-process."""

import json

import httpx
import pytest

from allocwatch.client import AllocationClient
from allocwatch.errors import TransportError, TransportTimeout
from allocwatch.models.job import JobConfig


def make_client(handler) -> AllocationClient:
    return AllocationClient("http://backend.test/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_start_posts_config():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"accepted": True, "message": "Allocation started"})

    async with make_client(handler) as client:
        ack = await client.start_allocation(JobConfig(optimization_time=90))

    assert ack.accepted
    assert seen["path"] == "/api/allocation/start"
    assert seen["body"]["optimization_time"] == 90
    assert seen["body"]["rural_quota"] == 30


@pytest.mark.asyncio
async def test_status_maps_wire_fields():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "running": True,
                "progress": 42.5,
                "stage": "prediction",
                "message": "Predicting placement success",
                "estimated_time": 33,
                "total": 12,
            },
        )

    async with make_client(handler) as client:
        status = await client.get_status()

    assert status.is_running
    assert status.progress_percent == 42.5
    assert status.stage_name == "prediction"
    assert status.estimated_remaining_seconds == 33
    assert status.total_units == 12


@pytest.mark.asyncio
async def test_timeout_becomes_transport_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportTimeout):
            await client.get_status()


@pytest.mark.asyncio
async def test_connection_error_is_not_a_timeout():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.get_status()
    assert not isinstance(exc_info.value, TransportTimeout)


@pytest.mark.asyncio
async def test_http_error_status():
    def handler(request):
        return httpx.Response(503, text="maintenance")

    async with make_client(handler) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.get_status()
    assert exc_info.value.status_code == 503
    assert exc_info.value.detail == "maintenance"


@pytest.mark.asyncio
async def test_malformed_status_payload():
    def handler(request):
        return httpx.Response(200, json={"progress": 250})

    async with make_client(handler) as client:
        with pytest.raises(TransportError, match="Malformed status"):
            await client.get_status()


@pytest.mark.asyncio
async def test_null_progress_and_stage_read_as_defaults():
    def handler(request):
        return httpx.Response(200, json={"running": True, "progress": None, "stage": None, "message": None})

    async with make_client(handler) as client:
        status = await client.get_status()

    assert status.is_running
    assert status.progress_percent == 0.0
    assert status.stage_name == ""
    assert status.message == ""


@pytest.mark.asyncio
async def test_live_matches_without_list_is_empty():
    def handler(request):
        return httpx.Response(200, json={"current_matches": None})

    async with make_client(handler) as client:
        assert await client.get_live_matches() == []


@pytest.mark.asyncio
async def test_live_matches_parsed():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "current_matches": [
                    {
                        "student_id": "STU001",
                        "student_name": "Aarav Sharma",
                        "company": "Zoho",
                        "position": "Product Intern",
                        "similarity_score": 0.81,
                        "success_probability": 0.66,
                    }
                ]
            },
        )

    async with make_client(handler) as client:
        (match,) = await client.get_live_matches()
    assert match.subject_name == "Aarav Sharma"
    assert match.counterparty_name == "Zoho"
    assert match.role_name == "Product Intern"


@pytest.mark.asyncio
async def test_download_returns_bytes():
    def handler(request):
        assert request.url.path == "/api/download/allocations"
        return httpx.Response(200, content=b"student_id\nSTU001\n", headers={"Content-Type": "text/csv"})

    async with make_client(handler) as client:
        assert await client.download_result() == b"student_id\nSTU001\n"
