import httpx
import pytest

from allocwatch import cli
from allocwatch.client import AllocationClient


def test_watch_defaults_match_job_config():
    args = cli.build_parser().parse_args(["watch", "--optimization-time", "90"])
    assert args.command == "watch"
    assert args.optimization_time == 90
    assert args.rural_quota == 30
    assert args.top_k_similarity == 10


def test_download_output_option():
    args = cli.build_parser().parse_args(["download", "--output", "out.csv"])
    assert str(args.output) == "out.csv"


@pytest.mark.asyncio
async def test_download_writes_csv(monkeypatch, tmp_path, fast_settings):
    def handler(request):
        return httpx.Response(200, content=b"student_id\nSTU001\n")

    monkeypatch.setattr(
        cli, "_client", lambda settings: AllocationClient("http://backend.test", transport=httpx.MockTransport(handler))
    )
    target = tmp_path / "allocations.csv"

    await cli.download(fast_settings, target)

    assert target.read_bytes() == b"student_id\nSTU001\n"


def test_main_reports_unreachable_backend(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    monkeypatch.setattr(
        cli, "_client", lambda settings: AllocationClient("http://backend.test", transport=httpx.MockTransport(handler))
    )
    assert cli.main(["status"]) == 1
