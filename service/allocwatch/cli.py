"""Command line entry points.

    allocwatch watch --optimization-time 60
    allocwatch status
    allocwatch results
    allocwatch download --output allocations.csv
    allocwatch sandbox
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .client import AllocationClient
from .config import Settings, get_settings
from .core import events
from .core.monitor import JobMonitor
from .errors import MonitorError
from .models.job import JobConfig, JobPhase, MonitorEvent

TERMINAL_EVENTS = {events.COMPLETED, events.FAILED, events.STOPPED}


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _client(settings: Settings) -> AllocationClient:
    return AllocationClient(
        settings.base_url,
        timeout=settings.request_timeout,
        submit_timeout=settings.submit_timeout,
    )


def _log_event(event: MonitorEvent) -> None:
    if event.name == events.MILESTONE:
        logger.info("{}% - {}", event.payload["threshold"], event.payload["message"])
    elif event.name == events.FAILED:
        logger.error("Allocation failed: {}", event.payload["error"])
    else:
        logger.info("Event {}: {}", event.name, event.payload)


async def watch(settings: Settings, config: JobConfig, report_every: float = 5.0) -> JobPhase:
    async with _client(settings) as client:
        monitor = JobMonitor(client, settings)
        done = asyncio.Event()

        def on_event(event: MonitorEvent) -> None:
            _log_event(event)
            if event.name in TERMINAL_EVENTS:
                done.set()

        monitor.events.subscribe(on_event)
        await monitor.start(config)
        try:
            while not done.is_set():
                try:
                    await asyncio.wait_for(done.wait(), timeout=report_every)
                except asyncio.TimeoutError:
                    snap = monitor.snapshot()
                    logger.info(
                        "{:5.1f}% [{}] {}{}",
                        snap.progress,
                        snap.stage or "-",
                        snap.message,
                        " (connection degraded)" if snap.connection_degraded else "",
                    )
        finally:
            if monitor.phase is JobPhase.running:
                monitor.stop()
        return monitor.phase


async def show_status(settings: Settings) -> None:
    async with _client(settings) as client:
        status = await client.get_status()
    print(status.model_dump_json(indent=2))


async def show_results(settings: Settings) -> None:
    async with _client(settings) as client:
        result = await client.get_latest_result()
    print(f"{result.total} allocation(s)")
    for match in result.allocations:
        print(
            f"{match.subject_name:<20} {match.counterparty_name:<28} {match.role_name:<30} "
            f"sim={match.similarity_score:.1%} success={match.success_probability:.1%}"
        )


async def download(settings: Settings, output: Path) -> Path:
    async with _client(settings) as client:
        content = await client.download_result()
    output.write_bytes(content)
    logger.info("Wrote {} bytes to {}", len(content), output)
    return output


def serve_sandbox(settings: Settings) -> None:
    import uvicorn

    uvicorn.run(
        "allocwatch.app:create_app",
        host=settings.sandbox_host,
        port=settings.sandbox_port,
        factory=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="allocwatch", description="Allocation job monitor")
    parser.add_argument("--base-url", help="Backend URL (default from ALLOCWATCH_BASE_URL)")
    sub = parser.add_subparsers(dest="command", required=True)

    defaults = JobConfig()
    w = sub.add_parser("watch", help="Start an allocation and follow it to completion")
    w.add_argument("--rural-quota", type=float, default=defaults.rural_quota)
    w.add_argument("--reserved-quota", type=float, default=defaults.reserved_quota)
    w.add_argument("--female-quota", type=float, default=defaults.female_quota)
    w.add_argument("--top-k-similarity", type=int, default=defaults.top_k_similarity)
    w.add_argument("--optimization-time", type=float, default=defaults.optimization_time)

    sub.add_parser("status", help="Print the current job status")
    sub.add_parser("results", help="Print the latest allocation results")
    d = sub.add_parser("download", help="Download the latest allocations as CSV")
    d.add_argument("--output", type=Path, default=Path("allocations.csv"))
    sub.add_parser("sandbox", help="Serve the synthetic allocation backend")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.base_url:
        settings = settings.model_copy(update={"base_url": args.base_url})
    configure_logging(settings.log_level)

    if args.command == "sandbox":
        serve_sandbox(settings)
        return 0

    try:
        if args.command == "watch":
            config = JobConfig(
                rural_quota=args.rural_quota,
                reserved_quota=args.reserved_quota,
                female_quota=args.female_quota,
                top_k_similarity=args.top_k_similarity,
                optimization_time=args.optimization_time,
            )
            phase = asyncio.run(watch(settings, config))
            return 0 if phase is JobPhase.completed else 1
        if args.command == "status":
            asyncio.run(show_status(settings))
        elif args.command == "results":
            asyncio.run(show_results(settings))
        elif args.command == "download":
            asyncio.run(download(settings, args.output))
    except MonitorError as exc:
        logger.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
