"""Tests for PollingScheduler — real event loop, short intervals."""

import asyncio

import pytest

from allocwatch.core.scheduler import PollingScheduler


@pytest.mark.asyncio
async def test_fires_until_disarmed():
    calls = []
    scheduler = PollingScheduler("test")
    assert scheduler.arm(0.01, lambda: calls.append(1))
    await asyncio.sleep(0.06)
    scheduler.disarm()
    fired = len(calls)
    assert fired >= 2
    await asyncio.sleep(0.03)
    assert len(calls) == fired
    assert not scheduler.armed


@pytest.mark.asyncio
async def test_rearm_while_armed_is_noop():
    calls = []
    scheduler = PollingScheduler("test")
    assert scheduler.arm(0.02, lambda: calls.append("a"))
    assert not scheduler.arm(0.001, lambda: calls.append("b"))
    await asyncio.sleep(0.07)
    scheduler.disarm()
    assert "b" not in calls
    assert scheduler.interval == 0.02


def test_disarm_when_never_armed():
    scheduler = PollingScheduler("test")
    scheduler.disarm()
    scheduler.disarm()
    assert not scheduler.armed


@pytest.mark.asyncio
async def test_disarm_is_idempotent_and_allows_rearm():
    scheduler = PollingScheduler("test")
    scheduler.arm(0.01, lambda: None)
    scheduler.disarm()
    scheduler.disarm()
    assert scheduler.arm(0.01, lambda: None)
    scheduler.disarm()


@pytest.mark.asyncio
async def test_slow_tick_does_not_delay_next_fire():
    started = []

    async def slow_tick():
        started.append(asyncio.get_running_loop().time())
        await asyncio.sleep(0.2)

    scheduler = PollingScheduler("slow")
    scheduler.arm(0.02, slow_tick)
    await asyncio.sleep(0.11)
    scheduler.disarm()
    assert len(started) >= 3


@pytest.mark.asyncio
async def test_disarm_cancels_outstanding_ticks():
    finished = []

    async def slow_tick():
        await asyncio.sleep(0.5)
        finished.append(True)

    scheduler = PollingScheduler("slow")
    scheduler.arm(0.01, slow_tick)
    await asyncio.sleep(0.03)
    scheduler.disarm()
    await asyncio.sleep(0.05)
    assert finished == []


@pytest.mark.asyncio
async def test_failing_tick_keeps_timer_alive():
    calls = []

    def flaky():
        calls.append(1)
        raise ValueError("boom")

    scheduler = PollingScheduler("flaky")
    scheduler.arm(0.01, flaky)
    await asyncio.sleep(0.05)
    scheduler.disarm()
    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_rejects_non_positive_interval():
    scheduler = PollingScheduler("bad")
    with pytest.raises(ValueError):
        scheduler.arm(0, lambda: None)
    assert not scheduler.armed


@pytest.mark.asyncio
async def test_rearm_from_inside_tick_keeps_one_loop():
    scheduler = PollingScheduler("rearm")
    calls = []

    def tick():
        calls.append(asyncio.get_running_loop().time())
        if len(calls) == 1:
            scheduler.disarm()
            scheduler.arm(0.05, tick)

    scheduler.arm(0.05, tick)
    await asyncio.sleep(0.5)
    scheduler.disarm()
    assert len(calls) <= 11


@pytest.mark.asyncio
async def test_fire_now_ticks_before_first_interval():
    calls = []
    scheduler = PollingScheduler("eager")
    scheduler.arm(10.0, lambda: calls.append(1), fire_now=True)
    await asyncio.sleep(0.01)
    scheduler.disarm()
    assert calls == [1]
