"""Tests for ProgressEstimator — pure, no timers involved."""

import pytest

from allocwatch.core.estimator import ProgressEstimator

from fakes import running


@pytest.fixture
def estimator():
    return ProgressEstimator(tick_interval=0.5, ceiling=90.0, reestimate_tolerance=10.0)


def _tick(estimator, seconds):
    for _ in range(int(seconds / estimator.tick_interval)):
        estimator.tick()


def test_sixty_second_budget_is_midway_after_thirty_seconds(estimator):
    estimator.start(60 + 60)
    _tick(estimator, 30)
    assert 0 < estimator.value < 90
    assert estimator.value == pytest.approx(22.5)


def test_reaches_ceiling_at_assumed_duration(estimator):
    estimator.start(120)
    _tick(estimator, 120)
    assert estimator.value == pytest.approx(90.0)


def test_never_passes_ceiling(estimator):
    estimator.start(10)
    _tick(estimator, 600)
    assert estimator.value == 90.0


def test_authoritative_progress_raises_estimate(estimator):
    estimator.start(120)
    _tick(estimator, 10)
    assert estimator.reconcile(running(40)) == 40


def test_lower_authoritative_progress_is_ignored(estimator):
    estimator.start(120)
    estimator.reconcile(running(40))
    estimator.reconcile(running(12))
    assert estimator.value == 40


def test_authoritative_progress_may_pass_ceiling_while_running(estimator):
    estimator.start(120)
    estimator.reconcile(running(95))
    estimator.tick()
    assert estimator.value == 95


def test_non_decreasing_over_mixed_reports(estimator):
    estimator.start(120)
    seen = []
    for reported in [30, 10, 50, 45, 0, 70, 65]:
        estimator.tick()
        seen.append(estimator.value)
        estimator.reconcile(running(reported))
        seen.append(estimator.value)
    assert seen == sorted(seen)


def test_large_eta_drift_reschedules_without_regression(estimator):
    estimator.start(120)
    _tick(estimator, 10)
    before = estimator.value
    assert before == pytest.approx(7.5)

    # 10s elapsed + 20s remaining implies 30s total, far from the assumed 120s.
    estimator.reconcile(running(0, estimated_time=20))

    assert estimator.value == before
    assert estimator.total_duration == pytest.approx(30)
    _tick(estimator, 20)
    assert estimator.value == pytest.approx(90.0)


def test_small_eta_drift_keeps_schedule(estimator):
    estimator.start(120)
    _tick(estimator, 10)
    increment = estimator.increment
    estimator.reconcile(running(0, estimated_time=115))
    assert estimator.total_duration == 120
    assert estimator.increment == increment


def test_remaining_seconds(estimator):
    assert estimator.remaining_seconds is None
    estimator.start(120)
    _tick(estimator, 30)
    assert estimator.remaining_seconds == pytest.approx(90)


def test_complete_forces_hundred_and_freezes(estimator):
    estimator.start(120)
    _tick(estimator, 5)
    estimator.complete()
    estimator.tick()
    assert estimator.value == 100.0


def test_freeze_holds_last_value(estimator):
    estimator.start(120)
    _tick(estimator, 5)
    held = estimator.value
    estimator.freeze()
    estimator.tick()
    estimator.reconcile(running(80))
    assert estimator.value == held


def test_start_resets_previous_run(estimator):
    estimator.start(120)
    estimator.reconcile(running(60))
    estimator.complete()
    estimator.start(120)
    assert estimator.value == 0
    assert not estimator.frozen
