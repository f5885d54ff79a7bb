"""Shared fixtures: a scripted backend client and fast monitor settings."""

import pytest

from allocwatch.config import Settings
from allocwatch.core.monitor import JobMonitor
from allocwatch.models.job import JobConfig

from fakes import FakeAllocationClient


@pytest.fixture
def fake_client():
    return FakeAllocationClient()


@pytest.fixture
def fast_settings():
    # Long poll intervals keep the timers quiet; tests drive polls by hand.
    return Settings(
        status_interval=3600.0,
        live_matches_interval=3600.0,
        backoff_base=0.0,
        backoff_cap=0.0,
        live_matches_retry_delay=0.0,
        poll_status_on_start=False,
    )


@pytest.fixture
def monitor(fake_client, fast_settings):
    return JobMonitor(fake_client, fast_settings)


@pytest.fixture
def default_config():
    return JobConfig(
        rural_quota=30,
        reserved_quota=50,
        female_quota=33,
        top_k_similarity=10,
        optimization_time=60,
    )
