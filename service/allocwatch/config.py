from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """allocwatch global configuration."""

    model_config = SettingsConfigDict(env_prefix="ALLOCWATCH_", env_file=".env", env_file_encoding="utf-8")

    base_url: str = Field(default="http://localhost:8000")
    request_timeout: float = Field(default=30.0, description="Timeout for polling requests, seconds")
    submit_timeout: float = Field(default=10.0, description="Timeout for job submission; kept short so start fails fast")

    # Polling cadence (seconds)
    status_interval: float = Field(default=2.0)
    live_matches_interval: float = Field(default=3.0)
    estimator_interval: float = Field(default=0.5)
    poll_status_on_start: bool = Field(default=True, description="Poll status once as soon as the job is accepted")

    # Progress estimation
    progress_ceiling: float = Field(default=90.0, description="Simulated progress never passes this without backend confirmation")
    duration_buffer: float = Field(default=60.0, description="Added to optimization_time to estimate total job duration")
    reestimate_tolerance: float = Field(default=10.0, description="Backend ETA drift (s) that restarts the estimate schedule")
    live_matches_threshold: float = Field(default=10.0, description="Progress above which live matches are polled")
    milestones: List[int] = Field(default_factory=lambda: [25, 50, 75])

    # Retry budget
    status_timeout_attempts: int = Field(default=5)
    status_error_attempts: int = Field(default=3)
    live_matches_attempts: int = Field(default=2)
    live_matches_retry_delay: float = Field(default=1.0)
    backoff_base: float = Field(default=1.0)
    backoff_cap: float = Field(default=5.0)

    log_level: str = Field(default="INFO")

    # Synthetic backend for local development
    sandbox_host: str = Field(default="127.0.0.1")
    sandbox_port: int = Field(default=8000)
    sandbox_speedup: float = Field(default=1.0, description="Divides the synthetic job duration")


@lru_cache
def get_settings() -> Settings:
    return Settings()
