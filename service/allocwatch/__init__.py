from .app import create_app
from .client import AllocationClient
from .core.monitor import JobMonitor
from .models.job import JobConfig, JobPhase

__all__ = ["AllocationClient", "JobConfig", "JobMonitor", "JobPhase", "create_app"]
