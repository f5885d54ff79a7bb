from .channel import StatusChannel
from .estimator import ProgressEstimator
from .events import EventBus
from .milestones import MilestoneNotifier
from .monitor import JobMonitor
from .retry import RetryPolicy, RetryState
from .scheduler import PollingScheduler

__all__ = [
    "EventBus",
    "JobMonitor",
    "MilestoneNotifier",
    "PollingScheduler",
    "ProgressEstimator",
    "RetryPolicy",
    "RetryState",
    "StatusChannel",
]
