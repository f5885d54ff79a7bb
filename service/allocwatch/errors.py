"""Exception taxonomy for the job monitor.

Transport failures are transient and retried inside the status channel.
Only ``SubmissionError`` and ``JobFailed`` reach the user as terminal
failures; ``ConnectionDegraded`` is surfaced as a non-fatal flag.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models.job import JobStatus


class MonitorError(RuntimeError):
    """Base class for allocwatch errors."""


class TransportError(MonitorError):
    """A request to the backend failed or returned an unexpected status."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.detail = detail
        self.status_code = status_code
        prefix = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(f"{prefix}{detail}")


class TransportTimeout(TransportError):
    """The backend did not answer within the request timeout."""


class ConnectionDegraded(MonitorError):
    """Retry budget for one polling stream is exhausted."""

    def __init__(self, stream: str, attempts: int, last_error: TransportError):
        self.stream = stream
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{stream} unavailable after {attempts} attempts: {last_error}")


class SubmissionError(MonitorError):
    """The backend rejected the job or the submission request failed."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class JobFailed(MonitorError):
    """The backend stopped the job before it reached 100%."""

    def __init__(self, status: "JobStatus"):
        self.status = status
        reason = status.message or status.stage_name or "no reason given"
        super().__init__(f"Job stopped at {status.progress_percent:.0f}%: {reason}")


class InvalidTransition(MonitorError):
    """A command was issued in a lifecycle state that does not accept it."""
