"""JobMonitor — lifecycle controller for a remotely executed allocation job.

Owns the lifecycle phase, the progress estimate, the milestone set and
the three timers (status poll, live-match poll, estimator tick). Other
components only read state or propose updates through this class.

Phases::

    idle -> starting -> running -> completed | failed
      ^__________________|______________________|   (next start / stop)

Every run carries a run id. ``stop()`` and ``start()`` bump it, so a
response that resolves for an older run is dropped instead of
resurrecting its state.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional

from loguru import logger

from ..client import AllocationClient
from ..config import Settings, get_settings
from ..errors import ConnectionDegraded, InvalidTransition, JobFailed, SubmissionError, TransportError
from ..models.job import JobConfig, JobPhase, JobStatus, LiveMatch, MonitorSnapshot
from . import events
from .channel import StatusChannel
from .estimator import ProgressEstimator
from .events import EventBus
from .milestones import MilestoneNotifier
from .retry import live_matches_policy, status_policy
from .scheduler import PollingScheduler

ACTIVE_PHASES = {JobPhase.starting, JobPhase.running}


class JobMonitor:
    def __init__(
        self,
        client: AllocationClient,
        settings: Optional[Settings] = None,
        *,
        channel: Optional[StatusChannel] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self._clock = clock
        self._channel = channel or StatusChannel(
            client,
            status_retry=status_policy(
                self.settings.status_timeout_attempts,
                self.settings.status_error_attempts,
                self.settings.backoff_base,
                self.settings.backoff_cap,
            ),
            live_matches_retry=live_matches_policy(
                self.settings.live_matches_attempts, self.settings.live_matches_retry_delay
            ),
        )
        self.events = EventBus()
        self._estimator = ProgressEstimator(
            tick_interval=self.settings.estimator_interval,
            ceiling=self.settings.progress_ceiling,
            reestimate_tolerance=self.settings.reestimate_tolerance,
        )
        self._milestones = MilestoneNotifier(self.settings.milestones)

        self.status_poller = PollingScheduler("status")
        self.live_matches_poller = PollingScheduler("live-matches")
        self.progress_timer = PollingScheduler("progress")

        self._run_id = 0
        self._phase = JobPhase.idle
        self._clear_run_state()

    # -- observables --

    @property
    def phase(self) -> JobPhase:
        return self._phase

    @property
    def progress(self) -> float:
        return min(100.0, max(0.0, self._estimator.value))

    @property
    def stage(self) -> str:
        return self._stage

    @property
    def message(self) -> str:
        return self._message

    @property
    def live_matches(self) -> List[LiveMatch]:
        return list(self._live_matches)

    @property
    def connection_degraded(self) -> bool:
        return self._connection_degraded

    @property
    def last_status(self) -> Optional[JobStatus]:
        return self._last_status

    @property
    def last_error(self) -> Optional[Exception]:
        return self._last_error

    @property
    def milestones_fired(self) -> List[int]:
        return sorted(self._milestones.fired)

    @property
    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._clock()
        return max(0.0, end - self._started_at)

    @property
    def estimated_remaining_seconds(self) -> Optional[float]:
        if self._phase is not JobPhase.running:
            return None
        return self._estimator.remaining_seconds

    def snapshot(self) -> MonitorSnapshot:
        return MonitorSnapshot(
            phase=self._phase,
            progress=self.progress,
            stage=self._stage,
            message=self._message,
            live_matches=self.live_matches,
            connection_degraded=self._connection_degraded,
            elapsed_seconds=self.elapsed_seconds,
            estimated_remaining_seconds=self.estimated_remaining_seconds,
            milestones=self.milestones_fired,
        )

    # -- commands --

    async def start(self, config: JobConfig) -> None:
        """Submit ``config`` and begin monitoring.

        Raises ``SubmissionError`` if the backend rejects the job or the
        request fails; the monitor is then back in ``idle``.
        """
        if self._phase in ACTIVE_PHASES:
            raise InvalidTransition(f"Cannot start while {self._phase.value}")

        self._teardown()
        self._clear_run_state()
        self.events.clear_history()
        self._run_id += 1
        run_id = self._run_id
        self._phase = JobPhase.starting
        logger.info("Submitting allocation job: {}", config.model_dump())

        try:
            ack = await self._client.start_allocation(config)
        except TransportError as exc:
            if run_id == self._run_id:
                self._phase = JobPhase.idle
            logger.error("Job submission failed: {}", exc)
            raise SubmissionError(f"Failed to start allocation: {exc}") from exc

        if run_id != self._run_id:
            logger.info("Submission answered after stop; ignoring")
            return
        if not ack.accepted:
            self._phase = JobPhase.idle
            raise SubmissionError(ack.message or "Allocation request was not accepted")

        self._phase = JobPhase.running
        self._started_at = self._clock()
        self._channel.reset()
        self._estimator.start(config.optimization_time + self.settings.duration_buffer)
        self.status_poller.arm(
            self.settings.status_interval, self.refresh_status, fire_now=self.settings.poll_status_on_start
        )
        self.progress_timer.arm(self.settings.estimator_interval, self.advance_estimate)
        logger.info("Allocation job running (assumed duration {:.0f}s)", self._estimator.total_duration)
        self.events.emit(events.STARTED, config=config.model_dump())

    def stop(self) -> None:
        """Abandon monitoring locally. The backend job is left alone."""
        previous = self._phase
        self._run_id += 1
        self._teardown()
        self._clear_run_state()
        self._phase = JobPhase.idle
        if previous is not JobPhase.idle:
            logger.info("Monitoring stopped (was {})", previous.value)
            self.events.emit(events.STOPPED, previous_phase=previous.value)

    # -- timer callbacks --

    def advance_estimate(self) -> None:
        if self._phase is not JobPhase.running:
            return
        self._estimator.tick()
        self._on_progress()

    async def refresh_status(self) -> None:
        """Poll the status once. Skipped while a previous poll is outstanding."""
        if self._phase is not JobPhase.running:
            return
        if self._status_in_flight:
            logger.debug("Status poll still outstanding; skipping tick")
            return
        run_id = self._run_id
        self._status_in_flight = True
        try:
            status = await self._channel.fetch_status()
        except ConnectionDegraded as exc:
            if self._is_current(run_id):
                self._mark_degraded(exc)
            return
        finally:
            if run_id == self._run_id:
                self._status_in_flight = False

        if not self._is_current(run_id):
            logger.debug("Discarding status for a finished or abandoned run")
            return
        self._apply_status(status)

    async def refresh_live_matches(self) -> None:
        if self._phase is not JobPhase.running or self._live_in_flight:
            return
        run_id = self._run_id
        self._live_in_flight = True
        try:
            matches = await self._channel.fetch_live_matches()
        except (ConnectionDegraded, TransportError) as exc:
            logger.warning("Live matches unavailable: {}", exc)
            matches = []
        finally:
            if run_id == self._run_id:
                self._live_in_flight = False

        if self._is_current(run_id):
            self._live_matches = matches

    # -- internals --

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id and self._phase is JobPhase.running

    def _apply_status(self, status: JobStatus) -> None:
        self._last_status = status
        self._stage = status.stage_name
        self._message = status.message
        if self._connection_degraded:
            self._connection_degraded = False
            self._last_error = None
            logger.info("Status channel recovered")
            self.events.emit(events.CONNECTION_RESTORED)

        if status.is_running:
            self._estimator.reconcile(status)
            self._on_progress()
            return
        self._finish(status)

    def _on_progress(self) -> None:
        for milestone in self._milestones.observe(self.progress):
            logger.info("Milestone {}%: {}", milestone.threshold, milestone.message)
            self.events.emit(events.MILESTONE, threshold=milestone.threshold, message=milestone.message)
        if self.progress > self.settings.live_matches_threshold:
            self.live_matches_poller.arm(self.settings.live_matches_interval, self.refresh_live_matches)

    def _finish(self, status: JobStatus) -> None:
        self._teardown()
        self._finished_at = self._clock()
        if status.progress_percent >= 100:
            self._estimator.complete()
            self._phase = JobPhase.completed
            logger.info("Allocation completed in {:.0f}s", self.elapsed_seconds)
            self.events.emit(events.COMPLETED, elapsed_seconds=self.elapsed_seconds)
        else:
            self._estimator.freeze()
            self._phase = JobPhase.failed
            self._last_error = JobFailed(status)
            logger.error("Allocation failed: {}", self._last_error)
            self.events.emit(events.FAILED, error=self._last_error, progress=self.progress)

    def _mark_degraded(self, exc: ConnectionDegraded) -> None:
        self._last_error = exc
        if self._connection_degraded:
            return
        self._connection_degraded = True
        logger.warning("Connection degraded; still polling: {}", exc)
        self.events.emit(events.CONNECTION_DEGRADED, attempts=exc.attempts, error=str(exc.last_error))

    def _teardown(self) -> None:
        self.status_poller.disarm()
        self.live_matches_poller.disarm()
        self.progress_timer.disarm()

    def _clear_run_state(self) -> None:
        self._estimator.reset()
        self._milestones.reset()
        self._channel.reset()
        self._stage = ""
        self._message = ""
        self._live_matches: List[LiveMatch] = []
        self._connection_degraded = False
        self._last_status: Optional[JobStatus] = None
        self._last_error: Optional[Exception] = None
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None
        self._status_in_flight = False
        self._live_in_flight = False
