"""Bounded job-status polling.

``JobPoller`` checks a job's status at a fixed interval until the job
completes, fails, or the attempt budget runs out. Attempts are strictly
sequential: the interval sleep starts only after the previous check has
returned. ``start()`` runs the loop as a task behind a cancelable
``PollHandle``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from voxplan.core.config import get_settings
from voxplan.core.exceptions import (
    PollTimeoutError,
    PollTransportError,
    TranscriptionFailedError,
)
from voxplan.core.models import JobStatus, JobStatusSnapshot, PollAttempt

logger = logging.getLogger(__name__)

NO_TEXT_PLACEHOLDER = "No transcription text available."

StatusFetcher = Callable[[str], Awaitable[JobStatusSnapshot]]
AttemptListener = Callable[[PollAttempt, JobStatusSnapshot], Awaitable[None]]


class PollHandle:
    """Cancelable handle for a poll running in the background."""

    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    def cancel(self) -> bool:
        """Cancel the pending sleep or abort the in-flight status request."""
        return self._task.cancel()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def done(self) -> bool:
        return self._task.done()

    def __await__(self):
        return self._task.__await__()


class JobPoller:
    """Poll a job until a terminal status or the attempt limit.

    Args:
        fetch_status: Coroutine function returning a ``JobStatusSnapshot``.
        interval: Seconds between the end of one check and the next.
        max_attempts: Number of checks before giving up with ``PollTimeoutError``.
        on_attempt: Awaited after every successful check.
        sleep: Sleep coroutine, injectable for tests.
    """

    def __init__(
        self,
        fetch_status: StatusFetcher,
        interval: float | None = None,
        max_attempts: int | None = None,
        on_attempt: AttemptListener | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        settings=None,
    ) -> None:
        settings = settings or get_settings()
        self._fetch_status = fetch_status
        self._interval = interval if interval is not None else settings.poll_interval_seconds
        self._max_attempts = max_attempts or settings.poll_max_attempts
        self._on_attempt = on_attempt
        self._sleep = sleep
        self.attempts: list[PollAttempt] = []

    async def poll(self, job_id: str) -> str:
        """Poll ``job_id`` to completion.

        Returns:
            The transcript text, or a placeholder when the provider returned none.

        Raises:
            TranscriptionFailedError: The provider reported the job as failed.
            PollTimeoutError: No terminal status after ``max_attempts`` checks.
            PollTransportError: A status check failed; it is not retried.
        """
        self.attempts = []
        for attempt_number in range(1, self._max_attempts + 1):
            try:
                snapshot = await self._fetch_status(job_id)
            except Exception as exc:  # any failed check ends the poll
                logger.warning(
                    "Status check %d for job %s failed: %s", attempt_number, job_id, exc
                )
                raise PollTransportError(details=getattr(exc, "details", None) or str(exc)) from exc

            attempt = PollAttempt(
                attempt_number=attempt_number,
                timestamp=datetime.now(UTC),
                observed_status=snapshot.status,
            )
            self.attempts.append(attempt)
            logger.debug("Job %s attempt %d: %s", job_id, attempt_number, snapshot.status)
            if self._on_attempt is not None:
                await self._on_attempt(attempt, snapshot)

            if snapshot.status == JobStatus.completed:
                return snapshot.text or NO_TEXT_PLACEHOLDER
            if snapshot.status == JobStatus.failed:
                raise TranscriptionFailedError(snapshot.error)

            if attempt_number < self._max_attempts:
                await self._sleep(self._interval)

        logger.warning("Job %s still pending after %d checks", job_id, self._max_attempts)
        raise PollTimeoutError(self._max_attempts)

    def start(self, job_id: str) -> PollHandle:
        """Run ``poll(job_id)`` in a background task."""
        return PollHandle(asyncio.get_running_loop().create_task(self.poll(job_id)))
