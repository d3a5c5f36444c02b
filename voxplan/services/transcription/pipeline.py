"""Submission pipeline: upload -> start job -> poll.

Takes a stopped ``RecordingSession`` and drives its audio through a
transcription provider. The pipeline is single-flight: a second submission
while one is running is rejected. ``cancel()`` aborts whatever step is
currently awaiting I/O; after cancellation no callback fires.

Usage::

    pipeline = SubmissionPipeline(client, on_job_status_change=show_status)
    text = await pipeline.submit(session)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from voxplan.core.exceptions import (
    JobStartFailedError,
    NoAudioRecordedError,
    ProviderRequestError,
    SubmissionInProgressError,
    UploadFailedError,
    VoxPlanError,
)
from voxplan.core.models import AudioBlob, JobStatusSnapshot, PollAttempt, TranscriptionJob
from voxplan.services.recording.session import RecordingSession
from voxplan.services.transcription.base import BaseTranscriptionClient
from voxplan.services.transcription.poller import NO_TEXT_PLACEHOLDER, JobPoller

logger = logging.getLogger(__name__)

JobListener = Callable[[TranscriptionJob], Awaitable[None]]
TextListener = Callable[[str], Awaitable[None]]
ErrorListener = Callable[[VoxPlanError], Awaitable[None]]


class SubmissionPipeline:
    """Drives one recording at a time through a transcription provider.

    Args:
        client: Provider client used for upload, job start and status checks.
        interval: Poll interval override (seconds).
        max_attempts: Poll attempt limit override.
        on_job_status_change: Awaited whenever the tracked job changes status.
        on_completed: Awaited with the final text.
        on_failed: Awaited with the error before it is re-raised.
    """

    def __init__(
        self,
        client: BaseTranscriptionClient,
        interval: float | None = None,
        max_attempts: int | None = None,
        on_job_status_change: JobListener | None = None,
        on_completed: TextListener | None = None,
        on_failed: ErrorListener | None = None,
        settings=None,
    ) -> None:
        self._client = client
        self._on_job_status_change = on_job_status_change
        self._on_completed = on_completed
        self._on_failed = on_failed
        self._poller = JobPoller(
            client.fetch_status,
            interval=interval,
            max_attempts=max_attempts,
            on_attempt=self._handle_attempt,
            settings=settings,
        )
        self._task: asyncio.Task | None = None
        self.job: TranscriptionJob | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def attempts(self) -> list[PollAttempt]:
        return self._poller.attempts

    async def submit(self, session: RecordingSession) -> str:
        """Transcribe the finalized audio of ``session``.

        Raises:
            NoAudioRecordedError: The session has no final audio; nothing is sent.
            SubmissionInProgressError: Another submission is still running.
            UploadFailedError, JobStartFailedError: Provider rejected a step.
            TranscriptionFailedError, PollTimeoutError, PollTransportError: From polling.
        """
        return await self.submit_audio(session.final_audio)

    async def submit_audio(self, audio: AudioBlob | None) -> str:
        if audio is None:
            error = NoAudioRecordedError()
            await self._emit(self._on_failed, error)
            raise error
        return await self._single_flight(lambda: self._upload_and_transcribe(audio))

    async def submit_url(self, audio_url: str) -> str:
        """Transcribe audio the provider can already reach (skips the upload)."""
        return await self._single_flight(lambda: self._transcribe(audio_url))

    def cancel(self) -> None:
        """Abort the running submission, if any."""
        if self.in_flight:
            logger.info("Cancelling submission for job %s", self.job.id if self.job else "-")
            self._task.cancel()
        # A new submission may start before the cancelled task unwinds
        self._task = None

    def reset(self) -> None:
        """Cancel and forget the tracked job."""
        self.cancel()
        self.job = None

    # -- internals --

    async def _single_flight(self, work: Callable[[], Coroutine[Any, Any, str]]) -> str:
        if self.in_flight:
            raise SubmissionInProgressError()
        task = asyncio.get_running_loop().create_task(self._reported(work()))
        self._task = task
        try:
            return await task
        finally:
            if self._task is task:
                self._task = None

    async def _reported(self, coro: Coroutine[Any, Any, str]) -> str:
        try:
            text = await coro
        except VoxPlanError as exc:
            logger.warning("Submission failed: %s (%s)", exc.detail, exc.code)
            await self._emit(self._on_failed, exc)
            raise
        await self._emit(self._on_completed, text)
        return text

    async def _upload_and_transcribe(self, audio: AudioBlob) -> str:
        self.job = None
        try:
            audio_url = await self._client.upload_audio(audio)
        except ProviderRequestError as exc:
            raise UploadFailedError(details=exc.details or exc.detail) from exc
        return await self._transcribe(audio_url)

    async def _transcribe(self, audio_url: str) -> str:
        try:
            job_id = await self._client.start_job(audio_url)
        except ProviderRequestError as exc:
            raise JobStartFailedError(details=exc.details or exc.detail) from exc

        self.job = TranscriptionJob(id=job_id)
        await self._emit(self._on_job_status_change, self.job)
        return await self._poller.poll(job_id)

    async def _handle_attempt(self, attempt: PollAttempt, snapshot: JobStatusSnapshot) -> None:
        if self.job is None:
            return
        changed = self.job.advance(
            snapshot.status,
            result_text=snapshot.text or NO_TEXT_PLACEHOLDER,
            error=snapshot.error,
        )
        if changed:
            await self._emit(self._on_job_status_change, self.job)

    async def _emit(self, listener, payload) -> None:
        if listener is None:
            return
        try:
            await listener(payload)
        except Exception:
            logger.warning("Pipeline listener failed (non-fatal)", exc_info=True)
