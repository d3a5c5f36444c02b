"""
VoxPlan exception hierarchy.

All application-specific exceptions inherit from VoxPlanError,
enabling centralized error handling in the API middleware layer.
``details`` carries the provider-supplied payload when one is available.
"""

from datetime import UTC, datetime
from typing import Any


class VoxPlanError(Exception):
    """Base exception for all VoxPlan errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOXPLAN_ERROR",
        status_code: int = 500,
        details: Any = None,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.details = details
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


class DeviceUnavailableError(VoxPlanError):
    """Raised when the microphone cannot be acquired (no device, denied, busy)."""

    def __init__(self, detail: str = "Microphone is unavailable", details: Any = None) -> None:
        super().__init__(
            detail=detail,
            code="DEVICE_UNAVAILABLE",
            status_code=503,
            details=details,
        )


class RecordingAlreadyActiveError(VoxPlanError):
    """Raised when trying to start a recording while one is already active."""

    def __init__(self) -> None:
        super().__init__(
            detail="A recording is already active",
            code="RECORDING_ALREADY_ACTIVE",
            status_code=409,
        )


class NoAudioRecordedError(VoxPlanError):
    """Raised when submission is requested before any audio was captured."""

    def __init__(self) -> None:
        super().__init__(
            detail="No audio recorded. Please record audio first.",
            code="NO_AUDIO_RECORDED",
            status_code=400,
        )


# ---------------------------------------------------------------------------
# Transcription
# ---------------------------------------------------------------------------


class ProviderRequestError(VoxPlanError):
    """Raised by provider clients when an HTTP call fails.

    ``timed_out`` is set for timeout-class transport failures so callers
    can decide whether a retry makes sense.
    """

    def __init__(
        self,
        detail: str = "Provider request failed",
        details: Any = None,
        timed_out: bool = False,
    ) -> None:
        self.timed_out = timed_out
        super().__init__(
            detail=detail,
            code="PROVIDER_REQUEST_FAILED",
            status_code=504 if timed_out else 502,
            details=details,
        )


class SubmissionInProgressError(VoxPlanError):
    """Raised when a recording is submitted while a submission is in flight."""

    def __init__(self) -> None:
        super().__init__(
            detail="A submission is already in progress",
            code="SUBMISSION_IN_PROGRESS",
            status_code=409,
        )


class UploadFailedError(VoxPlanError):
    """Raised when the audio upload is rejected by the provider."""

    def __init__(self, details: Any = None) -> None:
        super().__init__(
            detail="Failed to upload audio",
            code="UPLOAD_FAILED",
            status_code=502,
            details=details,
        )


class JobStartFailedError(VoxPlanError):
    """Raised when the provider refuses to create a transcription job."""

    def __init__(self, details: Any = None) -> None:
        super().__init__(
            detail="Failed to start transcription",
            code="JOB_START_FAILED",
            status_code=502,
            details=details,
        )


class TranscriptionFailedError(VoxPlanError):
    """Raised when the provider reports the job as failed."""

    def __init__(self, provider_error: str | None = None) -> None:
        self.provider_error = provider_error
        super().__init__(
            detail=provider_error or "Transcription failed",
            code="TRANSCRIPTION_FAILED",
            status_code=502,
            details=provider_error,
        )


class PollTimeoutError(VoxPlanError):
    """Raised when a job is still pending after the last allowed poll."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            detail="Transcription timeout. Please try again.",
            code="POLL_TIMEOUT",
            status_code=504,
            details={"attempts": attempts},
        )


class PollTransportError(VoxPlanError):
    """Raised when a single status check fails at the transport level."""

    def __init__(self, details: Any = None) -> None:
        super().__init__(
            detail="Failed to get transcription status",
            code="POLL_TRANSPORT_ERROR",
            status_code=502,
            details=details,
        )


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class PlanningRequestFailedError(VoxPlanError):
    """Raised when the treatment-planning gateway call fails."""

    def __init__(self, details: Any = None, timed_out: bool = False) -> None:
        self.timed_out = timed_out
        super().__init__(
            detail="Failed to generate treatment plans",
            code="PLANNING_REQUEST_FAILED",
            status_code=504 if timed_out else 500,
            details=details,
        )


# ---------------------------------------------------------------------------
# Proxy
# ---------------------------------------------------------------------------


class MissingAPIKeyError(VoxPlanError):
    """Raised when the AssemblyAI key is not configured."""

    def __init__(self) -> None:
        super().__init__(
            detail="Missing AssemblyAI API key",
            code="MISSING_API_KEY",
            status_code=500,
        )


class NoAudioFileError(VoxPlanError):
    """Raised when an upload request carries no audio part."""

    def __init__(self) -> None:
        super().__init__(
            detail="No audio file provided",
            code="NO_AUDIO_FILE",
            status_code=400,
        )


class AudioTooLargeError(VoxPlanError):
    """Raised when an uploaded file exceeds the configured size limit."""

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(
            detail=f"Audio file exceeds the {limit_bytes // (1024 * 1024)} MB limit",
            code="AUDIO_TOO_LARGE",
            status_code=413,
        )
