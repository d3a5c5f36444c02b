"""
Pydantic v2 models and plain records shared across the core and the API layer.

v0.1.0: Recording, TranscriptionJob, PollAttempt, Proxy API, Treatment plans
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------


class RecordingState(StrEnum):
    """Lifecycle states of a recording session."""

    idle = "idle"
    recording = "recording"
    paused = "paused"
    stopped = "stopped"


@dataclass(frozen=True)
class AudioBlob:
    """Finalized recording, ready for upload."""

    data: bytes
    content_type: str = "audio/wav"
    filename: str = "recording.wav"

    @property
    def size(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Transcription job
# ---------------------------------------------------------------------------


class JobStatus(StrEnum):
    """Status of a transcription job as tracked locally."""

    queued = "queued"
    processing = "processing"
    completed = "completed"
    failed = "failed"

    @classmethod
    def from_provider(cls, value: str | None) -> "JobStatus":
        """Map a provider status string onto a local status.

        AssemblyAI reports ``queued``, ``processing``, ``completed`` and
        ``error``. Anything unrecognized is treated as still processing.
        """
        if value == "error":
            return cls.failed
        try:
            return cls(value)
        except ValueError:
            logger.debug("Unknown provider status %r, treating as processing", value)
            return cls.processing

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.completed, JobStatus.failed)


_STATUS_RANK = {
    JobStatus.queued: 0,
    JobStatus.processing: 1,
    JobStatus.completed: 2,
    JobStatus.failed: 2,
}


class TranscriptionJob(BaseModel):
    """A provider-side transcription job, identified by an opaque id.

    ``history`` is append-only and records each status the job moved to.
    """

    id: str
    status: JobStatus = JobStatus.queued
    result_text: str | None = None
    error: str | None = None
    history: list[JobStatus] = Field(default_factory=lambda: [JobStatus.queued])

    def advance(
        self,
        status: JobStatus,
        result_text: str | None = None,
        error: str | None = None,
    ) -> bool:
        """Move the job forward to ``status``.

        Regressions (e.g. processing -> queued) and changes after a terminal
        status are ignored.

        Returns:
            True if the status changed.
        """
        if self.status.is_terminal or _STATUS_RANK[status] <= _STATUS_RANK[self.status]:
            if status != self.status:
                logger.debug(
                    "Ignoring status regression for job %s: %s -> %s",
                    self.id,
                    self.status,
                    status,
                )
            return False

        self.status = status
        self.history.append(status)
        if status == JobStatus.completed:
            self.result_text = result_text
        elif status == JobStatus.failed:
            self.error = error
        return True


class JobStatusSnapshot(BaseModel):
    """Result of a single status fetch."""

    status: JobStatus
    text: str | None = None
    error: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "JobStatusSnapshot":
        """Build a snapshot from an AssemblyAI transcript payload."""
        return cls(
            status=JobStatus.from_provider(payload.get("status")),
            text=payload.get("text"),
            error=payload.get("error"),
            raw=payload,
        )


@dataclass(frozen=True)
class PollAttempt:
    """One status check made by the job poller."""

    attempt_number: int
    timestamp: datetime
    observed_status: JobStatus


# ---------------------------------------------------------------------------
# Proxy API
# ---------------------------------------------------------------------------


class CamelModel(BaseModel):
    """Base for proxy payloads, which use camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(CamelModel):
    """POST /api/upload response."""

    upload_url: str


class TranscribeRequest(CamelModel):
    """POST /api/transcribe request body."""

    audio_url: str = Field(min_length=1)


class TranscribeResponse(CamelModel):
    """POST /api/transcribe response."""

    transcript_id: str


# ---------------------------------------------------------------------------
# Treatment planning
# ---------------------------------------------------------------------------


class TreatmentPlanRequest(BaseModel):
    """POST /api/treatment-plans request body (snake_case, as the gateway expects)."""

    session_id: str = Field(min_length=1)
    user_id: str | None = None
    slot_id: str | None = None
    treatment_planner_text: str = Field(min_length=1)


class GatewayModel(BaseModel):
    """Base for gateway payloads.

    The gateway is loosely typed: free-text fields may arrive as numbers and
    collections as ``null``. Unknown keys are kept, and a ``null`` for a field
    with an empty default becomes that empty default.
    """

    model_config = ConfigDict(extra="allow")

    @field_validator("*", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            factory = cls.model_fields[info.field_name].default_factory
            if factory is not None:
                return factory()
        return value


class CostOption(GatewayModel):
    """A cost variant for a planned service."""

    session: Any = None
    cost_per_session: Any = None
    grafts: Any = None
    weight: Any = None


class PlanService(GatewayModel):
    """A service line in a treatment plan."""

    service_name: Any = None
    specifications: dict[str, Any] = Field(default_factory=dict)
    service_cost_variable_options: list[CostOption] = Field(default_factory=list)


class PlanProduct(GatewayModel):
    """A product line in a treatment plan."""

    product_name: Any = None
    name: Any = None
    composition: Any = None
    dosage: Any = None
    frequency: Any = None
    duration: Any = None
    route: Any = None
    instruction: Any = None


class PlanLabTest(GatewayModel):
    """A lab test line in a treatment plan."""

    lab_test_name: Any = None
    name: Any = None


class TreatmentPlan(GatewayModel):
    """One of the alternative plans (A/B/C) returned by the gateway."""

    plan_id: Any = None
    plan_name: Any = None
    services: list[PlanService] = Field(default_factory=list)
    products: list[PlanProduct] = Field(default_factory=list)
    lab_tests: list[PlanLabTest] = Field(default_factory=list)


class PlanSet(GatewayModel):
    """Gateway response holding the generated treatment plans.

    ``raw`` is the decoded body exactly as the gateway sent it. The proxy
    relays that; the typed view is only read for logging and notes.
    """

    success: Any = None
    treatment_plans: list[TreatmentPlan] = Field(default_factory=list)

    _raw: dict[str, Any] | None = PrivateAttr(default=None)

    @classmethod
    def from_gateway(cls, payload: dict[str, Any]) -> "PlanSet":
        plan_set = cls.model_validate(payload)
        plan_set._raw = payload
        return plan_set

    @property
    def raw(self) -> dict[str, Any]:
        if self._raw is None:
            return self.model_dump(mode="json", exclude_unset=True)
        return self._raw


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
    details: Any = None
