"""Shared pytest fixtures for the VoxPlan test suite.

Provides fake capture devices, a controllable clock, scripted transcription
clients and a settings stand-in used across unit and integration tests.
"""

import asyncio
import struct
from types import SimpleNamespace

import pytest

from voxplan.core.models import AudioBlob, JobStatusSnapshot
from voxplan.services.recording.capture import BaseCaptureDevice
from voxplan.services.transcription.base import BaseTranscriptionClient

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def make_settings(**overrides):
    """Return a fake Settings object with test-friendly defaults."""
    defaults = {
        "assemblyai_api_key": "test-key",
        "assemblyai_base_url": "https://assemblyai.test",
        "assemblyai_speech_model": "universal",
        "assemblyai_timeout_seconds": 5.0,
        "transcription_provider": "assemblyai",
        "proxy_base_url": "http://proxy.test",
        "poll_interval_seconds": 0.0,
        "poll_max_attempts": 5,
        "planning_gateway_url": "https://gateway.test/orch",
        "planning_timeout_seconds": 5.0,
        "planning_max_attempts": 2,
        "planning_retry_backoff_seconds": 0.0,
        "planner_user_id": "user-123",
        "planner_slot_id": "slot-1",
        "capture_sample_rate": 16000,
        "capture_channels": 1,
        "capture_device": None,
        "elapsed_tick_seconds": 0.01,
        "log_level": "WARNING",
        "max_upload_bytes": 1024 * 1024,
        "cors_origins": ["http://localhost:3000"],
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def settings_factory():
    """Build fake settings with selected overrides."""
    return make_settings


# ---------------------------------------------------------------------------
# Recording fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCaptureDevice(BaseCaptureDevice):
    """In-memory capture device; tests push chunks with ``emit()``.

    ``gate`` holds ``open()`` until set, ``fail`` makes ``open()`` raise.
    """

    content_type = "audio/wav"
    filename = "recording.wav"

    def __init__(self, gate: asyncio.Event | None = None, fail: Exception | None = None) -> None:
        self.gate = gate
        self.fail = fail
        self.on_chunk = None
        self.open_calls = 0
        self.close_calls = 0
        self.pause_calls = 0
        self.resume_calls = 0
        self.is_open = False

    async def open(self, on_chunk) -> None:
        self.open_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        self.on_chunk = on_chunk
        self.is_open = True

    def pause(self) -> None:
        self.pause_calls += 1

    def resume(self) -> None:
        self.resume_calls += 1

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False

    def emit(self, data: bytes) -> None:
        self.on_chunk(data)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_device():
    return FakeCaptureDevice()


@pytest.fixture
def make_device():
    """Factory for devices with a gate or a failure configured."""
    return FakeCaptureDevice


# ---------------------------------------------------------------------------
# Transcription fakes
# ---------------------------------------------------------------------------


def snapshot(status: str, text: str | None = None, error: str | None = None):
    """Build a status snapshot from an AssemblyAI-style payload."""
    payload = {"status": status, "text": text, "error": error}
    return JobStatusSnapshot.from_provider(payload)


class ScriptedTranscriptionClient(BaseTranscriptionClient):
    """Provider client that replays a scripted list of status results.

    Items in ``statuses`` are snapshots or exceptions to raise. Every call
    is recorded in ``calls`` as ``(method, argument)``.
    """

    def __init__(
        self,
        statuses=(),
        upload_error: Exception | None = None,
        start_error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.statuses = list(statuses)
        self.upload_error = upload_error
        self.start_error = start_error
        self.gate = gate
        self.calls: list[tuple[str, object]] = []
        self.closed = False

    async def upload_audio(self, audio: AudioBlob) -> str:
        self.calls.append(("upload", audio))
        if self.upload_error is not None:
            raise self.upload_error
        return "https://cdn.test/upload/1"

    async def start_job(self, audio_url: str) -> str:
        self.calls.append(("start", audio_url))
        if self.start_error is not None:
            raise self.start_error
        return "job-1"

    async def fetch_status(self, job_id: str) -> JobStatusSnapshot:
        self.calls.append(("status", job_id))
        if self.gate is not None:
            await self.gate.wait()
        item = self.statuses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


@pytest.fixture
def make_client():
    """Factory for scripted transcription clients."""
    return ScriptedTranscriptionClient


@pytest.fixture
def make_snapshot():
    return snapshot


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono)."""
    import math

    sample_rate = 16000
    amplitude = 16000  # ~50% of max int16
    samples = [
        struct.pack("<h", int(amplitude * math.sin(2 * math.pi * 440.0 * i / sample_rate)))
        for i in range(sample_rate)
    ]
    return b"".join(samples)


@pytest.fixture
def wav_blob():
    """A small already-encoded recording."""
    return AudioBlob(data=b"RIFF....WAVEfmt ", content_type="audio/wav", filename="recording.wav")
