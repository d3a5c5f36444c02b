"""Microphone capture adapters.

A capture device only knows how to open, pause, resume and close the
platform input stream and how to wrap the captured PCM into an uploadable
container. All lifecycle decisions belong to ``RecordingSession``.
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

import numpy as np
import soundfile as sf

from voxplan.core.config import get_settings
from voxplan.core.exceptions import DeviceUnavailableError

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]


class BaseCaptureDevice(ABC):
    """Interface that every capture backend must implement."""

    content_type: str = "application/octet-stream"
    filename: str = "recording.bin"

    @abstractmethod
    async def open(self, on_chunk: ChunkCallback) -> None:
        """Acquire the input stream and start delivering chunks.

        ``on_chunk`` is always invoked on the event loop thread.

        Raises:
            DeviceUnavailableError: No device, permission denied, or already open.
        """

    @abstractmethod
    def pause(self) -> None:
        """Temporarily stop delivering chunks."""

    @abstractmethod
    def resume(self) -> None:
        """Resume delivering chunks after ``pause()``."""

    @abstractmethod
    def close(self) -> None:
        """Release the input stream."""

    def encode(self, pcm: bytes) -> bytes:
        """Wrap concatenated chunks into the upload container."""
        return pcm


def _load_sounddevice():
    """Import sounddevice on demand; it needs the PortAudio shared library."""
    try:
        import sounddevice
    except OSError as exc:
        raise DeviceUnavailableError("PortAudio library not found", details=str(exc)) from exc
    return sounddevice


def list_input_devices() -> str:
    """Return the sounddevice device table as printable text."""
    sd = _load_sounddevice()
    return str(sd.query_devices())


class SoundDeviceCapture(BaseCaptureDevice):
    """16-bit PCM microphone capture through ``sounddevice`` (PortAudio).

    Args:
        sample_rate: Capture rate in Hz (defaults to settings).
        channels: Number of input channels (defaults to settings).
        device: Input device name or index (defaults to the system default).
    """

    content_type = "audio/wav"
    filename = "recording.wav"

    def __init__(
        self,
        sample_rate: int | None = None,
        channels: int | None = None,
        device: str | int | None = None,
        settings=None,
    ) -> None:
        self._settings = settings or get_settings()
        self._sample_rate = sample_rate or self._settings.capture_sample_rate
        self._channels = channels or self._settings.capture_channels
        device = device if device is not None else self._settings.capture_device
        if isinstance(device, str) and device.isdigit():
            device = int(device)
        self._device = device
        self._stream = None

    async def open(self, on_chunk: ChunkCallback) -> None:
        if self._stream is not None:
            raise DeviceUnavailableError("Capture device is already in use")

        sd = _load_sounddevice()
        loop = asyncio.get_running_loop()

        def _callback(indata, frames, time_info, status) -> None:  # noqa: ARG001
            # Runs on the PortAudio thread
            if status:
                logger.warning("Capture status: %s", status)
            loop.call_soon_threadsafe(on_chunk, bytes(indata))

        def _start():
            stream = sd.RawInputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="int16",
                device=self._device,
                callback=_callback,
            )
            stream.start()
            return stream

        try:
            self._stream = await asyncio.to_thread(_start)
        except ValueError as exc:
            # sounddevice raises ValueError for an unknown device name or index
            logger.warning("No input device matching %r: %s", self._device, exc)
            raise DeviceUnavailableError(
                f"No input device matching {self._device!r}", details=str(exc)
            ) from exc
        except sd.PortAudioError as exc:
            logger.warning("Could not open input device %r: %s", self._device, exc)
            raise DeviceUnavailableError(
                "Failed to start recording. Please check microphone permissions.",
                details=str(exc),
            ) from exc
        logger.info(
            "Opened input device %r (%d Hz, %d ch)",
            self._device,
            self._sample_rate,
            self._channels,
        )

    def pause(self) -> None:
        if self._stream is not None:
            self._stream.stop()

    def resume(self) -> None:
        if self._stream is not None:
            self._stream.start()

    def close(self) -> None:
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("Closed input device %r", self._device)

    def encode(self, pcm: bytes) -> bytes:
        """Wrap interleaved int16 frames in a WAV container."""
        frame_bytes = 2 * self._channels
        usable = len(pcm) - (len(pcm) % frame_bytes)
        samples = np.frombuffer(pcm[:usable], dtype=np.int16).reshape(-1, self._channels)
        out = io.BytesIO()
        sf.write(out, samples, self._sample_rate, format="WAV", subtype="PCM_16")
        return out.getvalue()
