"""Recording lifecycle state machine.

States: idle -> recording <-> paused -> stopped, and any state -> idle on reset.

A ``RecordingSession`` owns the capture device between ``start()`` and
``stop()``/``reset()`` and accumulates the chunks the device delivers. The
chunks are concatenated into a single ``AudioBlob`` only when the session
stops.

Usage::

    session = RecordingSession(SoundDeviceCapture(), on_state_change=render)
    await session.start()
    session.pause()
    session.resume()
    session.stop()
    blob = session.final_audio
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable

from voxplan.core.config import get_settings
from voxplan.core.exceptions import RecordingAlreadyActiveError
from voxplan.core.models import AudioBlob, RecordingState
from voxplan.services.recording.capture import BaseCaptureDevice

logger = logging.getLogger(__name__)

SessionListener = Callable[["RecordingSession"], None]

_ACTIVE_STATES = (RecordingState.recording, RecordingState.paused)


def format_elapsed(elapsed_ms: int) -> str:
    """Format milliseconds as ``MM:SS`` for the timer display."""
    total_seconds = elapsed_ms // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


class RecordingSession:
    """A single capture from start to stop.

    Args:
        device: Capture backend the session acquires on ``start()``.
        clock: Monotonic clock in seconds, injectable for tests.
        tick_interval: Seconds between display ticks (default from settings).
        on_state_change: Called after every state transition.
        on_tick: Called on every display tick while recording.
    """

    def __init__(
        self,
        device: BaseCaptureDevice,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: float | None = None,
        on_state_change: SessionListener | None = None,
        on_tick: SessionListener | None = None,
    ) -> None:
        self.id = uuid.uuid4().hex[:8]
        self._device = device
        self._clock = clock
        self._tick_interval = (
            tick_interval if tick_interval is not None else get_settings().elapsed_tick_seconds
        )
        self._on_state_change = on_state_change
        self._on_tick = on_tick

        self.state = RecordingState.idle
        self.final_audio: AudioBlob | None = None
        self._chunks: list[bytes] = []
        self._accumulated = 0.0
        self._segment_started: float | None = None
        self._acquiring = False
        self._generation = 0
        self._ticker: asyncio.Task | None = None

    # -- read-only views --

    @property
    def chunks(self) -> tuple[bytes, ...]:
        return tuple(self._chunks)

    @property
    def elapsed_ms(self) -> int:
        """Recorded time so far, excluding paused intervals."""
        total = self._accumulated
        if self._segment_started is not None:
            total += self._clock() - self._segment_started
        return int(total * 1000)

    @property
    def holds_device(self) -> bool:
        return self.state in _ACTIVE_STATES

    # -- transitions --

    async def start(self) -> None:
        """Acquire the device and begin recording.

        Raises:
            RecordingAlreadyActiveError: Recording, paused, or still acquiring.
            DeviceUnavailableError: The device could not be opened.
        """
        if self._acquiring or self.state in _ACTIVE_STATES:
            raise RecordingAlreadyActiveError()

        self._acquiring = True
        generation = self._generation
        self._clear()
        if self.state == RecordingState.stopped:
            # Previous result is gone, so the session is no longer "stopped"
            self._set_state(RecordingState.idle)

        try:
            await self._device.open(self._append_chunk)
        finally:
            self._acquiring = False

        if generation != self._generation:
            logger.info("Session %s was reset while acquiring the device; releasing it", self.id)
            self._device.close()
            return

        self._segment_started = self._clock()
        self._set_state(RecordingState.recording)
        self._start_ticker()

    def pause(self) -> None:
        if self.state != RecordingState.recording:
            return
        self._close_segment()
        self._stop_ticker()
        self._device.pause()
        self._set_state(RecordingState.paused)

    def resume(self) -> None:
        if self.state != RecordingState.paused:
            return
        self._device.resume()
        self._segment_started = self._clock()
        self._set_state(RecordingState.recording)
        self._start_ticker()

    def stop(self) -> None:
        """Release the device and finalize the captured chunks."""
        if self.state not in _ACTIVE_STATES:
            return
        self._close_segment()
        self._stop_ticker()
        self._device.close()

        if self._chunks:
            self.final_audio = AudioBlob(
                data=self._device.encode(b"".join(self._chunks)),
                content_type=self._device.content_type,
                filename=self._device.filename,
            )
        logger.info(
            "Session %s stopped after %d ms with %d chunks",
            self.id,
            self.elapsed_ms,
            len(self._chunks),
        )
        self._set_state(RecordingState.stopped)

    def reset(self) -> None:
        """Discard everything and return to idle, releasing any held device."""
        self._generation += 1
        self._stop_ticker()
        if self.holds_device:
            self._device.close()
        self._clear()
        self._set_state(RecordingState.idle)

    # -- internals --

    def _append_chunk(self, data: bytes) -> None:
        """Capture callback: chunks are only kept while recording."""
        if self.state != RecordingState.recording or not data:
            return
        self._chunks.append(data)

    def _clear(self) -> None:
        self._chunks = []
        self.final_audio = None
        self._accumulated = 0.0
        self._segment_started = None

    def _close_segment(self) -> None:
        if self._segment_started is not None:
            self._accumulated += self._clock() - self._segment_started
            self._segment_started = None

    def _set_state(self, state: RecordingState) -> None:
        self.state = state
        logger.debug("Session %s -> %s", self.id, state)
        self._notify(self._on_state_change)

    def _notify(self, listener: SessionListener | None) -> None:
        if listener is None:
            return
        try:
            listener(self)
        except Exception:
            logger.exception("Session listener failed (non-fatal)")

    def _start_ticker(self) -> None:
        if self._on_tick is None:
            return
        self._stop_ticker()
        self._ticker = asyncio.get_running_loop().create_task(self._tick_loop())

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self._notify(self._on_tick)
