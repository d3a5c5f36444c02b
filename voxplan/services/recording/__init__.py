"""
Recording module - Microphone capture and the recording state machine.

Factory function for creating capture devices based on provider configuration.
"""

from .capture import BaseCaptureDevice, SoundDeviceCapture
from .session import RecordingSession, format_elapsed

__all__ = [
    "BaseCaptureDevice",
    "RecordingSession",
    "SoundDeviceCapture",
    "create_capture_device",
    "format_elapsed",
]


def create_capture_device(provider: str = "sounddevice", **kwargs) -> BaseCaptureDevice:
    """
    Factory function to create a capture device based on provider.

    Args:
        provider: Capture backend name ("sounddevice")
        **kwargs: Backend-specific configuration

    Returns:
        BaseCaptureDevice implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "sounddevice":
        return SoundDeviceCapture(**kwargs)
    else:
        raise ValueError(f"Unknown capture provider: {provider}")
