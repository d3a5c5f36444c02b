"""
Transcription module - Provider clients, job polling and the submission pipeline.

Factory function for creating transcription clients based on provider configuration.
"""

from .base import BaseTranscriptionClient
from .pipeline import SubmissionPipeline
from .poller import NO_TEXT_PLACEHOLDER, JobPoller, PollHandle

__all__ = [
    "NO_TEXT_PLACEHOLDER",
    "BaseTranscriptionClient",
    "JobPoller",
    "PollHandle",
    "SubmissionPipeline",
    "create_transcription_client",
]


def create_transcription_client(provider: str, **kwargs) -> BaseTranscriptionClient:
    """
    Factory function to create a transcription client based on provider.

    Args:
        provider: Provider name ("assemblyai" or "proxy")
        **kwargs: Provider-specific configuration

    Returns:
        BaseTranscriptionClient implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "assemblyai":
        from .assemblyai import AssemblyAIClient
        return AssemblyAIClient(**kwargs)
    elif provider == "proxy":
        from .proxy import ProxyTranscriptionClient
        return ProxyTranscriptionClient(**kwargs)
    else:
        raise ValueError(f"Unknown transcription provider: {provider}")
