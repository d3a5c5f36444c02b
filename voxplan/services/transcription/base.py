"""
Abstract base class for transcription providers.

All provider clients (AssemblyAI direct, this app's own proxy, etc.) must
implement this interface, enabling provider-agnostic submission logic in
the service layer. HTTP-backed clients share ``HTTPTranscriptionClient``,
which translates httpx failures into ``ProviderRequestError``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from voxplan.core.exceptions import ProviderRequestError
from voxplan.core.models import AudioBlob, JobStatusSnapshot
from voxplan.core.utils import response_details

logger = logging.getLogger(__name__)


class BaseTranscriptionClient(ABC):
    """Interface that every transcription provider must implement."""

    @abstractmethod
    async def upload_audio(self, audio: AudioBlob) -> str:
        """Upload a finalized recording.

        Returns:
            Opaque reference URL the provider can transcribe from.

        Raises:
            ProviderRequestError: On any non-success response or transport error.
        """

    @abstractmethod
    async def start_job(self, audio_url: str) -> str:
        """Create a transcription job for previously uploaded audio.

        Returns:
            The provider-assigned job id.
        """

    @abstractmethod
    async def fetch_status(self, job_id: str) -> JobStatusSnapshot:
        """Fetch the current status (and text, once completed) of a job."""

    async def aclose(self) -> None:
        """Release network resources held by the client."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class HTTPTranscriptionClient(BaseTranscriptionClient):
    """Shared plumbing for clients that talk JSON over ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request and translate failures.

        Args:
            method: HTTP method name ("GET", "POST").
            path: Endpoint path relative to the client's base URL.
            **kwargs: Passed through to httpx (json, content, files, etc.).

        Returns:
            The httpx Response object with a successful status code.

        Raises:
            ProviderRequestError: On timeout, HTTP status, or network errors.
        """
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out: %s", method, path, exc)
            raise ProviderRequestError(
                f"Request to {path} timed out", details=str(exc) or "timeout", timed_out=True
            ) from exc
        except httpx.HTTPStatusError as exc:
            details = response_details(exc.response)
            logger.warning(
                "%s %s returned HTTP %s: %s", method, path, exc.response.status_code, details
            )
            raise ProviderRequestError(
                f"{path} returned HTTP {exc.response.status_code}", details=details
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ProviderRequestError(f"Network error: {exc}", details=str(exc)) from exc

    @staticmethod
    def _field(resp: httpx.Response, key: str) -> Any:
        """Read one key from a JSON response body."""
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderRequestError("Provider returned invalid JSON", details=resp.text) from exc
        if not isinstance(payload, dict) or payload.get(key) is None:
            raise ProviderRequestError(f"Provider response is missing '{key}'", details=payload)
        return payload[key]

    async def aclose(self) -> None:
        await self._client.aclose()
