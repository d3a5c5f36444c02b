"""AssemblyAI transcription client.

Talks to the AssemblyAI v2 REST API directly: raw-bytes upload, transcript
creation with the configured speech model, and transcript status lookup.
"""

import logging
from typing import Any

import httpx

from voxplan.core.config import get_settings
from voxplan.core.exceptions import MissingAPIKeyError, ProviderRequestError
from voxplan.core.models import AudioBlob, JobStatusSnapshot
from voxplan.services.transcription.base import HTTPTranscriptionClient

logger = logging.getLogger(__name__)


class AssemblyAIClient(HTTPTranscriptionClient):
    """AssemblyAI provider client.

    Args:
        api_key: Value for the ``authorization`` header (falls back to settings).
        base_url: API root (falls back to settings).
        speech_model: Model requested for new transcripts (e.g. "universal").
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        speech_model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        settings=None,
    ) -> None:
        settings = settings or get_settings()
        self._api_key = api_key if api_key is not None else settings.assemblyai_api_key
        if not self._api_key:
            raise MissingAPIKeyError()
        self._base_url = (base_url or settings.assemblyai_base_url).rstrip("/")
        self._speech_model = speech_model or settings.assemblyai_speech_model
        super().__init__(
            httpx.AsyncClient(
                base_url=self._base_url,
                headers={"authorization": self._api_key},
                timeout=timeout or settings.assemblyai_timeout_seconds,
                transport=transport,
            )
        )

    async def upload_audio(self, audio: AudioBlob) -> str:
        resp = await self._request("POST", "/v2/upload", content=audio.data)
        upload_url = self._field(resp, "upload_url")
        logger.info("Uploaded %d bytes to AssemblyAI", audio.size)
        return upload_url

    async def start_job(self, audio_url: str) -> str:
        body = {"audio_url": audio_url, "speech_model": self._speech_model}
        resp = await self._request("POST", "/v2/transcript", json=body)
        job_id = self._field(resp, "id")
        logger.info("Started AssemblyAI transcript %s", job_id)
        return str(job_id)

    async def get_transcript(self, job_id: str) -> dict[str, Any]:
        """Return the raw transcript payload for ``job_id``."""
        resp = await self._request("GET", f"/v2/transcript/{job_id}")
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderRequestError("Provider returned invalid JSON", details=resp.text) from exc

    async def fetch_status(self, job_id: str) -> JobStatusSnapshot:
        return JobStatusSnapshot.from_provider(await self.get_transcript(job_id))
