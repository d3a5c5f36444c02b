"""Transcription client that goes through this application's own proxy API.

Mirrors what a browser front end does: multipart upload to ``/api/upload``,
job creation via ``/api/transcribe`` and status checks on
``/api/transcript/{id}``. The AssemblyAI key never leaves the server.
"""

import logging

import httpx

from voxplan.core.config import get_settings
from voxplan.core.exceptions import ProviderRequestError
from voxplan.core.models import AudioBlob, JobStatusSnapshot
from voxplan.services.transcription.base import HTTPTranscriptionClient

logger = logging.getLogger(__name__)


class ProxyTranscriptionClient(HTTPTranscriptionClient):
    """Client for the VoxPlan proxy endpoints.

    Args:
        base_url: Root URL of a running VoxPlan server (falls back to settings).
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (e.g. ``ASGITransport`` in tests).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
        settings=None,
    ) -> None:
        settings = settings or get_settings()
        self._base_url = (base_url or settings.proxy_base_url).rstrip("/")
        super().__init__(
            httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport)
        )

    async def upload_audio(self, audio: AudioBlob) -> str:
        files = {"audio": (audio.filename, audio.data, audio.content_type)}
        resp = await self._request("POST", "/api/upload", files=files)
        return self._field(resp, "uploadUrl")

    async def start_job(self, audio_url: str) -> str:
        resp = await self._request("POST", "/api/transcribe", json={"audioUrl": audio_url})
        return str(self._field(resp, "transcriptId"))

    async def fetch_status(self, job_id: str) -> JobStatusSnapshot:
        resp = await self._request("GET", f"/api/transcript/{job_id}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderRequestError("Proxy returned invalid JSON", details=resp.text) from exc
        return JobStatusSnapshot.from_provider(payload)
