"""
Transcription proxy endpoints.

Keeps the AssemblyAI key on the server: clients upload audio, start a
transcript and poll its status through these routes.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile

from voxplan.api.dependencies import get_assemblyai_client
from voxplan.core.config import get_settings
from voxplan.core.exceptions import (
    AudioTooLargeError,
    JobStartFailedError,
    NoAudioFileError,
    PollTransportError,
    ProviderRequestError,
    UploadFailedError,
)
from voxplan.core.models import (
    AudioBlob,
    ErrorResponse,
    TranscribeRequest,
    TranscribeResponse,
    UploadResponse,
)
from voxplan.services.transcription.assemblyai import AssemblyAIClient

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["transcription"],
    responses={500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)


@router.post("/upload", response_model=UploadResponse, response_model_by_alias=True)
async def upload_audio(
    audio: UploadFile | None = File(None),
    client: AssemblyAIClient = Depends(get_assemblyai_client),
) -> UploadResponse:
    """Forward an uploaded ``audio`` part to AssemblyAI and return its URL."""
    if audio is None:
        raise NoAudioFileError()

    limit = get_settings().max_upload_bytes
    data = await audio.read()
    if len(data) > limit:
        raise AudioTooLargeError(limit)

    blob = AudioBlob(
        data=data,
        content_type=audio.content_type or "audio/wav",
        filename=audio.filename or "recording.wav",
    )
    try:
        upload_url = await client.upload_audio(blob)
    except ProviderRequestError as exc:
        raise UploadFailedError(details=exc.details) from exc
    return UploadResponse(upload_url=upload_url)


@router.post("/transcribe", response_model=TranscribeResponse, response_model_by_alias=True)
async def start_transcription(
    body: TranscribeRequest,
    client: AssemblyAIClient = Depends(get_assemblyai_client),
) -> TranscribeResponse:
    try:
        transcript_id = await client.start_job(body.audio_url)
    except ProviderRequestError as exc:
        raise JobStartFailedError(details=exc.details) from exc
    return TranscribeResponse(transcript_id=transcript_id)


@router.get("/transcript/{transcript_id}")
async def get_transcript(
    transcript_id: str,
    client: AssemblyAIClient = Depends(get_assemblyai_client),
) -> dict[str, Any]:
    """Return the provider's transcript payload unchanged."""
    try:
        return await client.get_transcript(transcript_id)
    except ProviderRequestError as exc:
        raise PollTransportError(details=exc.details) from exc
