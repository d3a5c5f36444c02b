#!/usr/bin/env python3
"""
VoxPlan one-shot transcription.

Uploads a local audio file (or takes a URL the provider can already reach),
starts a transcription job, polls it to completion and prints the text.

Usage:
    voxplan-transcribe visit.wav
    voxplan-transcribe --url https://example.com/visit.mp3 --provider proxy
"""

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path

from voxplan.core.config import Settings, get_settings
from voxplan.core.exceptions import VoxPlanError
from voxplan.core.models import AudioBlob, TranscriptionJob
from voxplan.services.transcription import SubmissionPipeline, create_transcription_client

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Transcribe an audio file with AssemblyAI")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("file", nargs="?", type=Path, help="Local audio file to upload")
    source.add_argument("--url", help="Audio URL the provider can fetch (skips the upload)")
    parser.add_argument(
        "--provider",
        choices=["assemblyai", "proxy"],
        default=None,
        help="Transcription client (default: TRANSCRIPTION_PROVIDER setting)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between status checks (default: POLL_INTERVAL_SECONDS)",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Status checks before giving up (default: POLL_MAX_ATTEMPTS)",
    )
    return parser


def load_audio(path: Path) -> AudioBlob:
    """Read a local file into an ``AudioBlob``, guessing its content type."""
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return AudioBlob(data=path.read_bytes(), content_type=content_type, filename=path.name)


async def _print_status(job: TranscriptionJob) -> None:
    print(f"[{job.id}] {job.status}", file=sys.stderr)


async def run(args: argparse.Namespace, settings: Settings) -> str:
    provider = args.provider or settings.transcription_provider
    async with create_transcription_client(provider, settings=settings) as client:
        pipeline = SubmissionPipeline(
            client,
            interval=args.interval,
            max_attempts=args.max_attempts,
            on_job_status_change=_print_status,
            settings=settings,
        )
        if args.url:
            return await pipeline.submit_url(args.url)
        return await pipeline.submit_audio(load_audio(args.file))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.file is not None and not args.file.is_file():
        print(f"Error: {args.file} does not exist", file=sys.stderr)
        return 2

    try:
        text = asyncio.run(run(args, settings))
    except VoxPlanError as exc:
        print(f"Error: {exc.detail} ({exc.code})", file=sys.stderr)
        if exc.details:
            print(f"  details: {exc.details}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130

    print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
