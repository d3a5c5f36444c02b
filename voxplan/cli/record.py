#!/usr/bin/env python3
"""
VoxPlan interactive recorder.

Records from the microphone, transcribes the result and optionally asks
the planning gateway for treatment plans.

Keys (followed by Enter):
    Enter  start recording (when idle)
    p      pause / resume
    s      stop and transcribe
    r      discard and start over
    q      quit without submitting
"""

import argparse
import asyncio
import logging
import sys

from voxplan.core.config import Settings, get_settings
from voxplan.core.exceptions import VoxPlanError
from voxplan.core.models import AudioBlob, RecordingState, TranscriptionJob
from voxplan.services.planning import (
    PlanningGatewayClient,
    format_plan_notes,
    new_planner_session_id,
)
from voxplan.services.recording import RecordingSession, create_capture_device, format_elapsed
from voxplan.services.recording.capture import list_input_devices
from voxplan.services.transcription import SubmissionPipeline, create_transcription_client

logger = logging.getLogger(__name__)

_PROMPTS = {
    RecordingState.idle: "[Enter] start  [q] quit > ",
    RecordingState.recording: "[p] pause  [s] stop  [r] reset  [q] quit > ",
    RecordingState.paused: "[p] resume  [s] stop  [r] reset  [q] quit > ",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Record a visit and transcribe it")
    parser.add_argument("--list-devices", action="store_true", help="List input devices and exit")
    parser.add_argument("--device", default=None, help="Input device name or index")
    parser.add_argument(
        "--provider",
        choices=["assemblyai", "proxy"],
        default=None,
        help="Transcription client (default: TRANSCRIPTION_PROVIDER setting)",
    )
    parser.add_argument(
        "--plan",
        action="store_true",
        help="Request treatment plans for the transcript and print them",
    )
    return parser


def _show_state(session: RecordingSession) -> None:
    print(f"-- {session.state} {format_elapsed(session.elapsed_ms)}")


async def record(settings: Settings, device: str | None = None) -> AudioBlob | None:
    """Run the interactive recording loop.

    Returns:
        The finalized audio, or None if the user quit.
    """
    capture = create_capture_device(
        sample_rate=settings.capture_sample_rate,
        channels=settings.capture_channels,
        device=device or settings.capture_device,
        settings=settings,
    )
    session = RecordingSession(capture, on_state_change=_show_state)

    while True:
        command = (await asyncio.to_thread(input, _PROMPTS[session.state])).strip().lower()
        if command == "q":
            session.reset()
            return None
        if session.state == RecordingState.idle:
            if command == "":
                await session.start()
        elif command == "p":
            if session.state == RecordingState.recording:
                session.pause()
            else:
                session.resume()
        elif command == "s":
            session.stop()
            return session.final_audio
        elif command == "r":
            session.reset()


async def _print_status(job: TranscriptionJob) -> None:
    print(f"[{job.id}] {job.status}")


async def run(args: argparse.Namespace, settings: Settings) -> int:
    audio = await record(settings, device=args.device)
    if audio is None:
        print("Nothing submitted.")
        return 0

    provider = args.provider or settings.transcription_provider
    async with create_transcription_client(provider, settings=settings) as client:
        pipeline = SubmissionPipeline(client, on_job_status_change=_print_status, settings=settings)
        text = await pipeline.submit_audio(audio)
    print("\n" + text)

    if args.plan:
        async with PlanningGatewayClient(settings=settings) as planner:
            print("\nRequesting treatment plans (this can take a couple of minutes)...")
            plan_set = await planner.submit_planning_request(
                session_id=new_planner_session_id(),
                user_id=settings.planner_user_id,
                slot_id=settings.planner_slot_id,
                text=text,
            )
        if not plan_set.treatment_plans:
            print("The gateway returned no plans.")
        for plan in plan_set.treatment_plans:
            print("\n" + format_plan_notes(plan))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.list_devices:
            print(list_input_devices())
            return 0
        return asyncio.run(run(args, settings))
    except VoxPlanError as exc:
        print(f"Error: {exc.detail} ({exc.code})", file=sys.stderr)
        if exc.details:
            print(f"  details: {exc.details}", file=sys.stderr)
        return 1
    except (KeyboardInterrupt, EOFError):
        return 130


if __name__ == "__main__":
    sys.exit(main())
