"""Vied command-line interface with subcommands.

Usage:
    vied-cli probe <video>
    vied-cli export <video> -o out.mp4 [--start S --end E] [--format mp4|mov|webm]
    vied-cli export <video> -o out.mp4 --clip 0:10 --clip 30:45
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from vied.config import settings
from vied.errors import ViedError
from vied.export.executor import ExportExecutor
from vied.export.planner import ExportPlanner
from vied.models.timeline import Clip, ClipSequence, TimeRange, TrimSelection
from vied.services.media import MediaService


def _media_service() -> MediaService:
    return MediaService(
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path,
        probe_timeout=settings.probe_timeout,
    )


def parse_clip(value: str) -> tuple[float, float]:
    """Parse a ``START:END`` clip argument in seconds."""
    try:
        start, end = value.split(":", 1)
        return float(start), float(end)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected START:END in seconds, got '{value}'") from e


def _progress_bar(progress: float, status: str) -> None:
    bar_width = 30
    filled = int(bar_width * progress)
    bar = "=" * filled + "-" * (bar_width - filled)
    print(f"\r  [{bar}] {progress*100:.0f}% {status:<24}", end="", flush=True)


# --- Probe subcommand ---


async def cmd_probe(args: argparse.Namespace) -> None:
    """Print media information as JSON."""
    video_path = Path(args.input).resolve()
    if not video_path.exists():
        print(f"Error: file not found: {video_path}", file=sys.stderr)
        sys.exit(1)

    info = await _media_service().probe(video_path)
    print(json.dumps(info.model_dump(), indent=2))


# --- Export subcommand ---


def build_edit_source(
    source: Path,
    duration: float,
    args: argparse.Namespace,
) -> TrimSelection | ClipSequence:
    """Turn CLI arguments into a trim selection or a clip sequence."""
    if args.clip:
        clips = tuple(
            Clip(
                id=i,
                source_ref=str(source),
                range=TimeRange.create(start, end).clamp(0.0, duration),
            )
            for i, (start, end) in enumerate(args.clip, 1)
        )
        return ClipSequence(clips=clips)

    start = args.start if args.start is not None else 0.0
    end = args.end if args.end is not None else duration
    selection = TimeRange.create(start, end).clamp(0.0, duration)
    return TrimSelection(source_ref=str(source), start=selection.start, end=selection.end)


async def cmd_export(args: argparse.Namespace) -> None:
    """Plan and run an export of one source."""
    video_path = Path(args.input).resolve()
    if not video_path.exists():
        print(f"Error: file not found: {video_path}", file=sys.stderr)
        sys.exit(1)

    media = _media_service()
    info = await media.probe(video_path)
    source = build_edit_source(video_path, info.duration_seconds, args)

    planner = ExportPlanner(default_container=settings.default_container)
    plan = planner.plan(source, args.output, args.format)

    print(f"Exporting {video_path.name} -> {plan.output_path}")
    print(f"  Clips: {len(plan.operations)}  Duration: {plan.total_duration:.2f}s  Format: {plan.container.value}")

    executor = ExportExecutor(
        client=media,
        staging_dir=settings.temp_dir,
        max_parallel=settings.max_parallel_transcodes,
        concat_share=settings.concat_progress_share,
    )
    output = await executor.execute(plan, _progress_bar)
    print()  # newline after progress bar
    print(f"\nDone: {output}")


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="vied-cli",
        description="Vied - trim and join video clips",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # --- probe ---
    p_probe = subparsers.add_parser("probe", help="Show media information")
    p_probe.add_argument("input", type=str, help="Input video file")

    # --- export ---
    p_export = subparsers.add_parser("export", help="Trim and join clips of a video")
    p_export.add_argument("input", type=str, help="Input video file")
    p_export.add_argument("-o", "--output", type=str, required=True, help="Output file")
    p_export.add_argument("--start", type=float, help="In point in seconds (default: 0)")
    p_export.add_argument("--end", type=float, help="Out point in seconds (default: end of video)")
    p_export.add_argument(
        "--clip",
        type=parse_clip,
        action="append",
        metavar="START:END",
        help="Clip to include, in order (repeatable; overrides --start/--end)",
    )
    p_export.add_argument("--format", choices=["mp4", "mov", "webm"], help="Container format (default: from output suffix)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level="DEBUG" if args.verbose else settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "probe":
            asyncio.run(cmd_probe(args))
        elif args.command == "export":
            asyncio.run(cmd_export(args))
    except ViedError as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
