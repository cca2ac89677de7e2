"""Media service implementation using FFmpeg."""

import asyncio
import json
import logging
import subprocess
import tempfile
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from vied.errors import ConcatenateError, ProbeError, TranscodeError
from vied.models.export import ContainerFormat
from vied.models.media import MediaInfo
from vied.services.interfaces import TranscodeProgressCallback

logger = logging.getLogger(__name__)

_ENCODER_TUNING: dict[ContainerFormat, list[str]] = {
    ContainerFormat.MP4: ["-preset", "fast", "-crf", "23"],
    ContainerFormat.MOV: ["-preset", "fast", "-crf", "23"],
    ContainerFormat.WEBM: ["-crf", "30", "-b:v", "0", "-deadline", "good", "-cpu-used", "2"],
}


def encoder_args(container: ContainerFormat | str) -> list[str]:
    """Return the fixed encoder arguments for a container."""
    container = ContainerFormat(container)
    args = ["-c:v", container.video_codec, *_ENCODER_TUNING[container], "-c:a", container.audio_codec]
    if container is not ContainerFormat.WEBM:
        args += ["-movflags", "+faststart"]
    return args


def parse_frame_rate(value: str | None) -> float:
    """Parse an ffprobe rate such as ``30/1`` or ``30000/1001``."""
    if not value:
        return 0.0
    if "/" in value:
        num, den = value.split("/", 1)
        try:
            return float(num) / float(den) if float(den) != 0 else 0.0
        except ValueError:
            return 0.0
    try:
        return float(value)
    except ValueError:
        return 0.0


def parse_progress_line(line: str) -> float | None:
    """Return encoded seconds from an ``-progress`` line, or None."""
    line = line.strip()
    if not line.startswith("out_time_us="):
        return None
    try:
        return int(line.split("=", 1)[1]) / 1_000_000
    except ValueError:
        # ffmpeg reports N/A before the first frame
        return None


def media_info_from_probe(data: dict[str, Any], path: Path | str = "") -> MediaInfo:
    """Build MediaInfo from ffprobe's JSON output.

    Raises:
        ProbeError: If there is no video stream or no usable duration.
    """
    fmt = data.get("format", {})
    streams = data.get("streams", [])

    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    if video is None:
        raise ProbeError(f"No video stream found in {path}")

    duration = float(fmt.get("duration") or video.get("duration") or 0)
    if duration <= 0:
        raise ProbeError(f"Could not determine duration of {path}")

    return MediaInfo(
        duration_seconds=duration,
        width=int(video.get("width") or 0),
        height=int(video.get("height") or 0),
        fps=parse_frame_rate(video.get("r_frame_rate")),
        codec_name=video.get("codec_name", "unknown"),
        size_bytes=int(fmt.get("size") or 0),
        has_audio=any(s.get("codec_type") == "audio" for s in streams),
        bit_rate=int(fmt.get("bit_rate") or 0),
        format_name=fmt.get("format_name", "unknown"),
    )


def concat_list_entry(path: Path) -> str:
    """Format one line of an ffmpeg concat demuxer list."""
    escaped = str(Path(path).resolve()).replace("'", "'\\''")
    return f"file '{escaped}'"


def _wait_with_progress(
    process: subprocess.Popen,
    report: Callable[[float], None],
) -> tuple[int, str]:
    """Read ``-progress`` output until ffmpeg exits (runs in a worker thread).

    stderr is drained on its own thread so a chatty ffmpeg never blocks on
    a full pipe while we wait on stdout.
    """
    stderr_chunks: list[str] = []

    def _drain_stderr() -> None:
        if process.stderr is not None:
            for line in process.stderr:
                stderr_chunks.append(line)

    stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
    stderr_thread.start()

    if process.stdout is not None:
        for line in process.stdout:
            seconds = parse_progress_line(line)
            if seconds is not None:
                report(seconds)
    returncode = process.wait()
    stderr_thread.join()
    return returncode, "".join(stderr_chunks).strip()


class MediaService:
    """FFmpeg-based probe, trim and concatenate operations."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        probe_timeout: float | None = 15.0,
    ) -> None:
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._probe_timeout = probe_timeout

    async def probe(self, path: Path) -> MediaInfo:
        """Extract media information using ffprobe.

        Args:
            path: Path to the media file

        Returns:
            MediaInfo with duration, resolution, fps, etc.
        """
        cmd = [
            self._ffprobe,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=self._probe_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out after {self._probe_timeout}s: {path}") from e
        except OSError as e:
            raise ProbeError(f"Could not run ffprobe: {e}") from e

        if result.returncode != 0:
            raise ProbeError(f"ffprobe failed: {result.stderr.strip() or path}")

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ProbeError(f"ffprobe returned invalid JSON for {path}") from e

        return media_info_from_probe(data, path)

    async def trim(
        self,
        source_path: Path,
        start_seconds: float,
        duration_seconds: float,
        output_path: Path,
        container: ContainerFormat,
        on_progress: TranscodeProgressCallback | None = None,
    ) -> Path:
        """Re-encode a section of a source into its own file.

        Args:
            source_path: Source media
            start_seconds: Start of the section in source seconds
            duration_seconds: Length of the section
            output_path: Destination file
            container: Output container (selects the encoders)
            on_progress: Optional callback receiving percent complete

        Returns:
            Path to the trimmed file
        """
        container = ContainerFormat(container)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = [
            self._ffmpeg,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-nostats",
            "-ss", str(start_seconds),
            "-i", str(source_path),
            "-t", str(duration_seconds),
            *encoder_args(container),
            "-f", container.value,
            "-progress", "pipe:1",
            str(output_path),
        ]

        try:
            returncode, stderr = await self._run_with_progress(cmd, duration_seconds, on_progress)
        except OSError as e:
            raise TranscodeError(f"Could not run ffmpeg: {e}") from e

        if returncode != 0:
            raise TranscodeError(f"ffmpeg trim failed (code {returncode}): {stderr[:500]}")

        logger.info(
            "Trimmed %s [%.3fs +%.3fs] -> %s",
            source_path, start_seconds, duration_seconds, output_path,
        )
        return output_path

    async def concatenate(
        self,
        ordered_inputs: Sequence[Path],
        output_path: Path,
        container: ContainerFormat,
    ) -> Path:
        """Join files in order with the concat demuxer (stream copy).

        Args:
            ordered_inputs: Files encoded with identical settings
            output_path: Destination file
            container: Output container

        Returns:
            Path to the joined file
        """
        if not ordered_inputs:
            raise ConcatenateError("No inputs to concatenate")

        container = ContainerFormat(container)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            mode="w",
            suffix=".txt",
            prefix="vied-concat-",
            dir=Path(ordered_inputs[0]).parent,
            delete=False,
            encoding="utf-8",
        ) as f:
            f.write("\n".join(concat_list_entry(p) for p in ordered_inputs) + "\n")
            list_path = Path(f.name)

        cmd = [
            self._ffmpeg,
            "-y",
            "-hide_banner",
            "-loglevel", "error",
            "-f", "concat",
            "-safe", "0",
            "-i", str(list_path),
            "-c", "copy",
            "-f", container.value,
            str(output_path),
        ]

        try:
            result = await asyncio.to_thread(
                subprocess.run, cmd, capture_output=True, text=True
            )
        except OSError as e:
            raise ConcatenateError(f"Could not run ffmpeg: {e}") from e
        finally:
            list_path.unlink(missing_ok=True)

        if result.returncode != 0:
            raise ConcatenateError(
                f"ffmpeg concat failed (code {result.returncode}): {result.stderr.strip()[:500]}"
            )

        logger.info("Concatenated %d files -> %s", len(ordered_inputs), output_path)
        return output_path

    async def _run_with_progress(
        self,
        cmd: list[str],
        expected_duration: float,
        on_progress: TranscodeProgressCallback | None,
    ) -> tuple[int, str]:
        """Run ffmpeg, forwarding progress to the event loop; kill it on cancel."""
        loop = asyncio.get_running_loop()

        def report(seconds: float) -> None:
            if on_progress is not None and expected_duration > 0:
                percent = min(seconds / expected_duration, 1.0) * 100.0
                loop.call_soon_threadsafe(on_progress, percent)

        logger.debug("Running: %s", " ".join(cmd))
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        try:
            return await asyncio.to_thread(_wait_with_progress, process, report)
        except asyncio.CancelledError:
            logger.info("Cancelling ffmpeg (pid %d)", process.pid)
            process.kill()
            raise
