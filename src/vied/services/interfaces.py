"""Service interfaces (Protocols) for Vied.

These protocols define the contracts for the external media tools. The
editing model and the export planner never call them; only the export
executor and the API/CLI layers do.
"""

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Protocol

from vied.models.export import ContainerFormat
from vied.models.media import MediaInfo

# Percent complete, 0..100
TranscodeProgressCallback = Callable[[float], None]


class IMediaProbe(Protocol):
    """Interface for reading source media metadata (ffprobe wrapper)."""

    async def probe(self, path: Path) -> MediaInfo:
        """Probe a media file.

        Args:
            path: Path to the media file

        Returns:
            MediaInfo with duration, resolution, fps, etc.

        Raises:
            ProbeError: If the file has no decodable video stream.
        """
        ...


class ITranscodeClient(Protocol):
    """Interface for trimming and concatenating media (ffmpeg wrapper)."""

    async def trim(
        self,
        source_path: Path,
        start_seconds: float,
        duration_seconds: float,
        output_path: Path,
        container: ContainerFormat,
        on_progress: TranscodeProgressCallback | None = None,
    ) -> Path:
        """Re-encode ``duration_seconds`` of a source starting at ``start_seconds``.

        Raises:
            TranscodeError: If the transcoder fails.
        """
        ...

    async def concatenate(
        self,
        ordered_inputs: Sequence[Path],
        output_path: Path,
        container: ContainerFormat,
    ) -> Path:
        """Join already-encoded files in the given order.

        Raises:
            ConcatenateError: If the transcoder fails.
        """
        ...
