"""Shared fixtures: a recording transcode client that writes real files."""

import asyncio
from collections.abc import Sequence
from pathlib import Path

import pytest

from vied.errors import ConcatenateError, TranscodeError
from vied.models.export import ContainerFormat, ExportPlan, TrimOperation


class FakeTranscodeClient:
    """Records calls and writes small files in place of ffmpeg output.

    ``fail_on`` makes the trim with that call index raise; ``block_on``
    makes it wait on ``gate`` before finishing.
    """

    def __init__(self) -> None:
        self.trims: list[tuple[Path, float, float, Path]] = []
        self.concats: list[tuple[list[Path], Path]] = []
        self.fail_on: int | None = None
        self.fail_concat = False
        self.block_on: int | None = None
        self.gate = asyncio.Event()
        self.progress_callbacks: list = []

    async def trim(
        self,
        source_path: Path,
        start_seconds: float,
        duration_seconds: float,
        output_path: Path,
        container: ContainerFormat,
        on_progress=None,
    ) -> Path:
        index = len(self.trims)
        self.trims.append((Path(source_path), start_seconds, duration_seconds, Path(output_path)))
        self.progress_callbacks.append(on_progress)
        if index == self.fail_on:
            raise TranscodeError(f"trim {index} failed")
        if index == self.block_on:
            await self.gate.wait()
        if on_progress is not None:
            on_progress(50.0)
            on_progress(100.0)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(f"clip{index}".encode())
        return Path(output_path)

    async def concatenate(
        self,
        ordered_inputs: Sequence[Path],
        output_path: Path,
        container: ContainerFormat,
    ) -> Path:
        self.concats.append(([Path(p) for p in ordered_inputs], Path(output_path)))
        if self.fail_concat:
            raise ConcatenateError("concat failed")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(b"+".join(Path(p).read_bytes() for p in ordered_inputs))
        return Path(output_path)


def make_plan(
    output_path: Path,
    *durations: float,
    container: ContainerFormat = ContainerFormat.MP4,
) -> ExportPlan:
    """Plan with one operation per duration, laid end to end in ``in.mp4``."""
    operations = []
    start = 0.0
    for d in durations:
        operations.append(
            TrimOperation(source_ref=str(output_path.parent / "in.mp4"), source_start=start, source_duration=d)
        )
        start += d
    return ExportPlan(operations=tuple(operations), output_path=output_path, container=container)


@pytest.fixture
def fake_client() -> FakeTranscodeClient:
    return FakeTranscodeClient()


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path
