"""Tests for ExportExecutor with a recording transcode client."""

import asyncio
from pathlib import Path

import pytest

from conftest import FakeTranscodeClient, make_plan
from vied.errors import ConcatenateError, TranscodeError
from vied.export.executor import ExportExecutor
from vied.models.export import ContainerFormat


def _staged(staging_dir: Path) -> list[Path]:
    return sorted(staging_dir.glob("vied-clip-*"))


async def _wait_for_trims(client: FakeTranscodeClient, count: int) -> None:
    for _ in range(1000):
        if len(client.trims) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} trim calls, got {len(client.trims)}")


class TestExportExecutor:
    @pytest.mark.asyncio
    async def test_single_operation_trims_to_output(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        executor = ExportExecutor(fake_client, staging_dir)
        plan = make_plan(tmp_path / "out.mp4", 12.0)

        output = await executor.execute(plan)

        assert output == tmp_path / "out.mp4"
        assert output.read_bytes() == b"clip0"
        assert len(fake_client.trims) == 1
        assert fake_client.trims[0][3] == plan.output_path
        assert fake_client.concats == []

    @pytest.mark.asyncio
    async def test_multiple_operations_concatenate_in_order(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        executor = ExportExecutor(fake_client, staging_dir)
        plan = make_plan(tmp_path / "out.webm", 3.0, 4.0, 5.0, container=ContainerFormat.WEBM)

        output = await executor.execute(plan)

        assert [t[1:3] for t in fake_client.trims] == [(0.0, 3.0), (3.0, 4.0), (7.0, 5.0)]
        assert len(fake_client.concats) == 1
        inputs, target = fake_client.concats[0]
        assert inputs == [t[3] for t in fake_client.trims]
        assert all(p.parent == staging_dir for p in inputs)
        assert all(p.name.startswith("vied-clip-") and p.suffix == ".webm" for p in inputs)
        assert target == plan.output_path
        assert output.read_bytes() == b"clip0+clip1+clip2"
        assert _staged(staging_dir) == []

    @pytest.mark.asyncio
    async def test_failing_trim_cleans_up_and_skips_concat(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        fake_client.fail_on = 1
        executor = ExportExecutor(fake_client, staging_dir)
        plan = make_plan(tmp_path / "out.mp4", 3.0, 4.0, 5.0)

        with pytest.raises(TranscodeError, match="trim 1 failed"):
            await executor.execute(plan)

        assert len(fake_client.trims) == 2
        assert not fake_client.trims[0][3].exists()
        assert fake_client.concats == []
        assert _staged(staging_dir) == []
        assert not plan.output_path.exists()

    @pytest.mark.asyncio
    async def test_failing_concat_cleans_up(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        fake_client.fail_concat = True
        executor = ExportExecutor(fake_client, staging_dir)
        plan = make_plan(tmp_path / "out.mp4", 3.0, 4.0)

        with pytest.raises(ConcatenateError):
            await executor.execute(plan)

        assert len(fake_client.trims) == 2
        assert _staged(staging_dir) == []

    @pytest.mark.asyncio
    async def test_cancel_cleans_up(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        fake_client.block_on = 1
        executor = ExportExecutor(fake_client, staging_dir)
        plan = make_plan(tmp_path / "out.mp4", 3.0, 4.0, 5.0)

        task = asyncio.create_task(executor.execute(plan))
        await _wait_for_trims(fake_client, 2)
        assert len(_staged(staging_dir)) == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert _staged(staging_dir) == []
        assert fake_client.concats == []
        assert not executor.busy

    @pytest.mark.asyncio
    async def test_executions_are_serialized(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        fake_client.block_on = 1
        executor = ExportExecutor(fake_client, staging_dir)
        first = asyncio.create_task(executor.execute(make_plan(tmp_path / "a.mp4", 1.0, 1.0)))
        await _wait_for_trims(fake_client, 2)

        second = asyncio.create_task(executor.execute(make_plan(tmp_path / "b.mp4", 1.0, 1.0)))
        for _ in range(20):
            await asyncio.sleep(0)
        assert len(fake_client.trims) == 2
        assert executor.busy

        fake_client.gate.set()
        await asyncio.gather(first, second)

        assert len(fake_client.trims) == 4
        assert [c[1].name for c in fake_client.concats] == ["a.mp4", "b.mp4"]
        assert _staged(staging_dir) == []

    @pytest.mark.asyncio
    async def test_parallel_trims_stop_after_failure(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        fake_client.fail_on = 1
        executor = ExportExecutor(fake_client, staging_dir, max_parallel=2)
        plan = make_plan(tmp_path / "out.mp4", 1.0, 1.0, 1.0, 1.0)

        with pytest.raises(TranscodeError):
            await executor.execute(plan)

        assert fake_client.concats == []
        assert _staged(staging_dir) == []

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_completes(
        self, fake_client: FakeTranscodeClient, staging_dir: Path, tmp_path: Path
    ) -> None:
        seen: list[tuple[float, str]] = []
        executor = ExportExecutor(fake_client, staging_dir, concat_share=0.1)

        await executor.execute(
            make_plan(tmp_path / "out.mp4", 2.0, 6.0),
            lambda fraction, message: seen.append((fraction, message)),
        )

        fractions = [f for f, _ in seen]
        assert fractions == sorted(fractions)
        assert fractions[-1] == 1.0
        assert any(m == "Concatenating" for _, m in seen)
        # Concatenation keeps its share until it finishes
        assert max(f for f, m in seen if m.startswith("Trimming")) == pytest.approx(0.9)
