"""Run an export plan against a transcode client."""

import asyncio
import logging
import time
from pathlib import Path
from uuid import uuid4

from vied.export.progress import ExportProgress, ProgressCallback
from vied.models.export import ExportPlan, TrimOperation
from vied.services.interfaces import ITranscodeClient

logger = logging.getLogger(__name__)

STAGING_PREFIX = "vied-clip"


class ExportExecutor:
    """Executes export plans one at a time.

    A single-operation plan is trimmed straight to the output. Longer
    plans are trimmed into staging files, concatenated in plan order,
    and the staging files are always deleted afterwards. Executions
    share one lock, so a new export only starts once the previous
    one has finished cleaning up.
    """

    def __init__(
        self,
        client: ITranscodeClient,
        staging_dir: Path,
        max_parallel: int = 1,
        concat_share: float = 0.05,
    ) -> None:
        self._client = client
        self._staging_dir = Path(staging_dir)
        self._max_parallel = max(1, max_parallel)
        self._concat_share = concat_share
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def execute(
        self,
        plan: ExportPlan,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """Execute a plan and return the output path.

        Args:
            plan: Plan produced by ExportPlanner
            progress_callback: Optional callback (fraction 0..1, message)

        Raises:
            TranscodeError: If any trim fails; concatenation is not attempted.
            ConcatenateError: If joining the staged clips fails.
        """
        async with self._lock:
            progress = ExportProgress(plan.weights, self._concat_share, progress_callback)

            if not plan.requires_concat:
                await self._trim(plan, 0, plan.operations[0], plan.output_path, progress)
                progress.complete()
                return plan.output_path

            staged = self.staging_paths(plan)
            try:
                await self._trim_all(plan, staged, progress)
                progress.update_concat(0)
                await self._client.concatenate(staged, plan.output_path, plan.container)
                progress.complete()
            finally:
                self._cleanup(staged)

            logger.info("Export complete: %s", plan.output_path)
            return plan.output_path

    def staging_paths(self, plan: ExportPlan) -> list[Path]:
        """Unique per-execution staging file for each operation."""
        prefix = f"{STAGING_PREFIX}-{int(time.time() * 1000)}-{uuid4().hex[:8]}"
        suffix = plan.container.value
        return [
            self._staging_dir / f"{prefix}-{i}.{suffix}"
            for i in range(len(plan.operations))
        ]

    async def _trim_all(
        self,
        plan: ExportPlan,
        staged: list[Path],
        progress: ExportProgress,
    ) -> None:
        self._staging_dir.mkdir(parents=True, exist_ok=True)

        if self._max_parallel == 1:
            for index, (op, target) in enumerate(zip(plan.operations, staged)):
                await self._trim(plan, index, op, target, progress)
            return

        semaphore = asyncio.Semaphore(self._max_parallel)
        failed = asyncio.Event()

        async def run(index: int, op: TrimOperation, target: Path) -> None:
            async with semaphore:
                if failed.is_set():
                    return
                try:
                    await self._trim(plan, index, op, target, progress)
                except Exception:
                    failed.set()
                    raise

        tasks = [
            asyncio.create_task(run(i, op, target))
            for i, (op, target) in enumerate(zip(plan.operations, staged))
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _trim(
        self,
        plan: ExportPlan,
        index: int,
        op: TrimOperation,
        target: Path,
        progress: ExportProgress,
    ) -> None:
        logger.info(
            "Trimming clip %d/%d: %s [%.3fs +%.3fs]",
            index + 1, len(plan.operations), op.source_ref, op.source_start, op.source_duration,
        )
        await self._client.trim(
            Path(op.source_ref),
            op.source_start,
            op.source_duration,
            target,
            plan.container,
            on_progress=lambda percent: progress.update_trim(index, percent),
        )
        progress.complete_trim(index)

    def _cleanup(self, staged: list[Path]) -> None:
        for path in staged:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.exception("Failed to delete staging file %s", path)
