"""Export job manager with in-memory storage and background execution."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from vied.export.executor import ExportExecutor
from vied.jobs.models import ExportJob, JobStatus
from vied.models.export import ExportPlan

logger = logging.getLogger(__name__)


class ExportJobManager:
    """Runs export jobs in the background, one active job at a time.

    Jobs are stored in-memory (dict). Submitting a new export cancels the
    one in flight; the executor's lock makes the new job wait until the
    superseded job has cleaned up its staging files.
    """

    def __init__(self, executor: ExportExecutor) -> None:
        self._executor = executor
        self._jobs: dict[str, ExportJob] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._cancel_reasons: dict[str, str] = {}
        self._current_id: str | None = None

    def submit(self, plan: ExportPlan) -> ExportJob:
        """Create a job for ``plan`` and schedule it, superseding any running export.

        Returns:
            The created ExportJob (status=pending).
        """
        job = ExportJob(plan=plan, output_path=str(plan.output_path))
        self._jobs[job.id] = job

        if self._current_id is not None:
            self.cancel(self._current_id, reason=f"Superseded by job {job.id}")
        self._current_id = job.id

        task = asyncio.create_task(self._run_job(job))
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t, job_id=job.id: self._forget(job_id))
        logger.info("Submitted export job %s -> %s", job.id, plan.output_path)
        return job

    def cancel(self, job_id: str, reason: str = "Cancelled") -> bool:
        """Request cancellation. Returns False if the job is unknown or finished."""
        job = self._jobs.get(job_id)
        if job is None or job.status.is_finished:
            return False

        self._cancel_reasons[job_id] = reason
        if job.status is JobStatus.PENDING:
            # Never started; the task may be cancelled before its first step.
            self._mark_cancelled(job)
        task = self._tasks.get(job_id)
        if task is not None:
            task.cancel()
        logger.info("Cancelling export job %s: %s", job_id, reason)
        return True

    def get_job(self, job_id: str) -> ExportJob | None:
        """Get a job by ID."""
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[ExportJob]:
        """List all jobs, most recent first."""
        return sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)

    async def wait(self, job_id: str) -> ExportJob | None:
        """Wait for a job to finish and return it."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self._jobs.get(job_id)

    async def shutdown(self) -> None:
        """Cancel every unfinished job and wait for cleanup."""
        for job_id, job in list(self._jobs.items()):
            if not job.status.is_finished:
                self.cancel(job_id, reason="Shutting down")
        if self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    async def _run_job(self, job: ExportJob) -> None:
        """Execute a job, recording its outcome on the job itself."""
        if job.status.is_finished:
            return

        def _progress(fraction: float, message: str) -> None:
            if job.status.is_finished:
                return
            job.progress = fraction
            job.message = message

        job.status = JobStatus.PROCESSING
        job.started_at = datetime.now(timezone.utc)
        job.message = "Waiting for previous export" if self._executor.busy else "Starting..."
        try:
            output = await self._executor.execute(job.plan, _progress)
            job.status = JobStatus.COMPLETED
            job.progress = 1.0
            job.message = "Complete"
            job.output_path = str(output)
        except asyncio.CancelledError:
            self._mark_cancelled(job)
            raise
        except Exception as e:
            logger.exception("Export job %s failed", job.id)
            job.status = JobStatus.FAILED
            job.error = str(e)
            job.error_type = type(e).__name__
            job.message = "Failed"
        finally:
            job.completed_at = job.completed_at or datetime.now(timezone.utc)
            if self._current_id == job.id:
                self._current_id = None

    def _mark_cancelled(self, job: ExportJob) -> None:
        job.status = JobStatus.CANCELLED
        job.message = self._cancel_reasons.get(job.id, "Cancelled")
        job.completed_at = datetime.now(timezone.utc)

    def _forget(self, job_id: str) -> None:
        self._tasks.pop(job_id, None)
        self._cancel_reasons.pop(job_id, None)
