"""Export job endpoints."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException

from vied.api.deps import get_job_manager, get_output_dir, get_planner, get_timeline
from vied.api.schemas import (
    ExportRequest,
    JobCreateResponse,
    JobListItem,
    JobStatusResponse,
)
from vied.export.planner import ExportPlanner, default_output_name, resolve_container
from vied.jobs.manager import ExportJobManager
from vied.jobs.models import ExportJob
from vied.models.timeline import Timeline

router = APIRouter(prefix="/api/v1/exports", tags=["exports"])


def _status_response(job: ExportJob) -> JobStatusResponse:
    return JobStatusResponse(
        job_id=job.id,
        status=job.status.value,
        progress=job.progress,
        message=job.message,
        output_path=job.output_path,
        error=job.error,
        error_type=job.error_type,
        created_at=job.created_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
    )


# ------------------------------------------------------------------
# POST: start an export (202 Accepted)
# ------------------------------------------------------------------


@router.post("", response_model=JobCreateResponse, status_code=202)
async def create_export(
    req: ExportRequest,
    timeline: Timeline = Depends(get_timeline),
    planner: ExportPlanner = Depends(get_planner),
    mgr: ExportJobManager = Depends(get_job_manager),
    output_dir: Path = Depends(get_output_dir),
) -> JobCreateResponse:
    output_path = req.output_path
    if output_path is None:
        container = resolve_container("", req.format, planner.default_container)
        output_path = str(output_dir / default_output_name(container))

    plan = planner.plan(timeline, output_path, req.format)
    job = mgr.submit(plan)
    return JobCreateResponse(
        job_id=job.id,
        status=job.status.value,
        output_path=str(plan.output_path),
        operations=len(plan.operations),
    )


# ------------------------------------------------------------------
# GET / DELETE: query and cancel exports
# ------------------------------------------------------------------


@router.get("", response_model=list[JobListItem])
async def list_exports(
    mgr: ExportJobManager = Depends(get_job_manager),
) -> list[JobListItem]:
    return [
        JobListItem(
            job_id=j.id,
            status=j.status.value,
            output_path=j.output_path,
            created_at=j.created_at,
        )
        for j in mgr.list_jobs()
    ]


@router.get("/{job_id}", response_model=JobStatusResponse)
async def get_export(
    job_id: str,
    mgr: ExportJobManager = Depends(get_job_manager),
) -> JobStatusResponse:
    job = mgr.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return _status_response(job)


@router.delete("/{job_id}", response_model=JobStatusResponse)
async def cancel_export(
    job_id: str,
    mgr: ExportJobManager = Depends(get_job_manager),
) -> JobStatusResponse:
    job = mgr.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    mgr.cancel(job_id)
    return _status_response(job)
