"""Timeline editing endpoints for the single editing session."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query

from vied.api.deps import get_media_service, get_timeline
from vied.api.schemas import (
    InsertRequest,
    ReorderRequest,
    ResizeRequest,
    SeekRequest,
    SelectRequest,
    SourcePositionResponse,
    SourceRequest,
    SplitRequest,
    TimelineResponse,
    TrimRequest,
)
from vied.models.timeline import Timeline
from vied.services.media import MediaService

router = APIRouter(prefix="/api/v1/timeline", tags=["timeline"])


async def _source_duration(req: SourceRequest, media: MediaService) -> float:
    """Use the supplied duration or probe the file for it."""
    if req.duration is not None:
        return req.duration
    file_path = Path(req.path)
    if not file_path.exists():
        raise HTTPException(status_code=422, detail=f"File not found: {req.path}")
    info = await media.probe(file_path)
    return info.duration_seconds


@router.get("", response_model=TimelineResponse)
async def get_state(timeline: Timeline = Depends(get_timeline)) -> TimelineResponse:
    return TimelineResponse.from_timeline(timeline)


# ------------------------------------------------------------------
# Sources
# ------------------------------------------------------------------


@router.post("/import", response_model=TimelineResponse)
async def import_source(
    req: SourceRequest,
    timeline: Timeline = Depends(get_timeline),
    media: MediaService = Depends(get_media_service),
) -> TimelineResponse:
    duration = await _source_duration(req, media)
    timeline.import_source(req.path, duration)
    return TimelineResponse.from_timeline(timeline)


@router.post("/load", response_model=TimelineResponse)
async def load_source(
    req: SourceRequest,
    timeline: Timeline = Depends(get_timeline),
    media: MediaService = Depends(get_media_service),
) -> TimelineResponse:
    duration = await _source_duration(req, media)
    timeline.load_source(req.path, duration)
    return TimelineResponse.from_timeline(timeline)


@router.post("/insert", response_model=TimelineResponse)
async def insert_source(
    req: InsertRequest,
    timeline: Timeline = Depends(get_timeline),
    media: MediaService = Depends(get_media_service),
) -> TimelineResponse:
    duration = await _source_duration(req, media)
    timeline.insert_source(req.path, duration, req.index, req.track)
    return TimelineResponse.from_timeline(timeline)


@router.post("/reset", response_model=TimelineResponse)
async def reset(timeline: Timeline = Depends(get_timeline)) -> TimelineResponse:
    timeline.reset()
    return TimelineResponse.from_timeline(timeline)


# ------------------------------------------------------------------
# Editing
# ------------------------------------------------------------------


@router.post("/split", response_model=TimelineResponse)
async def split(
    req: SplitRequest,
    timeline: Timeline = Depends(get_timeline),
) -> TimelineResponse:
    timeline.split_at(req.t)
    return TimelineResponse.from_timeline(timeline)


@router.post("/reorder", response_model=TimelineResponse)
async def reorder(
    req: ReorderRequest,
    timeline: Timeline = Depends(get_timeline),
) -> TimelineResponse:
    timeline.reorder(req.dragged_id, req.target_id)
    return TimelineResponse.from_timeline(timeline)


@router.post("/resize", response_model=TimelineResponse)
async def resize(
    req: ResizeRequest,
    timeline: Timeline = Depends(get_timeline),
) -> TimelineResponse:
    timeline.resize_edge(req.clip_id, req.edge, req.source_time)
    return TimelineResponse.from_timeline(timeline)


@router.post("/select", response_model=TimelineResponse)
async def select(
    req: SelectRequest,
    timeline: Timeline = Depends(get_timeline),
) -> TimelineResponse:
    timeline.select_clip(req.clip_id)
    return TimelineResponse.from_timeline(timeline)


@router.delete("/clips/{clip_id}", response_model=TimelineResponse)
async def delete_clip(
    clip_id: int,
    timeline: Timeline = Depends(get_timeline),
) -> TimelineResponse:
    timeline.delete_clip(clip_id)
    return TimelineResponse.from_timeline(timeline)


# ------------------------------------------------------------------
# Playhead and trim selection
# ------------------------------------------------------------------


@router.post("/seek", response_model=TimelineResponse)
async def seek(
    req: SeekRequest,
    timeline: Timeline = Depends(get_timeline),
) -> TimelineResponse:
    timeline.seek(req.t)
    return TimelineResponse.from_timeline(timeline)


@router.post("/trim", response_model=TimelineResponse)
async def set_trim(
    req: TrimRequest,
    timeline: Timeline = Depends(get_timeline),
) -> TimelineResponse:
    timeline.set_trim(req.start, req.end)
    return TimelineResponse.from_timeline(timeline)


@router.post("/mark-in", response_model=TimelineResponse)
async def mark_in(timeline: Timeline = Depends(get_timeline)) -> TimelineResponse:
    timeline.mark_in()
    return TimelineResponse.from_timeline(timeline)


@router.post("/mark-out", response_model=TimelineResponse)
async def mark_out(timeline: Timeline = Depends(get_timeline)) -> TimelineResponse:
    timeline.mark_out()
    return TimelineResponse.from_timeline(timeline)


@router.get("/map", response_model=SourcePositionResponse)
async def map_to_source(
    t: float = Query(..., description="Timeline position in seconds"),
    timeline: Timeline = Depends(get_timeline),
) -> SourcePositionResponse:
    pos = timeline.map_timeline_to_source(t)
    return SourcePositionResponse(
        source_ref=pos.source_ref,
        source_time=pos.source_time,
        clip_id=pos.clip_id,
    )
