"""Request and response schemas for the Vied API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from vied.models.timeline import Timeline
from vied.models.track import Edge, Track


# ------------------------------------------------------------------
# Timeline requests
# ------------------------------------------------------------------


class SourceRequest(BaseModel):
    path: str = Field(..., description="Path to the source video")
    duration: float | None = Field(None, description="Full duration in seconds (probed if omitted)")


class InsertRequest(SourceRequest):
    index: int = Field(..., description="Insert position within the track")
    track: Track = Field(Track.MAIN, description="Target track")


class SplitRequest(BaseModel):
    t: float = Field(..., description="Timeline position in seconds")


class ReorderRequest(BaseModel):
    dragged_id: int
    target_id: int


class ResizeRequest(BaseModel):
    clip_id: int
    edge: Edge
    source_time: float = Field(..., description="Requested edge position in source seconds")


class SelectRequest(BaseModel):
    clip_id: int


class SeekRequest(BaseModel):
    t: float = Field(..., description="Playhead position in seconds")


class TrimRequest(BaseModel):
    start: float = Field(..., description="In point in source seconds")
    end: float = Field(..., description="Out point in source seconds")


# ------------------------------------------------------------------
# Timeline responses
# ------------------------------------------------------------------


class ClipResponse(BaseModel):
    id: int
    source_ref: str
    track: str
    source_start: float
    source_end: float
    duration: float
    timeline_start: float
    timeline_end: float
    start_fraction: float
    width_fraction: float
    selected: bool = False


class TrimResponse(BaseModel):
    source_ref: str | None = None
    start: float
    end: float


class TimelineResponse(BaseModel):
    state: str
    overlay_state: str
    duration: float
    playhead: float
    selected_clip_id: int | None = None
    clips: list[ClipResponse] = Field(default_factory=list)
    overlay_clips: list[ClipResponse] = Field(default_factory=list)
    trim: TrimResponse

    @classmethod
    def from_timeline(cls, timeline: Timeline) -> TimelineResponse:
        def clips_for(track: Track) -> list[ClipResponse]:
            return [
                ClipResponse(
                    id=p.clip.id,
                    source_ref=p.clip.source_ref,
                    track=p.clip.track.value,
                    source_start=p.clip.range.start,
                    source_end=p.clip.range.end,
                    duration=p.clip.duration,
                    timeline_start=p.timeline_start,
                    timeline_end=p.timeline_end,
                    start_fraction=p.start_fraction,
                    width_fraction=p.width_fraction,
                    selected=p.clip.id == timeline.selected_clip_id,
                )
                for p in timeline.layout(track)
            ]

        trim = timeline.trim_selection
        return cls(
            state=timeline.track_state(Track.MAIN).value,
            overlay_state=timeline.track_state(Track.OVERLAY).value,
            duration=timeline.duration,
            playhead=timeline.playhead,
            selected_clip_id=timeline.selected_clip_id,
            clips=clips_for(Track.MAIN),
            overlay_clips=clips_for(Track.OVERLAY),
            trim=TrimResponse(source_ref=trim.source_ref, start=trim.start, end=trim.end),
        )


class SourcePositionResponse(BaseModel):
    source_ref: str
    source_time: float
    clip_id: int


# ------------------------------------------------------------------
# Export jobs
# ------------------------------------------------------------------


class ExportRequest(BaseModel):
    output_path: str | None = Field(None, description="Output file (defaults to the output directory)")
    format: str | None = Field(None, description="Container format (mp4/mov/webm)")


class JobCreateResponse(BaseModel):
    job_id: str
    status: str
    output_path: str
    operations: int


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    progress: float = 0.0
    message: str = ""
    output_path: str | None = None
    error: str | None = None
    error_type: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class JobListItem(BaseModel):
    job_id: str
    status: str
    output_path: str | None = None
    created_at: datetime


# ------------------------------------------------------------------
# Media info response
# ------------------------------------------------------------------


class MediaInfoResponse(BaseModel):
    path: str
    duration_seconds: float
    width: int
    height: int
    fps: float
    codec_name: str
    size_bytes: int
    has_audio: bool
    resolution: str | None = None
