"""Data models for Vied."""

from vied.models.export import ContainerFormat, ExportPlan, TrimOperation
from vied.models.media import MediaInfo
from vied.models.timeline import (
    Clip,
    ClipPlacement,
    ClipSequence,
    EditSource,
    SourcePosition,
    TimeRange,
    Timeline,
    TrimSelection,
    decile_markers,
    snap_to_nearest_marker,
)
from vied.models.track import Edge, Track, TrackState

__all__ = [
    # Media
    "MediaInfo",
    # Track
    "Track",
    "TrackState",
    "Edge",
    # Timeline
    "TimeRange",
    "Clip",
    "TrimSelection",
    "ClipSequence",
    "EditSource",
    "SourcePosition",
    "ClipPlacement",
    "Timeline",
    "decile_markers",
    "snap_to_nearest_marker",
    # Export
    "ContainerFormat",
    "TrimOperation",
    "ExportPlan",
]
