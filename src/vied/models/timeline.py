"""Timeline and editing-related data models.

Clips on a track are packed contiguously in list order, so a clip's
timeline position is always derived by walking the list and summing
durations. Nothing here stores absolute timeline positions.
"""

import logging
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vied.errors import (
    DerivedSelectionError,
    InvalidRangeError,
    NoSelectionError,
    OutOfRangeError,
)
from vied.models.track import Edge, Track, TrackState

logger = logging.getLogger(__name__)

MIN_CLIP_DURATION = 1.0
SNAP_THRESHOLD_FRACTION = 0.02
SNAP_MARKER_COUNT = 11  # 0%, 10%, ..., 100%

# Float slack when comparing a resized duration against the minimum.
_EPSILON = 1e-9


class TimeRange(BaseModel):
    """Half-open time range ``[start, end)`` in seconds."""

    model_config = ConfigDict(frozen=True)

    start: float = Field(..., description="Start time in seconds")
    end: float = Field(..., description="End time in seconds")

    @model_validator(mode="after")
    def validate_range(self) -> "TimeRange":
        """Ensure start is non-negative and end is after start."""
        if self.start < 0:
            raise InvalidRangeError(f"start must be >= 0, got {self.start}")
        if self.end <= self.start:
            raise InvalidRangeError(
                f"end ({self.end}) must be greater than start ({self.start})"
            )
        return self

    @classmethod
    def create(cls, start: float, end: float) -> "TimeRange":
        """Build a validated range, raising InvalidRangeError if empty or negative."""
        return cls(start=start, end=end)

    @property
    def duration(self) -> float:
        """Return duration in seconds."""
        return self.end - self.start

    def clamp(self, min_start: float, max_end: float) -> "TimeRange":
        """Constrain this range to ``[min_start, max_end]``.

        The start is raised first, then the end lowered. Raises
        InvalidRangeError when the bounds are empty or the range lies
        entirely outside them.
        """
        if max_end <= min_start:
            raise InvalidRangeError(f"empty bounds [{min_start}, {max_end}]")
        start = max(self.start, min_start)
        end = min(self.end, max_end)
        if end <= start:
            raise InvalidRangeError(
                f"[{self.start}, {self.end}) lies outside [{min_start}, {max_end}]"
            )
        return TimeRange(start=start, end=end)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and other.start < self.end

    def contains_instant(self, t: float) -> bool:
        """Check if an instant falls within this range (boundary belongs to the next range)."""
        return self.start <= t < self.end


class Clip(BaseModel):
    """A time range within a source video, placed on a track."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Unique, never reused clip id")
    source_ref: str = Field(..., description="Source media path")
    range: TimeRange = Field(..., description="Range within the source")
    track: Track = Field(default=Track.MAIN, description="Track assignment")

    @property
    def duration(self) -> float:
        return self.range.duration


class TrimSelection(BaseModel):
    """Single in/out selection used before the source is cut into clips."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["trim"] = "trim"
    source_ref: str | None = Field(default=None, description="Loaded source, if any")
    start: float = Field(default=0.0, description="In point, source-relative seconds")
    end: float = Field(default=0.0, description="Out point, source-relative seconds")

    @classmethod
    def empty(cls) -> "TrimSelection":
        return cls()

    @property
    def duration(self) -> float:
        return max(self.end - self.start, 0.0)

    @property
    def is_degenerate(self) -> bool:
        """True when there is nothing to export."""
        return self.source_ref is None or self.end <= self.start


class ClipSequence(BaseModel):
    """Snapshot of the main track's clips in timeline order."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["sequence"] = "sequence"
    clips: tuple[Clip, ...] = ()

    @property
    def duration(self) -> float:
        return sum(c.duration for c in self.clips)


EditSource = Annotated[TrimSelection | ClipSequence, Field(discriminator="kind")]


class SourcePosition(BaseModel):
    """Result of mapping a timeline instant back to its source."""

    model_config = ConfigDict(frozen=True)

    source_ref: str
    source_time: float
    clip_id: int


class ClipPlacement(BaseModel):
    """Derived layout of one clip: absolute seconds and share of the track."""

    model_config = ConfigDict(frozen=True)

    clip: Clip
    timeline_start: float
    timeline_end: float
    start_fraction: float
    width_fraction: float


def decile_markers(total_duration: float, count: int = SNAP_MARKER_COUNT) -> list[float]:
    """Return ``count`` evenly spaced markers from 0 to ``total_duration`` inclusive."""
    if total_duration <= 0 or count < 2:
        return []
    return [total_duration * i / (count - 1) for i in range(count)]


def snap_to_nearest_marker(
    candidate: float,
    markers: list[float],
    threshold_fraction: float,
) -> float:
    """Snap ``candidate`` to the nearest marker if close enough.

    The threshold is ``threshold_fraction`` of the span covered by the
    markers (the total duration when markers run from 0% to 100%).
    """
    if not markers:
        return candidate
    threshold = (max(markers) - min(markers)) * threshold_fraction
    nearest = min(markers, key=lambda m: abs(candidate - m))
    if abs(candidate - nearest) <= threshold:
        return nearest
    return candidate


class Timeline(BaseModel):
    """Editing session: ordered clips per track plus selection and playhead.

    Every editing operation computes the new clip lists first and assigns
    them at the end, so a failing call leaves the timeline untouched.
    """

    tracks: dict[Track, list[Clip]] = Field(
        default_factory=lambda: {Track.MAIN: [], Track.OVERLAY: []},
        description="Clips per track in timeline order",
    )
    selected_clip_id: int | None = Field(None, description="Currently selected clip")
    playhead: float = Field(0.0, description="Playhead position, timeline seconds")
    trim: TrimSelection = Field(
        default_factory=TrimSelection, description="Pre-split selection (main track empty)"
    )
    source_durations: dict[str, float] = Field(
        default_factory=dict, description="Known full durations per source"
    )
    next_clip_id: int = Field(1, description="Next id to hand out")
    split_tracks: set[Track] = Field(
        default_factory=set, description="Tracks that have left the single-clip state"
    )

    min_clip_duration: float = MIN_CLIP_DURATION
    snap_threshold_fraction: float = SNAP_THRESHOLD_FRACTION
    snap_marker_count: int = SNAP_MARKER_COUNT

    # --- Queries ---

    def clips_on(self, track: Track = Track.MAIN) -> list[Clip]:
        """Return a copy of the clip list for a track."""
        return list(self.tracks.get(track, []))

    @property
    def clips(self) -> list[Clip]:
        """Main-track clips in timeline order."""
        return self.clips_on(Track.MAIN)

    def track_duration(self, track: Track = Track.MAIN) -> float:
        return sum(c.duration for c in self.tracks.get(track, []))

    @property
    def duration(self) -> float:
        """Main-track total; the overlay track does not count."""
        return self.track_duration(Track.MAIN)

    def track_state(self, track: Track = Track.MAIN) -> TrackState:
        count = len(self.tracks.get(track, []))
        if count == 0:
            return TrackState.EMPTY
        if track in self.split_tracks or count > 1:
            return TrackState.SPLIT
        return TrackState.SINGLE

    @property
    def state(self) -> TrackState:
        return self.track_state(Track.MAIN)

    def get_clip(self, clip_id: int) -> Clip | None:
        found = self._locate(clip_id)
        return found[2] if found else None

    @property
    def selected_clip(self) -> Clip | None:
        if self.selected_clip_id is None:
            return None
        return self.get_clip(self.selected_clip_id)

    @property
    def trim_selection(self) -> TrimSelection:
        """Selection shown in the in/out controls.

        Mirrors the selected clip (or the whole main span) once clips
        exist; otherwise it is the stored pre-split selection.
        """
        main = self.tracks.get(Track.MAIN, [])
        if not main:
            return self.trim
        selected = self.selected_clip
        if selected is not None:
            return TrimSelection(
                source_ref=selected.source_ref,
                start=selected.range.start,
                end=selected.range.end,
            )
        return TrimSelection(source_ref=main[0].source_ref, start=0.0, end=self.duration)

    def edit_source(self) -> TrimSelection | ClipSequence:
        """Return what would be exported right now."""
        main = self.tracks.get(Track.MAIN, [])
        if main:
            return ClipSequence(clips=tuple(main))
        return self.trim

    def layout(self, track: Track = Track.MAIN) -> list[ClipPlacement]:
        """Derive each clip's timeline position and fractional share of the track."""
        clips = self.tracks.get(track, [])
        total = sum(c.duration for c in clips)
        placements = []
        offset = 0.0
        for clip in clips:
            end = offset + clip.duration
            placements.append(
                ClipPlacement(
                    clip=clip,
                    timeline_start=offset,
                    timeline_end=end,
                    start_fraction=offset / total if total else 0.0,
                    width_fraction=clip.duration / total if total else 0.0,
                )
            )
            offset = end
        return placements

    def clip_timeline_start(self, clip_id: int) -> float | None:
        """Return the timeline start of a clip, or None if unknown."""
        found = self._locate(clip_id)
        if found is None:
            return None
        track, index, _ = found
        return sum(c.duration for c in self.tracks[track][:index])

    def clip_at(self, timeline_t: float, track: Track = Track.MAIN) -> Clip | None:
        """Return the clip whose timeline interval contains ``timeline_t``."""
        offset = 0.0
        for clip in self.tracks.get(track, []):
            if offset <= timeline_t < offset + clip.duration:
                return clip
            offset += clip.duration
        return None

    def map_timeline_to_source(self, timeline_t: float) -> SourcePosition:
        """Convert a main-track timeline instant to ``(source, source time)``.

        Raises:
            OutOfRangeError: If ``timeline_t`` is negative or at/after the end.
        """
        if timeline_t < 0 or timeline_t >= self.duration:
            raise OutOfRangeError(
                f"timeline position {timeline_t} outside [0, {self.duration})"
            )
        offset = 0.0
        for clip in self.tracks.get(Track.MAIN, []):
            if offset <= timeline_t < offset + clip.duration:
                return SourcePosition(
                    source_ref=clip.source_ref,
                    source_time=clip.range.start + (timeline_t - offset),
                    clip_id=clip.id,
                )
            offset += clip.duration
        raise OutOfRangeError(f"timeline position {timeline_t} not covered by any clip")

    # --- Source loading ---

    def import_source(self, source_ref: str, full_duration: float) -> Clip:
        """Replace the timeline with one full-length main clip and select it."""
        full_range = TimeRange.create(0.0, full_duration)
        clip = Clip(id=self.next_clip_id, source_ref=source_ref, range=full_range)

        self.tracks = {Track.MAIN: [clip], Track.OVERLAY: []}
        self.split_tracks = set()
        self.source_durations = {**self.source_durations, source_ref: full_duration}
        self.next_clip_id = clip.id + 1
        self.selected_clip_id = clip.id
        self.trim = TrimSelection.empty()
        self.playhead = 0.0
        logger.info("Imported %s (%.3fs) as clip %d", source_ref, full_duration, clip.id)
        return clip

    def load_source(self, source_ref: str, full_duration: float) -> TrimSelection:
        """Clear all clips and select the whole source in pre-split mode."""
        TimeRange.create(0.0, full_duration)
        trim = TrimSelection(source_ref=source_ref, start=0.0, end=full_duration)

        self.tracks = {Track.MAIN: [], Track.OVERLAY: []}
        self.split_tracks = set()
        self.source_durations = {**self.source_durations, source_ref: full_duration}
        self.selected_clip_id = None
        self.trim = trim
        self.playhead = 0.0
        logger.info("Loaded %s (%.3fs) for trimming", source_ref, full_duration)
        return trim

    def insert_source(
        self,
        source_ref: str,
        full_duration: float,
        index: int,
        track: Track = Track.MAIN,
    ) -> Clip:
        """Insert a full-length clip of a dropped file at ``index`` and select it."""
        full_range = TimeRange.create(0.0, full_duration)
        track = Track(track)
        clips = self.clips_on(track)
        index = max(0, min(index, len(clips)))
        clip = Clip(id=self.next_clip_id, source_ref=source_ref, range=full_range, track=track)
        clips.insert(index, clip)

        self.tracks = {**self.tracks, track: clips}
        if len(clips) > 1:
            self.split_tracks = self.split_tracks | {track}
        self.source_durations = {**self.source_durations, source_ref: full_duration}
        self.next_clip_id = clip.id + 1
        self.selected_clip_id = clip.id
        logger.info("Inserted %s as clip %d at %s[%d]", source_ref, clip.id, track.value, index)
        return clip

    def reset(self) -> None:
        """Return to an empty timeline. Clip ids keep counting up."""
        self.tracks = {Track.MAIN: [], Track.OVERLAY: []}
        self.split_tracks = set()
        self.source_durations = {}
        self.selected_clip_id = None
        self.trim = TrimSelection.empty()
        self.playhead = 0.0

    # --- Editing ---

    def split_at(self, timeline_t: float) -> tuple[Clip, Clip]:
        """Split the selected clip at a timeline instant strictly inside it.

        The two halves replace the clip in place and the first half becomes
        the selection.

        Raises:
            NoSelectionError: If nothing is selected or ``timeline_t`` is not
                strictly inside the selected clip.
        """
        found = self._locate(self.selected_clip_id) if self.selected_clip_id is not None else None
        if found is None:
            raise NoSelectionError("no clip selected to split")
        track, index, clip = found

        clips = self.clips_on(track)
        offset = sum(c.duration for c in clips[:index])
        if not offset < timeline_t < offset + clip.duration:
            raise NoSelectionError(
                f"split point {timeline_t} is not inside clip {clip.id} "
                f"[{offset}, {offset + clip.duration})"
            )
        split_point = clip.range.start + (timeline_t - offset)
        if not clip.range.start < split_point < clip.range.end:
            raise NoSelectionError(f"split point {timeline_t} falls on a clip boundary")

        first = Clip(
            id=self.next_clip_id,
            source_ref=clip.source_ref,
            range=TimeRange(start=clip.range.start, end=split_point),
            track=track,
        )
        second = Clip(
            id=self.next_clip_id + 1,
            source_ref=clip.source_ref,
            range=TimeRange(start=split_point, end=clip.range.end),
            track=track,
        )
        clips[index:index + 1] = [first, second]

        self.tracks = {**self.tracks, track: clips}
        self.split_tracks = self.split_tracks | {track}
        self.next_clip_id = second.id + 1
        self.selected_clip_id = first.id
        logger.debug("Split clip %d at %.3f into %d/%d", clip.id, timeline_t, first.id, second.id)
        return first, second

    def reorder(self, dragged_id: int, target_id: int) -> bool:
        """Move a clip to just before another clip on the same track.

        Returns False (and changes nothing) if either id is unknown, the
        clips are on different tracks, or the ids are equal.
        """
        if dragged_id == target_id:
            return False
        dragged = self._locate(dragged_id)
        target = self._locate(target_id)
        if dragged is None or target is None or dragged[0] != target[0]:
            return False

        track = dragged[0]
        clips = self.clips_on(track)
        moved = clips.pop(dragged[1])
        target_index = next(i for i, c in enumerate(clips) if c.id == target_id)
        clips.insert(target_index, moved)

        self.tracks = {**self.tracks, track: clips}
        return True

    def resize_edge(self, clip_id: int, edge: Edge | str, new_source_time: float) -> Clip | None:
        """Move one edge of a clip's source range.

        The requested time is snapped to the nearest decile marker of the
        main-track duration, then clamped so the clip stays at least
        ``min_clip_duration`` long and within its source.

        Returns:
            The resized clip, or None if ``clip_id`` is unknown.

        Raises:
            InvalidRangeError: If no position satisfies the minimum duration.
        """
        found = self._locate(clip_id)
        if found is None:
            return None
        track, index, clip = found
        edge = Edge(edge)

        markers = decile_markers(self.duration, self.snap_marker_count)
        candidate = snap_to_nearest_marker(new_source_time, markers, self.snap_threshold_fraction)

        start, end = clip.range.start, clip.range.end
        if edge is Edge.LEFT:
            start = max(0.0, min(candidate, end - self.min_clip_duration))
        else:
            end = max(candidate, start + self.min_clip_duration)
            source_duration = self.source_durations.get(clip.source_ref)
            if source_duration is not None:
                end = min(end, source_duration)

        if end - start < self.min_clip_duration - _EPSILON:
            raise InvalidRangeError(
                f"clip {clip_id} cannot be resized below {self.min_clip_duration}s"
            )
        resized = clip.model_copy(update={"range": TimeRange(start=start, end=end)})
        clips = self.clips_on(track)
        clips[index] = resized

        self.tracks = {**self.tracks, track: clips}
        return resized

    def delete_clip(self, clip_id: int) -> Clip | None:
        """Remove a clip. Returns the removed clip, or None if unknown."""
        found = self._locate(clip_id)
        if found is None:
            return None
        track, index, _ = found
        clips = self.clips_on(track)
        removed = clips.pop(index)

        self.tracks = {**self.tracks, track: clips}
        if not clips:
            self.split_tracks = self.split_tracks - {track}
            if track is Track.MAIN:
                self.trim = TrimSelection.empty()
        if self.selected_clip_id == clip_id:
            self.selected_clip_id = None
        self.playhead = min(self.playhead, self.duration)
        logger.debug("Deleted clip %d from %s", clip_id, track.value)
        return removed

    def select_clip(self, clip_id: int) -> bool:
        """Select a clip; unknown ids are ignored."""
        if self._locate(clip_id) is None:
            return False
        self.selected_clip_id = clip_id
        return True

    def seek(self, t: float) -> float:
        """Move the playhead and select the main clip under it."""
        self.playhead = max(0.0, min(t, self._playable_duration()))
        clip = self.clip_at(self.playhead)
        if clip is not None:
            self.selected_clip_id = clip.id
        return self.playhead

    def set_trim(self, start: float, end: float) -> TrimSelection:
        """Set the pre-split in/out points."""
        self._require_pre_split()
        TimeRange.create(start, end)
        source_duration = self.source_durations.get(self.trim.source_ref)
        if source_duration is not None and end > source_duration:
            raise InvalidRangeError(f"out point {end} is past the source end {source_duration}")
        self.trim = self.trim.model_copy(update={"start": start, "end": end})
        return self.trim

    def mark_in(self) -> bool:
        """Set the in point at the playhead if it is before the out point."""
        self._require_pre_split()
        if self.playhead >= self.trim.end:
            return False
        self.trim = self.trim.model_copy(update={"start": self.playhead})
        return True

    def mark_out(self) -> bool:
        """Set the out point at the playhead if it is after the in point."""
        self._require_pre_split()
        if self.playhead <= self.trim.start:
            return False
        self.trim = self.trim.model_copy(update={"end": self.playhead})
        return True

    # --- Internals ---

    def _locate(self, clip_id: int) -> tuple[Track, int, Clip] | None:
        for track, clips in self.tracks.items():
            for index, clip in enumerate(clips):
                if clip.id == clip_id:
                    return track, index, clip
        return None

    def _playable_duration(self) -> float:
        if self.tracks.get(Track.MAIN):
            return self.duration
        if self.trim.source_ref is not None:
            return self.source_durations.get(self.trim.source_ref, self.trim.end)
        return 0.0

    def _require_pre_split(self) -> None:
        if self.tracks.get(Track.MAIN):
            raise DerivedSelectionError(
                "trim selection follows the selected clip once clips exist"
            )
        if self.trim.source_ref is None:
            raise NoSelectionError("no source loaded")
