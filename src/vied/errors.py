"""Custom exceptions for Vied."""


class ViedError(Exception):
    """Base exception for Vied."""

    pass


# --- Model invariant violations ---


class ModelError(ViedError):
    """Editing operation violated a timeline invariant."""

    pass


class InvalidRangeError(ModelError):
    """Time range is empty, negative, or below the minimum clip duration."""

    pass


class NoSelectionError(ModelError):
    """Operation needs a selected clip (or a position inside it)."""

    pass


class OutOfRangeError(ModelError):
    """Timeline position is outside the sequence."""

    pass


class DerivedSelectionError(ModelError):
    """Trim selection is read-only once clips exist."""

    pass


# --- Planning errors ---


class PlanningError(ViedError):
    """Export plan was rejected before any transcoder call."""

    pass


class EmptyTimelineError(PlanningError):
    """Nothing is selected for export."""

    pass


class SameFileConflictError(PlanningError):
    """Export output would overwrite one of its inputs."""

    pass


class UnsupportedFormatError(PlanningError):
    """Container format is not one of mp4, mov or webm."""

    pass


# --- Execution errors (external collaborator) ---


class ExecutionError(ViedError):
    """External transcoder or probe call failed."""

    pass


class ProbeError(ExecutionError):
    """Media probe failed or found no decodable video stream."""

    pass


class TranscodeError(ExecutionError):
    """Trim transcode failed."""

    pass


class ConcatenateError(ExecutionError):
    """Concatenation of staged clips failed."""

    pass
