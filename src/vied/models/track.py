"""Track-related data models."""

from enum import Enum


class Track(str, Enum):
    """Timeline track a clip is placed on.

    Only the main track is exported. Overlay clips are laid out and
    displayed but never composited.
    """

    MAIN = "main"
    OVERLAY = "overlay"


class TrackState(str, Enum):
    """Editing state of a single track.

    EMPTY -> SINGLE (one full-span clip) -> SPLIT (clip list). Deleting
    every clip returns to EMPTY; deleting down to one clip after a split
    stays SPLIT.
    """

    EMPTY = "empty"
    SINGLE = "single"
    SPLIT = "split"


class Edge(str, Enum):
    """Clip edge grabbed by a resize."""

    LEFT = "left"
    RIGHT = "right"
