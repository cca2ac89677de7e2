"""Export plan data models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ContainerFormat(str, Enum):
    """Supported output containers."""

    MP4 = "mp4"
    MOV = "mov"
    WEBM = "webm"

    @property
    def video_codec(self) -> str:
        return "libvpx-vp9" if self is ContainerFormat.WEBM else "libx264"

    @property
    def audio_codec(self) -> str:
        return "libopus" if self is ContainerFormat.WEBM else "aac"


class TrimOperation(BaseModel):
    """One extraction from a source: ``source_duration`` seconds from ``source_start``."""

    model_config = ConfigDict(frozen=True)

    source_ref: str = Field(..., description="Source media path")
    source_start: float = Field(..., ge=0, description="Start in source seconds")
    source_duration: float = Field(..., gt=0, description="Length in seconds")


class ExportPlan(BaseModel):
    """Ordered list of trims plus the output they assemble into."""

    model_config = ConfigDict(frozen=True)

    operations: tuple[TrimOperation, ...] = Field(..., min_length=1)
    output_path: Path
    container: ContainerFormat

    @property
    def requires_concat(self) -> bool:
        return len(self.operations) > 1

    @property
    def weights(self) -> list[float]:
        """Relative work of each operation, for progress aggregation."""
        return [op.source_duration for op in self.operations]

    @property
    def total_duration(self) -> float:
        return sum(self.weights)
