"""Media-related data models."""

from pydantic import BaseModel, Field


class MediaInfo(BaseModel):
    """Source media metadata as reported by the probe."""

    duration_seconds: float = Field(..., ge=0, description="Total duration in seconds")
    width: int = Field(0, description="Video width in pixels")
    height: int = Field(0, description="Video height in pixels")
    fps: float = Field(0.0, description="Frames per second")
    codec_name: str = Field("unknown", description="Video codec name")
    size_bytes: int = Field(0, description="File size in bytes")
    has_audio: bool = Field(False, description="Whether an audio stream exists")
    bit_rate: int = Field(0, description="Container bit rate in bits/s")
    format_name: str = Field("unknown", description="Container format name")

    @property
    def resolution(self) -> str | None:
        """Return resolution string (e.g., '1920x1080')."""
        if self.width and self.height:
            return f"{self.width}x{self.height}"
        return None
