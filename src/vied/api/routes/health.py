"""Health check endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from vied.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    ffmpeg_path: str
    ffprobe_path: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return the health status and configured media tools."""
    from vied import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        ffmpeg_path=settings.ffmpeg_path,
        ffprobe_path=settings.ffprobe_path,
    )
