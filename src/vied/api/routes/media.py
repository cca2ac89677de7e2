"""Media info endpoint."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query

from vied.api.deps import get_media_service
from vied.api.schemas import MediaInfoResponse
from vied.services.media import MediaService

router = APIRouter(prefix="/api/v1/media", tags=["media"])


@router.get("/info", response_model=MediaInfoResponse)
async def get_media_info(
    path: str = Query(..., description="Path to media file"),
    media: MediaService = Depends(get_media_service),
) -> MediaInfoResponse:
    file_path = Path(path)
    if not file_path.exists():
        raise HTTPException(status_code=422, detail=f"File not found: {path}")

    info = await media.probe(file_path)

    return MediaInfoResponse(
        path=str(file_path),
        duration_seconds=info.duration_seconds,
        width=info.width,
        height=info.height,
        fps=info.fps,
        codec_name=info.codec_name,
        size_bytes=info.size_bytes,
        has_audio=info.has_audio,
        resolution=info.resolution,
    )
