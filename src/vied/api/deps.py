"""FastAPI dependencies."""

from __future__ import annotations

from pathlib import Path

from vied.config import Settings, settings
from vied.export.executor import ExportExecutor
from vied.export.planner import ExportPlanner
from vied.jobs.manager import ExportJobManager
from vied.models.timeline import Timeline
from vied.services.media import MediaService

_media_service: MediaService | None = None
_timeline: Timeline | None = None
_planner: ExportPlanner | None = None
_job_manager: ExportJobManager | None = None
_output_dir: Path | None = None


def new_timeline(cfg: Settings = settings) -> Timeline:
    """Create an empty timeline using the configured editing limits."""
    return Timeline(
        min_clip_duration=cfg.min_clip_duration,
        snap_threshold_fraction=cfg.snap_threshold_fraction,
        snap_marker_count=cfg.snap_marker_count,
    )


def init_services(cfg: Settings = settings) -> None:
    """Initialize the global session objects (called at app startup)."""
    global _media_service, _timeline, _planner, _job_manager, _output_dir
    _media_service = MediaService(
        ffmpeg_path=cfg.ffmpeg_path,
        ffprobe_path=cfg.ffprobe_path,
        probe_timeout=cfg.probe_timeout,
    )
    _timeline = new_timeline(cfg)
    _planner = ExportPlanner(default_container=cfg.default_container)
    executor = ExportExecutor(
        client=_media_service,
        staging_dir=cfg.temp_dir,
        max_parallel=cfg.max_parallel_transcodes,
        concat_share=cfg.concat_progress_share,
    )
    _job_manager = ExportJobManager(executor)
    _output_dir = cfg.output_dir


def get_media_service() -> MediaService:
    """Dependency that provides the MediaService instance."""
    if _media_service is None:
        raise RuntimeError("MediaService not initialized, call init_services() first")
    return _media_service


def get_timeline() -> Timeline:
    """Dependency that provides the editing session's Timeline."""
    if _timeline is None:
        raise RuntimeError("Timeline not initialized, call init_services() first")
    return _timeline


def get_planner() -> ExportPlanner:
    """Dependency that provides the ExportPlanner instance."""
    if _planner is None:
        raise RuntimeError("ExportPlanner not initialized, call init_services() first")
    return _planner


def get_job_manager() -> ExportJobManager:
    """Dependency that provides the ExportJobManager instance."""
    if _job_manager is None:
        raise RuntimeError("ExportJobManager not initialized, call init_services() first")
    return _job_manager


def get_output_dir() -> Path:
    """Dependency that provides the directory for default export names."""
    if _output_dir is None:
        raise RuntimeError("Output directory not initialized, call init_services() first")
    return _output_dir
