"""Configuration management for Vied."""

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VIED_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Directories
    output_dir: Path = Path("./outputs")
    temp_dir: Path = Path(tempfile.gettempdir()) / "vied"

    # FFmpeg
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    probe_timeout: float = 15.0

    # Export
    default_container: str = "mp4"
    max_parallel_transcodes: int = 1
    concat_progress_share: float = 0.05

    # Editing
    min_clip_duration: float = 1.0
    snap_threshold_fraction: float = 0.02
    snap_marker_count: int = 11

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.temp_dir.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
