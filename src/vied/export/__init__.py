"""Export planning and execution for Vied."""

from vied.export.executor import ExportExecutor
from vied.export.planner import (
    ExportPlanner,
    default_output_name,
    normalize_path,
    resolve_container,
)
from vied.export.progress import ExportProgress, ProgressCallback

__all__ = [
    "ExportExecutor",
    "ExportPlanner",
    "ExportProgress",
    "ProgressCallback",
    "default_output_name",
    "normalize_path",
    "resolve_container",
]
