"""Turn an edit source into an ordered list of trim operations."""

import logging
import time
from pathlib import Path

from vied.errors import EmptyTimelineError, SameFileConflictError, UnsupportedFormatError
from vied.models.export import ContainerFormat, ExportPlan, TrimOperation
from vied.models.timeline import ClipSequence, Timeline, TrimSelection

logger = logging.getLogger(__name__)


def normalize_path(path: Path | str) -> Path:
    """Absolute, symlink-free form of a path, used for same-file checks."""
    return Path(path).expanduser().resolve()


def resolve_container(
    output_path: Path | str,
    container: ContainerFormat | str | None = None,
    default: ContainerFormat | str = ContainerFormat.MP4,
) -> ContainerFormat:
    """Pick the container from the argument, the output suffix, or the default.

    Raises:
        UnsupportedFormatError: If the chosen format is not mp4, mov or webm.
    """
    if container is not None:
        name = container.value if isinstance(container, ContainerFormat) else str(container)
    else:
        name = Path(output_path).suffix or str(
            default.value if isinstance(default, ContainerFormat) else default
        )
    name = name.lower().lstrip(".")
    try:
        return ContainerFormat(name)
    except ValueError as e:
        supported = ", ".join(c.value for c in ContainerFormat)
        raise UnsupportedFormatError(
            f"Unsupported container '{name}' (expected one of: {supported})"
        ) from e


class ExportPlanner:
    """Builds export plans. Pure: never touches the transcoder or the filesystem."""

    def __init__(self, default_container: ContainerFormat | str = ContainerFormat.MP4) -> None:
        self.default_container = resolve_container("", default_container)

    def plan(
        self,
        source: Timeline | TrimSelection | ClipSequence,
        output_path: Path | str,
        container: ContainerFormat | str | None = None,
    ) -> ExportPlan:
        """Create the plan for exporting ``source`` to ``output_path``.

        A trim selection yields one operation. A clip sequence yields one
        operation per main-track clip in timeline order; adjacent clips are
        never merged, even when they are contiguous in the same source.

        Raises:
            EmptyTimelineError: If there is nothing to export.
            SameFileConflictError: If the output would overwrite an input.
            UnsupportedFormatError: If the container is not supported.
        """
        resolved = resolve_container(output_path, container, self.default_container)
        operations = self.operations_for(source)
        if not operations:
            raise EmptyTimelineError("Nothing to export: no clips and no trim selection")

        output = normalize_path(output_path)
        for op in operations:
            if normalize_path(op.source_ref) == output:
                raise SameFileConflictError(
                    f"Output path {output} is one of the export inputs"
                )

        plan = ExportPlan(operations=tuple(operations), output_path=output, container=resolved)
        logger.info(
            "Planned export of %d operation(s), %.3fs total, to %s (%s)",
            len(plan.operations), plan.total_duration, output, resolved.value,
        )
        return plan

    def operations_for(
        self,
        source: Timeline | TrimSelection | ClipSequence,
    ) -> list[TrimOperation]:
        """Return the trim operations for an edit source, possibly empty."""
        if isinstance(source, Timeline):
            source = source.edit_source()

        if isinstance(source, TrimSelection):
            if source.is_degenerate:
                return []
            return [
                TrimOperation(
                    source_ref=source.source_ref,
                    source_start=source.start,
                    source_duration=source.end - source.start,
                )
            ]

        return [
            TrimOperation(
                source_ref=clip.source_ref,
                source_start=clip.range.start,
                source_duration=clip.range.duration,
            )
            for clip in source.clips
        ]


def default_output_name(container: ContainerFormat | str) -> str:
    """File name used when an export has no explicit output path."""
    return f"vied-export-{int(time.time() * 1000)}.{ContainerFormat(container).value}"
