"""Tests for export planning and progress aggregation."""

from pathlib import Path

import pytest

from vied.errors import EmptyTimelineError, SameFileConflictError, UnsupportedFormatError
from vied.export.planner import ExportPlanner, default_output_name, resolve_container
from vied.export.progress import ExportProgress
from vied.models.export import ContainerFormat
from vied.models.timeline import Timeline, TrimSelection


class TestExportPlanner:
    def setup_method(self) -> None:
        self.planner = ExportPlanner()

    def test_trim_selection_gives_one_operation(self, tmp_path: Path) -> None:
        sel = TrimSelection(source_ref=str(tmp_path / "in.mp4"), start=5.0, end=12.5)
        plan = self.planner.plan(sel, tmp_path / "out.mp4")

        assert len(plan.operations) == 1
        op = plan.operations[0]
        assert op.source_start == 5.0
        assert op.source_duration == 7.5
        assert not plan.requires_concat

    def test_timeline_gives_one_operation_per_clip(self, tmp_path: Path) -> None:
        tl = Timeline()
        tl.import_source(str(tmp_path / "in.mp4"), 90.0)
        tl.split_at(30.0)
        tl.select_clip(tl.clips[1].id)
        tl.split_at(60.0)
        tl.reorder(tl.clips[2].id, tl.clips[0].id)

        plan = self.planner.plan(tl, tmp_path / "out.mp4")

        assert plan.requires_concat
        assert [(op.source_start, op.source_duration) for op in plan.operations] == [
            (60.0, 30.0),
            (0.0, 30.0),
            (30.0, 30.0),
        ]

    def test_contiguous_clips_are_not_merged(self, tmp_path: Path) -> None:
        tl = Timeline()
        tl.import_source(str(tmp_path / "in.mp4"), 20.0)
        tl.split_at(5.0)

        plan = self.planner.plan(tl.edit_source(), tmp_path / "out.mp4")
        assert len(plan.operations) == 2

    def test_overlay_clips_are_not_exported(self, tmp_path: Path) -> None:
        tl = Timeline()
        tl.import_source(str(tmp_path / "in.mp4"), 20.0)
        tl.insert_source(str(tmp_path / "logo.mp4"), 4.0, 0, "overlay")

        plan = self.planner.plan(tl, tmp_path / "out.mp4")
        assert [op.source_ref for op in plan.operations] == [str(tmp_path / "in.mp4")]

    def test_weights_sum_to_total_duration(self, tmp_path: Path) -> None:
        tl = Timeline()
        tl.import_source(str(tmp_path / "in.mp4"), 73.31)
        for t in (7.7, 19.03, 41.9):
            clip = tl.clip_at(t)
            assert clip is not None
            tl.select_clip(clip.id)
            tl.split_at(t)
        tl.resize_edge(tl.clips[1].id, "right", 15.2)

        plan = self.planner.plan(tl, tmp_path / "out.mp4")
        assert sum(plan.weights) == pytest.approx(tl.duration, abs=1e-6)
        assert plan.total_duration == pytest.approx(tl.duration, abs=1e-6)

    def test_empty_timeline(self, tmp_path: Path) -> None:
        with pytest.raises(EmptyTimelineError):
            self.planner.plan(Timeline(), tmp_path / "out.mp4")

    def test_degenerate_trim(self, tmp_path: Path) -> None:
        sel = TrimSelection(source_ref=str(tmp_path / "in.mp4"), start=5.0, end=5.0)
        with pytest.raises(EmptyTimelineError):
            self.planner.plan(sel, tmp_path / "out.mp4")

    def test_output_equal_to_input(self, tmp_path: Path) -> None:
        source = tmp_path / "in.mp4"
        tl = Timeline()
        tl.import_source(str(source), 10.0)

        with pytest.raises(SameFileConflictError):
            self.planner.plan(tl, source)

    def test_output_equal_to_input_after_normalization(self, tmp_path: Path) -> None:
        (tmp_path / "sub").mkdir()
        tl = Timeline()
        tl.import_source(str(tmp_path / "in.mp4"), 10.0)

        with pytest.raises(SameFileConflictError):
            self.planner.plan(tl, tmp_path / "sub" / ".." / "in.mp4")

    def test_output_path_is_normalized(self, tmp_path: Path) -> None:
        sel = TrimSelection(source_ref=str(tmp_path / "in.mp4"), start=0.0, end=1.0)
        plan = self.planner.plan(sel, tmp_path / "." / "out.webm")

        assert plan.output_path == (tmp_path / "out.webm").resolve()
        assert plan.container is ContainerFormat.WEBM


class TestResolveContainer:
    def test_argument_wins(self) -> None:
        assert resolve_container("out.mp4", "MOV") is ContainerFormat.MOV

    def test_from_suffix(self) -> None:
        assert resolve_container("out.webm") is ContainerFormat.WEBM

    def test_default_without_suffix(self) -> None:
        assert resolve_container("out", default="mov") is ContainerFormat.MOV

    def test_unsupported(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            resolve_container("out.mkv")
        with pytest.raises(UnsupportedFormatError):
            resolve_container("out.mp4", "avi")

    def test_default_output_name(self) -> None:
        name = default_output_name(ContainerFormat.WEBM)
        assert name.startswith("vied-export-")
        assert name.endswith(".webm")


class TestExportProgress:
    def test_weighted_by_duration(self) -> None:
        progress = ExportProgress([1.0, 3.0], concat_share=0.05)
        assert progress.complete_trim(0) == pytest.approx(0.95 * 0.25)
        assert progress.complete_trim(1) == pytest.approx(0.95)
        assert progress.complete() == 1.0

    def test_single_operation_has_no_concat_share(self) -> None:
        progress = ExportProgress([10.0], concat_share=0.05)
        assert progress.update_trim(0, 50.0) == pytest.approx(0.5)

    def test_never_decreases(self) -> None:
        seen: list[float] = []
        progress = ExportProgress([2.0, 2.0], callback=lambda f, m: seen.append(f))
        progress.update_trim(0, 80.0)
        progress.update_trim(0, 20.0)
        progress.update_trim(1, 150.0)
        progress.update_concat(50.0)
        progress.complete()

        assert seen == sorted(seen)
        assert all(0.0 <= f <= 1.0 for f in seen)
        assert seen[-1] == 1.0

    def test_callback_receives_message(self) -> None:
        messages: list[str] = []
        progress = ExportProgress([1.0, 1.0], callback=lambda f, m: messages.append(m))
        progress.update_trim(1, 10.0)
        progress.update_concat(0.0)

        assert messages == ["Trimming clip 2/2", "Concatenating"]
