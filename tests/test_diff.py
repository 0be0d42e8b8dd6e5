"""Tests for tagging a materialized tree against the local filesystem."""

import pytest

from canvasspider.config import Config
from canvasspider.models import FileRecord, FolderRecord
from canvasspider.sync.builder import build_tree
from canvasspider.sync.diff import DiffTagger, tag_tree
from canvasspider.sync.nodes import FolderNode, iter_files, iter_folders
from canvasspider.sync.paths import materialize


def make_tree(base_dir, sizes=None):
    sizes = sizes or {}
    folders = [FolderRecord(1, "Unit1"), FolderRecord(2, "Lecture", 1)]
    files = [
        FileRecord(10, "slides.pdf", 2, url="u10", size=sizes.get("slides.pdf", 100)),
        FileRecord(11, "notes.txt", 1, url="u11", size=sizes.get("notes.txt", 50)),
    ]
    return materialize(build_tree(Config(base_dir=str(base_dir)), folders, files))


def tagged(root):
    return sorted(
        node.name.rsplit("/", 1)[-1]
        for node in list(iter_files(root)) + list(iter_folders(root))
        if node.tag
    )


class TestTagTree:
    """Tests for DiffTagger."""

    def test_empty_target_tags_everything(self, tmp_path):
        root = make_tree(tmp_path / "course")
        summary = tag_tree(root, Config())

        assert tagged(root) == ["Lecture", "Unit1", "course", "notes.txt", "slides.pdf"]
        assert summary.files == 2
        assert summary.folders == 3
        assert summary.bytes == 150

    def test_existing_files_are_skipped(self, tmp_path):
        lecture = tmp_path / "course" / "Unit1" / "Lecture"
        lecture.mkdir(parents=True)
        (lecture / "slides.pdf").write_bytes(b"old")

        root = make_tree(tmp_path / "course")
        summary = tag_tree(root, Config())

        assert tagged(root) == ["notes.txt"]
        assert summary.up_to_date == 1
        assert summary.folders == 0

    def test_overwrite_tags_existing_files(self, tmp_path):
        lecture = tmp_path / "course" / "Unit1" / "Lecture"
        lecture.mkdir(parents=True)
        (lecture / "slides.pdf").write_bytes(b"old")

        root = make_tree(tmp_path / "course")
        summary = tag_tree(root, Config(update="overwrite"))

        assert tagged(root) == ["notes.txt", "slides.pdf"]
        assert summary.folders == 0

    def test_max_file_size(self, tmp_path):
        root = make_tree(tmp_path / "course", sizes={"slides.pdf": 5000})
        summary = tag_tree(root, Config(max_file_size=1000))

        assert tagged(root) == ["Unit1", "course", "notes.txt"]
        assert summary.skipped == [
            (f"{tmp_path}/course/Unit1/Lecture/slides.pdf", "exceeds max file size")
        ]

    def test_max_total_size(self, tmp_path):
        root = make_tree(tmp_path / "course", sizes={"slides.pdf": 80, "notes.txt": 80})
        summary = tag_tree(root, Config(max_total_size=100))

        assert summary.files == 1
        assert summary.bytes == 80
        assert summary.skipped[0][1] == "exceeds max total size"

    def test_budget_is_shared_between_trees(self, tmp_path):
        tagger = DiffTagger(Config(max_total_size=160))
        first = tagger.tag(make_tree(tmp_path / "a"))
        second = tagger.tag(make_tree(tmp_path / "b"))

        assert first.files == 2
        assert second.files == 0
        assert len(second.skipped) == 2

    def test_requires_materialized_tree(self):
        with pytest.raises(ValueError, match="materialized"):
            tag_tree(FolderNode("raw"), Config())
