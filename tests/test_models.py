"""Tests for Canvas response models."""

import pytest

from canvasspider.models import Course, FileRecord, FolderRecord


class TestCourse:
    """Tests for Course parsing and progress classification."""

    def test_from_dict(self):
        course = Course.from_dict(
            {
                "id": 7,
                "name": "Algorithms",
                "course_code": "CS101",
                "start_at": "2024-01-10T00:00:00Z",
                "end_at": None,
                "course_progress": {
                    "requirement_count": 10,
                    "requirement_completed_count": 4,
                },
            }
        )
        assert course.id == 7
        assert course.course_code == "CS101"
        assert course.has_progress
        assert not course.is_completed

    def test_completed(self):
        course = Course(
            id=1, name="c", requirement_count=5, requirement_completed_count=5
        )
        assert course.is_completed

    @pytest.mark.parametrize(
        "count, completed", [(0, 0), (None, 3), (5, None)]
    )
    def test_incomplete_progress_is_not_completed(self, count, completed):
        course = Course(
            id=1, name="c", requirement_count=count, requirement_completed_count=completed
        )
        assert not course.is_completed

    def test_progress_error_object(self):
        """Canvas returns an error object when progress is not tracked."""
        course = Course.from_dict(
            {"id": 1, "name": "c", "course_progress": {"error": {"message": "no"}}}
        )
        assert not course.has_progress
        assert not course.is_completed


class TestFileRecord:
    """Tests for FileRecord."""

    @pytest.mark.parametrize(
        "filename, extension",
        [
            ("slides.pdf", "pdf"),
            ("Lecture.MP4", "mp4"),
            ("archive.tar.gz", "gz"),
            ("README", ""),
            (".hidden", ""),
            ("trailing.", ""),
        ],
    )
    def test_extension(self, filename, extension):
        assert FileRecord(id=1, filename=filename, folder_id=None).extension == extension

    def test_from_dict(self):
        record = FileRecord.from_dict(
            {
                "id": 10,
                "filename": "slides.pdf",
                "display_name": "Slides",
                "folder_id": 2,
                "url": "https://canvas.test/files/10/download",
                "mime_class": "pdf",
                "size": 1234,
            }
        )
        assert record.folder_id == 2
        assert record.size == 1234
        assert record.url.endswith("/download")

    def test_from_dict_falls_back_to_display_name(self):
        record = FileRecord.from_dict({"id": 1, "display_name": "notes.txt"})
        assert record.filename == "notes.txt"
        assert record.folder_id is None
        assert record.size == 0


def test_folder_record_from_dict():
    folder = FolderRecord.from_dict(
        {"id": 2, "name": "Lecture", "parent_folder_id": 1, "full_name": "course files/Lecture"}
    )
    assert folder.parent_folder_id == 1
    assert folder.name == "Lecture"
