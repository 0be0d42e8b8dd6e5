"""Data models for Canvas API responses."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Course:
    """A course the user is enrolled in."""

    id: int
    name: str
    course_code: str = ""
    start_at: Optional[str] = None
    end_at: Optional[str] = None
    requirement_count: Optional[int] = None
    requirement_completed_count: Optional[int] = None

    @property
    def has_progress(self) -> bool:
        """Whether Canvas reported module progress for this course."""
        return bool(self.requirement_count) and (
            self.requirement_completed_count is not None
        )

    @property
    def is_completed(self) -> bool:
        """Whether every module requirement has been completed."""
        count = self.requirement_count
        completed = self.requirement_completed_count
        if not count or completed is None:
            return False
        return completed >= count

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Course":
        """Create a Course from a Canvas course object."""
        progress = data.get("course_progress") or {}
        if not isinstance(progress, dict):
            # Canvas returns {"error": ...} or a string when progress is unavailable
            progress = {}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            course_code=data.get("course_code", ""),
            start_at=data.get("start_at"),
            end_at=data.get("end_at"),
            requirement_count=progress.get("requirement_count"),
            requirement_completed_count=progress.get("requirement_completed_count"),
        )


@dataclass(frozen=True)
class FolderRecord:
    """A folder from a course's flat folder listing."""

    id: int
    name: str
    parent_folder_id: Optional[int] = None
    full_name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FolderRecord":
        """Create a FolderRecord from a Canvas folder object."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            parent_folder_id=data.get("parent_folder_id"),
            full_name=data.get("full_name", ""),
        )


@dataclass(frozen=True)
class FileRecord:
    """A file from a course's flat file listing."""

    id: int
    filename: str
    folder_id: Optional[int]
    url: str = ""
    mime_class: str = ""
    size: int = 0
    display_name: str = ""
    updated_at: Optional[str] = None

    @property
    def extension(self) -> str:
        """Lower-case file extension without the dot, empty if there is none."""
        _, dot, suffix = self.filename.rpartition(".")
        if not dot or not _ or not suffix:
            return ""
        return suffix.lower()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileRecord":
        """Create a FileRecord from a Canvas file object."""
        return cls(
            id=data["id"],
            filename=data.get("filename") or data.get("display_name", ""),
            folder_id=data.get("folder_id"),
            url=data.get("url", ""),
            mime_class=data.get("mime_class", ""),
            size=data.get("size") or 0,
            display_name=data.get("display_name", ""),
            updated_at=data.get("updated_at"),
        )
