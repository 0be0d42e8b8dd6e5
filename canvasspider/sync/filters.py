"""Black/white list filtering of courses, files and folders."""

import logging
from collections.abc import Iterable

from ..config import Config
from ..models import Course, FileRecord, FolderRecord
from ..utils import normalize_extension

logger = logging.getLogger(__name__)


def filter_files(config: Config, files: Iterable[FileRecord]) -> list[FileRecord]:
    """Apply the file name and extension lists of the configuration.

    Precedence:

    1. A name in ``file_white_list`` is always kept, extension lists are not
       consulted for it.
    2. A name in ``file_black_list`` is dropped.
    3. Any other file is kept if its extension is whitelisted or not
       blacklisted. Files without an extension are never blacklisted.

    Args:
        config: Configuration holding the lists
        files: Remote file records

    Returns:
        Survivors of step 3 followed by the whitelisted files
    """
    records = list(files)

    whitelisted = set(config.file_white_list)
    blacklisted = set(config.file_black_list) - whitelisted

    ext_white = {normalize_extension(e) for e in config.file_extension_white_list}
    ext_black = {normalize_extension(e) for e in config.file_extension_black_list}

    kept: list[FileRecord] = []
    preserved: list[FileRecord] = []
    for record in records:
        if record.filename in whitelisted:
            preserved.append(record)
            continue
        if record.filename in blacklisted:
            continue

        extension = record.extension
        if extension in ext_white:
            kept.append(record)
            continue
        if extension and extension in ext_black:
            continue
        kept.append(record)

    result = kept + preserved
    logger.debug(
        f"File filter kept {len(result)} file(s) "
        f"({len(preserved)} whitelisted by name)"
    )
    return result


def select_ready_folders(
    files: Iterable[FileRecord], folders: Iterable[FolderRecord]
) -> list[FolderRecord]:
    """Keep the folders that hold a ready file, together with their ancestors.

    Ancestors are kept so that the rebuilt tree still nests a folder under
    its real parent even when the parent itself holds no ready file.
    """
    by_id = {f.id: f for f in folders}
    needed: set[int] = set()

    for record in files:
        folder_id = record.folder_id
        # walk up until we reach a folder already collected or the top
        while folder_id is not None and folder_id in by_id and folder_id not in needed:
            needed.add(folder_id)
            folder_id = by_id[folder_id].parent_folder_id

    return [f for f in by_id.values() if f.id in needed]


def filter_courses(config: Config, courses: Iterable[Course]) -> list[Course]:
    """Apply ``course_white_list`` and ``course_black_list``.

    Entries match a course by id or by name. An empty whitelist selects every
    course; the blacklist always wins over the whitelist.
    """

    def matches(course: Course, entries: list) -> bool:
        return any(
            entry == course.id or str(entry) in (str(course.id), course.name)
            for entry in entries
        )

    selected = []
    for course in courses:
        if config.course_white_list and not matches(course, config.course_white_list):
            continue
        if matches(course, config.course_black_list):
            logger.debug(f"Skipping blacklisted course {course.name}")
            continue
        selected.append(course)
    return selected
