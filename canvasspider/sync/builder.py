"""Rebuild the course folder hierarchy from flat folder and file listings.

Canvas lists every folder of a course in one flat list where each folder
points at its parent by id. The tree is rebuilt level by level: folders whose
parent is unknown hang under a synthetic root, then each pass attaches the
folders whose parent was attached in the previous pass.

Each pass rescans the folders still waiting, so building costs O(d * n) for
n folders and depth d. That is fine for course file areas (hundreds of
folders) but grows quickly for very deep trees.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Optional

from ..config import Config
from ..models import FileRecord, FolderRecord
from .nodes import FileLeaf, FolderNode

logger = logging.getLogger(__name__)


@dataclass
class _Shell:
    """A folder waiting to be attached, with the ids used to place it."""

    id: int
    parent_id: Optional[int]
    node: FolderNode


@dataclass
class DroppedFolder:
    """A folder that could not be attached to the tree."""

    id: int
    name: str
    parent_id: Optional[int]
    reason: str


@dataclass
class FolderTreeBuilder:
    """Builds a FolderNode tree and records what it had to leave out."""

    root_name: str
    dropped: list[DroppedFolder] = field(default_factory=list)

    def build(
        self,
        folders: Iterable[FolderRecord],
        files: Iterable[FileRecord],
    ) -> FolderNode:
        """Build the tree.

        Args:
            folders: Flat folder records
            files: Flat file records; a file whose folder is not listed is
                placed directly under the root

        Returns:
            The root folder
        """
        self.dropped = []
        shells = self._make_shells(folders)

        files_by_folder: dict[Optional[int], list[FileRecord]] = {}
        for record in files:
            files_by_folder.setdefault(record.folder_id, []).append(record)

        root = FolderNode(self.root_name)
        for shell in shells:
            for record in files_by_folder.pop(shell.id, []):
                shell.node.add_file(_make_leaf(record))

        # Whatever is left references a folder we were not given
        for records in files_by_folder.values():
            for record in records:
                logger.debug(
                    f"File {record.filename} is in unknown folder "
                    f"{record.folder_id}, placing it at the root"
                )
                root.add_file(_make_leaf(record))

        ids = {shell.id for shell in shells}
        frontier = [
            s for s in shells if s.parent_id is None or s.parent_id not in ids
        ]
        for shell in frontier:
            root.add_child(shell.node)

        attached = {shell.id for shell in frontier}
        remaining = [s for s in shells if s.id not in attached]
        self._attach_levels(frontier, remaining)

        if self.dropped:
            logger.warning(
                f"Dropped {len(self.dropped)} folder(s) from the tree: "
                + ", ".join(d.name for d in self.dropped)
            )
        return root

    def _make_shells(self, folders: Iterable[FolderRecord]) -> list[_Shell]:
        shells: list[_Shell] = []
        seen: set[int] = set()
        for record in folders:
            if record.id in seen:
                self.dropped.append(
                    DroppedFolder(
                        record.id, record.name, record.parent_folder_id, "duplicate id"
                    )
                )
                continue
            seen.add(record.id)
            shells.append(
                _Shell(record.id, record.parent_folder_id, FolderNode(record.name))
            )
        return shells

    def _attach_levels(self, frontier: list[_Shell], remaining: list[_Shell]) -> None:
        """Attach ``remaining`` below ``frontier`` one level at a time."""
        while remaining:
            frontier_ids = {s.id for s in frontier}
            next_frontier = [s for s in remaining if s.parent_id in frontier_ids]
            still_remaining = [
                s for s in remaining if s.parent_id not in frontier_ids
            ]

            if not next_frontier:
                # Parent ids form a cycle or point at a folder that never got
                # attached: nothing more can be placed.
                for shell in still_remaining:
                    self.dropped.append(
                        DroppedFolder(
                            shell.id,
                            shell.node.name,
                            shell.parent_id,
                            "parent not reachable from root",
                        )
                    )
                return

            by_id = {s.id: s for s in frontier}
            for shell in next_frontier:
                by_id[shell.parent_id].node.add_child(shell.node)  # type: ignore[index]

            frontier, remaining = next_frontier, still_remaining


def _make_leaf(record: FileRecord) -> FileLeaf:
    return FileLeaf(
        id=record.id,
        name=record.filename,
        url=record.url,
        size=record.size,
        mime_class=record.mime_class,
    )


def root_name_for(config: Config, course_name: Optional[str] = None) -> str:
    """Name of the synthetic root: the base directory, optionally per course."""
    base = PurePosixPath(config.base_dir.replace("\\", "/"))
    if course_name:
        # course names are free text and may contain separators
        return (base / course_name.replace("/", "_").strip()).as_posix()
    return base.as_posix()


def build_tree(
    config: Config,
    folders: Iterable[FolderRecord],
    files: Iterable[FileRecord],
    course_name: Optional[str] = None,
) -> FolderNode:
    """Build the folder tree of one course.

    Args:
        config: Configuration; ``base_dir`` names the root
        folders: Flat folder records
        files: Flat file records
        course_name: Optional sub directory of ``base_dir`` for this course

    Returns:
        Root folder of the rebuilt tree
    """
    builder = FolderTreeBuilder(root_name_for(config, course_name))
    return builder.build(folders, files)
