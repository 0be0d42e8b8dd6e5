"""Tag the nodes of a materialized tree that need work locally."""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

from ..config import Config
from .nodes import FileLeaf, FolderNode

logger = logging.getLogger(__name__)


@dataclass
class TagSummary:
    """What the tagger decided for one tree."""

    files: int = 0
    """Files tagged for download"""

    folders: int = 0
    """Folders tagged for creation"""

    bytes: int = 0
    """Total size of the tagged files"""

    up_to_date: int = 0
    """Files that already exist locally"""

    skipped: list[tuple[str, str]] = field(default_factory=list)
    """(path, reason) of files left out because of size limits"""

    def merge(self, other: "TagSummary") -> "TagSummary":
        return TagSummary(
            files=self.files + other.files,
            folders=self.folders + other.folders,
            bytes=self.bytes + other.bytes,
            up_to_date=self.up_to_date + other.up_to_date,
            skipped=self.skipped + other.skipped,
        )


class DiffTagger:
    """Compares a materialized tree with the local filesystem.

    With ``update == "newFileOnly"`` a file is tagged only when its path does
    not exist yet; with ``"overwrite"`` every file is tagged. Files larger
    than ``max_file_size`` are skipped, as are files that no longer fit in
    what is left of ``max_total_size``. A folder is tagged when it is
    missing locally and something below it is tagged.
    """

    def __init__(self, config: Config, budget: float = math.inf):
        """Initialize the tagger.

        Args:
            config: Configuration with update method and size limits
            budget: Bytes still allowed by ``max_total_size``; shared across
                the trees of several courses
        """
        self.config = config
        self.budget = min(budget, config.max_total_size)

    def tag(self, root: FolderNode) -> TagSummary:
        if not root.materialized:
            raise ValueError("Tree must be materialized before tagging")
        summary = TagSummary()
        self._tag_folder(root, summary)
        logger.debug(
            f"Tagged {summary.files} file(s) and {summary.folders} folder(s) "
            f"under {root.name}"
        )
        return summary

    def _tag_folder(self, folder: FolderNode, summary: TagSummary) -> bool:
        """Tag a folder's subtree; return True if anything below is tagged."""
        any_tagged = False
        for leaf in folder.files:
            any_tagged |= self._tag_file(leaf, summary)
        for child in folder.children:
            any_tagged |= self._tag_folder(child, summary)

        folder.tag = any_tagged and not Path(folder.name).is_dir()
        if folder.tag:
            summary.folders += 1
        return any_tagged

    def _tag_file(self, leaf: FileLeaf, summary: TagSummary) -> bool:
        leaf.tag = False
        if self.config.update == "newFileOnly" and Path(leaf.name).exists():
            summary.up_to_date += 1
            return False
        if leaf.size > self.config.max_file_size:
            summary.skipped.append((leaf.name, "exceeds max file size"))
            return False
        if leaf.size > self.budget:
            summary.skipped.append((leaf.name, "exceeds max total size"))
            return False

        leaf.tag = True
        self.budget -= leaf.size
        summary.files += 1
        summary.bytes += leaf.size
        return True


def tag_tree(root: FolderNode, config: Config) -> TagSummary:
    """Tag one materialized tree against the local filesystem."""
    return DiffTagger(config).tag(root)
