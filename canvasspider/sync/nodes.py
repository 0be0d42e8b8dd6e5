"""Folder tree nodes rebuilt from the flat Canvas listings.

Children and files are owned by their folder. The ``parent`` link is a weak
reference used only for upward lookups, so dropping the root releases the
whole tree.
"""

import weakref
from collections.abc import Iterable, Iterator
from typing import Optional, Union


class _Node:
    """Shared behaviour of folders and files."""

    def __init__(self, name: str):
        self.name = name
        self.tag = False
        self._parent: Optional[weakref.ref["FolderNode"]] = None

    @property
    def parent(self) -> Optional["FolderNode"]:
        """Folder that owns this node, None for the root."""
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, folder: Optional["FolderNode"]) -> None:
        self._parent = weakref.ref(folder) if folder is not None else None


class FileLeaf(_Node):
    """A remote file placed in the tree."""

    def __init__(
        self,
        id: int,
        name: str,
        url: str,
        size: int = 0,
        mime_class: str = "",
    ):
        super().__init__(name)
        self.id = id
        self.url = url
        self.size = size
        self.mime_class = mime_class

    def __repr__(self) -> str:
        return f"FileLeaf(id={self.id!r}, name={self.name!r}, tag={self.tag})"


class FolderNode(_Node):
    """A folder and everything below it."""

    def __init__(
        self,
        name: str,
        files: Iterable[FileLeaf] = (),
        children: Iterable["FolderNode"] = (),
    ):
        super().__init__(name)
        self.files: list[FileLeaf] = []
        self.children: list[FolderNode] = []
        self.materialized = False
        for leaf in files:
            self.add_file(leaf)
        for child in children:
            self.add_child(child)

    def add_file(self, leaf: FileLeaf) -> None:
        leaf.parent = self
        self.files.append(leaf)

    def add_child(self, child: "FolderNode") -> None:
        child.parent = self
        self.children.append(child)

    def __repr__(self) -> str:
        return (
            f"FolderNode(name={self.name!r}, children={len(self.children)}, "
            f"files={len(self.files)}, tag={self.tag})"
        )


Node = Union[FolderNode, FileLeaf]


def walk(root: FolderNode) -> Iterator[Node]:
    """Yield every node depth-first, each folder before its contents.

    A folder is followed by its files, then by its child folders.
    """
    stack = [root]
    while stack:
        folder = stack.pop()
        yield folder
        yield from folder.files
        # reversed so children come out in their stored order
        stack.extend(reversed(folder.children))


def iter_files(root: FolderNode) -> Iterator[FileLeaf]:
    """Yield every file leaf in the tree."""
    for node in walk(root):
        if isinstance(node, FileLeaf):
            yield node


def iter_folders(root: FolderNode) -> Iterator[FolderNode]:
    """Yield every folder in the tree, root included."""
    for node in walk(root):
        if isinstance(node, FolderNode):
            yield node
