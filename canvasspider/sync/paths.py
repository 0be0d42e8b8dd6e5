"""Rewrite node names into full local paths."""

import logging

from ..exceptions import TreeAlreadyMaterializedError
from .nodes import FolderNode, walk

logger = logging.getLogger(__name__)


def materialize(root: FolderNode) -> FolderNode:
    """Replace every node name with its slash-joined path from the root.

    Nodes are visited parent first, so each node joins its own name onto the
    already rewritten name of its parent. The root keeps its name.

    Args:
        root: Root of a freshly built tree

    Returns:
        The same root, rewritten in place

    Raises:
        TreeAlreadyMaterializedError: If the tree was materialized before;
            a second pass would prefix every name with its ancestors again
    """
    if root.materialized:
        raise TreeAlreadyMaterializedError(
            f"Paths under '{root.name}' are already materialized"
        )

    count = 0
    for node in walk(root):
        parent = node.parent
        if parent is not None:
            node.name = f"{parent.name}/{node.name}"
        count += 1

    root.materialized = True
    logger.debug(f"Materialized {count} path(s) under {root.name}")
    return root
