"""Sync engine for canvasspider - rebuild course folder trees and fetch them."""

from .builder import DroppedFolder, FolderTreeBuilder, build_tree, root_name_for
from .diff import DiffTagger, TagSummary, tag_tree
from .engine import CoursePlan, SyncEngine
from .executor import FetchClient, FetchExecutor, FetchFailure, FetchReport
from .filters import filter_courses, filter_files, select_ready_folders
from .nodes import FileLeaf, FolderNode, iter_files, iter_folders, walk
from .paths import materialize

__all__ = [
    "SyncEngine",
    "CoursePlan",
    "FolderNode",
    "FileLeaf",
    "walk",
    "iter_files",
    "iter_folders",
    "filter_files",
    "filter_courses",
    "select_ready_folders",
    "FolderTreeBuilder",
    "DroppedFolder",
    "build_tree",
    "root_name_for",
    "materialize",
    "DiffTagger",
    "TagSummary",
    "tag_tree",
    "FetchClient",
    "FetchExecutor",
    "FetchFailure",
    "FetchReport",
]
