"""Execute a tagged tree: create folders and download files.

Folders are created synchronously while the tree is walked, so a folder
exists before any file below it is even requested. File fetches are handed
to a bounded thread pool as they are met. Once the walk is done the fetches
are collected in completion order, then every fetched stream is written to
its path, again on the pool. A fetch returns the downloaded content rather
than an open connection, so no more than ``max_workers`` transfers hold a
connection at any time.

Each file is an independent unit of work: a failure is recorded in the
report and never stops the other files. When a folder cannot be created,
every tagged file below it is reported as failed.

There is no cancellation; a fetch that has started runs to completion or
failure.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Protocol

from ..exceptions import CanvasDownloadError
from ..utils import DEFAULT_MAX_WORKERS
from .nodes import FileLeaf, FolderNode, iter_files

logger = logging.getLogger(__name__)

Stage = Literal["mkdir", "fetch", "store"]


class FetchClient(Protocol):
    """Remote side used by the executor."""

    def fetch_stream(self, url: str) -> Any: ...

    def store_path(self, path: str, stream: Any) -> Any: ...


@dataclass
class FetchFailure:
    """A file that could not be synced."""

    path: str
    stage: Stage
    error: Exception

    def __str__(self) -> str:
        return f"{self.path} ({self.stage}): {self.error}"


@dataclass
class FetchReport:
    """Outcome of one execution."""

    created_dirs: list[str] = field(default_factory=list)
    stored: list[str] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class FetchExecutor:
    """Walks a tagged tree and performs the work it describes."""

    def __init__(
        self,
        client: FetchClient,
        max_workers: int = DEFAULT_MAX_WORKERS,
        on_file_done: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the executor.

        Args:
            client: Object providing ``fetch_stream`` and ``store_path``
            max_workers: Upper bound on concurrent fetches and stores
            on_file_done: Called with the path of every file once it is handled,
                whether it succeeded or failed
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.client = client
        self.max_workers = max_workers
        self.on_file_done = on_file_done

    def execute(self, root: FolderNode) -> FetchReport:
        """Create tagged folders and download tagged files below ``root``.

        Args:
            root: Materialized and tagged tree

        Returns:
            Report listing created folders, stored files and failures
        """
        report = FetchReport()
        start = time.time()

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            fetches = self._walk(root, pool, report)
            logger.debug(f"Waiting for {len(fetches)} fetch(es)")

            fetched: list[tuple[str, Any]] = []
            for future in as_completed(fetches):
                leaf = fetches[future]
                try:
                    fetched.append((leaf.name, future.result()))
                except Exception as e:
                    self._fail(report, leaf.name, "fetch", e)

            stores = {
                pool.submit(self.client.store_path, path, stream): path
                for path, stream in fetched
            }
            for future in as_completed(stores):
                path = stores[future]
                try:
                    future.result()
                except Exception as e:
                    self._fail(report, path, "store", e)
                    continue
                report.stored.append(path)
                logger.debug(f"Stored {path}")
                if self.on_file_done:
                    self.on_file_done(path)

        elapsed = time.time() - start
        logger.debug(
            f"Executed tree {root.name} in {elapsed:.2f}s: "
            f"{len(report.created_dirs)} folder(s), {len(report.stored)} file(s), "
            f"{len(report.failures)} failure(s)"
        )
        return report

    def _walk(
        self,
        root: FolderNode,
        pool: ThreadPoolExecutor,
        report: FetchReport,
    ) -> dict[Future, FileLeaf]:
        """Create folders in traversal order and submit file fetches."""
        fetches: dict[Future, FileLeaf] = {}
        stack = [root]
        while stack:
            folder = stack.pop()

            if folder.tag:
                try:
                    Path(folder.name).mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    # Nothing below can be stored without the folder
                    logger.warning(f"Failed to create folder {folder.name}: {e}")
                    for leaf in iter_files(folder):
                        if leaf.tag:
                            self._fail(report, leaf.name, "mkdir", e)
                    continue
                report.created_dirs.append(folder.name)
                logger.debug(f"Created folder {folder.name}")

            for leaf in folder.files:
                if not leaf.tag:
                    continue
                if not leaf.url:
                    # Canvas hides the url of locked files
                    self._fail(
                        report,
                        leaf.name,
                        "fetch",
                        CanvasDownloadError("No download url available"),
                    )
                    continue
                fetches[pool.submit(self.client.fetch_stream, leaf.url)] = leaf

            stack.extend(reversed(folder.children))
        return fetches

    def _fail(
        self, report: FetchReport, path: str, stage: Stage, error: Exception
    ) -> None:
        logger.warning(f"Failed to {stage} {path}: {error}")
        report.failures.append(FetchFailure(path, stage, error))
        if self.on_file_done:
            self.on_file_done(path)
