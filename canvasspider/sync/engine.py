"""Core sync engine tying listing, filtering, tree building and fetching."""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api import CanvasClient, CourseStatus
from ..config import Config
from ..models import Course
from ..output import OutputFormatter
from ..utils import DEFAULT_MAX_WORKERS, format_size
from .builder import FolderTreeBuilder, root_name_for
from .diff import DiffTagger, TagSummary
from .executor import FetchExecutor, FetchFailure
from .filters import filter_courses, filter_files, select_ready_folders
from .nodes import FolderNode
from .paths import materialize

logger = logging.getLogger(__name__)


@dataclass
class CoursePlan:
    """A course's materialized and tagged tree."""

    course: Course
    root: FolderNode
    tags: TagSummary
    dropped_folders: int = 0


class SyncEngine:
    """Core sync engine that orchestrates course downloads."""

    def __init__(
        self,
        client: CanvasClient,
        config: Config,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: Canvas API client
            config: Loaded configuration
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.config = config
        self.output = output or OutputFormatter()

    def run(
        self,
        dry_run: bool = False,
        status: CourseStatus = "all",
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> dict:
        """Download the selected courses.

        Args:
            dry_run: If True, only show what would be done
            status: Which courses to consider (completed, ongoing, all)
            max_workers: Number of parallel fetch/store workers

        Returns:
            Dictionary with sync statistics
        """
        start_time = time.time()
        plans = self.plan(status)

        stats = self._create_stats(plans)
        self._display_plan(plans, stats, dry_run)

        if not dry_run and stats["files"] > 0:
            stored, failures = self._execute_plans(plans, max_workers)
            stats["downloaded"] = stored
            stats["failed"] = stats["files"] - stored
            stats["failures"] = [str(f) for f in failures]

        logger.debug(f"Sync finished in {time.time() - start_time:.2f}s")
        if not self.output.quiet:
            self._display_summary(stats, dry_run)
        return stats

    def plan(self, status: CourseStatus = "all") -> list[CoursePlan]:
        """List, filter, rebuild and tag every selected course.

        Args:
            status: Which courses to consider

        Returns:
            One plan per course that has something to download
        """
        plans: list[CoursePlan] = []
        tagger = DiffTagger(self.config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self.output.quiet,
        ) as progress:
            task = progress.add_task("Listing courses...", total=None)
            courses = filter_courses(self.config, self.client.list_courses(status))
            logger.debug(f"Selected {len(courses)} course(s)")

            for course in courses:
                progress.update(task, description=f"Scanning {course.name}...")
                plan = self._plan_course(course, tagger)
                if plan is not None:
                    plans.append(plan)

        return plans

    def _plan_course(self, course: Course, tagger: DiffTagger) -> Optional[CoursePlan]:
        files = filter_files(self.config, self.client.list_files(course.id))
        if not files:
            logger.debug(f"No files to consider in {course.name}")
            return None

        folders = select_ready_folders(files, self.client.list_folders(course.id))
        builder = FolderTreeBuilder(root_name_for(self.config, course.name))
        root = materialize(builder.build(folders, files))
        if builder.dropped:
            self.output.warning(
                f"{course.name}: {len(builder.dropped)} folder(s) could not be "
                "placed in the folder tree and were skipped"
            )

        tags = tagger.tag(root)
        return CoursePlan(course, root, tags, dropped_folders=len(builder.dropped))

    def _create_stats(self, plans: list[CoursePlan]) -> dict:
        total = TagSummary()
        for plan in plans:
            total = total.merge(plan.tags)
        return {
            "courses": len(plans),
            "files": total.files,
            "folders": total.folders,
            "bytes": total.bytes,
            "up_to_date": total.up_to_date,
            "skipped": len(total.skipped),
            "dropped_folders": sum(p.dropped_folders for p in plans),
            "downloaded": 0,
            "failed": 0,
            "failures": [],
        }

    def _display_plan(self, plans: list[CoursePlan], stats: dict, dry_run: bool) -> None:
        if self.output.quiet:
            return

        for plan in plans:
            self.output.info(
                f"{plan.course.name}: {plan.tags.files} file(s) to download, "
                f"{plan.tags.up_to_date} up to date"
            )
            for path, reason in plan.tags.skipped:
                self.output.info(f"  [dim]skip[/dim] {path} ({reason})")

        self.output.info(
            f"Total: {stats['files']} file(s), {format_size(stats['bytes'])}"
        )
        if dry_run:
            self.output.info("Dry run: No changes will be made")
        self.output.print("")

    def _execute_plans(
        self, plans: list[CoursePlan], max_workers: int
    ) -> tuple[int, list[FetchFailure]]:
        failures: list[FetchFailure] = []
        stored = 0

        with Progress(disable=self.output.quiet) as progress:
            task = progress.add_task(
                "Downloading files...",
                total=sum(p.tags.files for p in plans),
            )
            executor = FetchExecutor(
                self.client,
                max_workers=max_workers,
                on_file_done=lambda path: progress.update(task, advance=1),
            )
            for plan in plans:
                if plan.tags.files == 0:
                    continue
                report = executor.execute(plan.root)
                stored += len(report.stored)
                failures.extend(report.failures)

        for failure in failures:
            self.output.error(f"Error syncing {failure}")
        return stored, failures

    def _display_summary(self, stats: dict, dry_run: bool) -> None:
        """Display sync summary.

        Args:
            stats: Statistics dictionary
            dry_run: Whether this was a dry run
        """
        if dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Sync complete!")

        if stats["files"] == 0:
            self.output.info("No changes needed - everything is up to date!")
            return

        if not dry_run:
            self.output.info(f"  Downloaded: {stats['downloaded']}")
            if stats["failed"] > 0:
                self.output.info(f"  Failed: {stats['failed']}")
                for failure in stats["failures"]:
                    self.output.info(f"    {failure}")
        if stats["skipped"] > 0:
            self.output.info(f"  Skipped (size limits): {stats['skipped']}")
