"""CLI interface for canvasspider."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import click

from .api import CanvasClient
from .config import (
    DEFAULT_API_URL,
    DEFAULT_CONFIG_FILE,
    UPDATE_METHODS,
    VERBOSITY_LEVELS,
    Config,
    load_config,
    render_template,
)
from .exceptions import CanvasAPIError, CanvasConfigError
from .output import OutputFormatter
from .sync import SyncEngine
from .utils import DEFAULT_MAX_WORKERS, format_size, split_list

logger = logging.getLogger(__name__)


def _date(value: Optional[str]) -> str:
    return value.split("T")[0] if value else "-"


def _make_client(ctx: Any, config: Optional[Config] = None) -> CanvasClient:
    """Create a client from the global options, falling back to the config file.

    Raises:
        CanvasConfigError: If no token can be found
    """
    token = ctx.obj["token"]
    api_url = ctx.obj["api_url"]

    if config is None and not token:
        config_path = Path(ctx.obj["config_path"])
        if config_path.exists():
            config = load_config(config_path)

    if config is not None:
        token = token or config.authentication
        api_url = api_url or config.api_url

    return CanvasClient(api_token=token, api_url=api_url or DEFAULT_API_URL)


@click.group()
@click.option("--token", "-t", envvar="CANVAS_API_TOKEN", help="Canvas access token")
@click.option("--api-url", envvar="CANVAS_API_URL", help="Canvas instance URL")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="YAML config used when no token is given",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="canvasspider")
@click.pass_context
def main(
    ctx: Any,
    token: Optional[str],
    api_url: Optional[str],
    config_path: str,
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """canvasspider - Download Canvas course files to a local directory."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    ctx.obj["api_url"] = api_url
    ctx.obj["config_path"] = config_path
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("canvasspider").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option("--all", "-a", "show_all", is_flag=True, help="Show more details")
@click.option(
    "--status",
    "-s",
    type=click.Choice(["completed", "ongoing", "all"]),
    default="all",
    help="Which courses to list (default: all)",
)
@click.pass_context
def courses(ctx: Any, show_all: bool, status: str) -> None:
    """Show all active courses."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        client = _make_client(ctx)
    except CanvasConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    try:
        course_list = client.list_courses(status)  # type: ignore[arg-type]
    except CanvasAPIError as e:
        out.error(str(e))
        ctx.exit(1)
    finally:
        client.close()

    if not course_list:
        out.info("No courses found.")
        return

    if show_all:
        columns = ["ID", "Name", "Code", "Period", "Progress"]
        rows = [
            [
                c.id,
                c.name,
                c.course_code,
                f"{_date(c.start_at)} - {_date(c.end_at)}",
                (
                    f"{c.requirement_completed_count}/{c.requirement_count}"
                    if c.has_progress
                    else "-"
                ),
            ]
            for c in course_list
        ]
    else:
        columns = ["ID", "Name"]
        rows = [[c.id, c.name] for c in course_list]
    out.print_table("Course List", columns, rows)


@main.command()
@click.argument("yaml_file", metavar="[YAML]", default=None, required=False)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be downloaded without downloading"
)
@click.option(
    "--status",
    "-s",
    type=click.Choice(["completed", "ongoing", "all"]),
    default="all",
    help="Which courses to download (default: all)",
)
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
    help="Number of parallel downloads",
)
@click.pass_context
def download(
    ctx: Any,
    yaml_file: Optional[str],
    dry_run: bool,
    status: str,
    workers: int,
) -> None:
    """Download files with the given YAML config (default: main.yaml)."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        config = load_config(yaml_file or ctx.obj["config_path"])
        client = _make_client(ctx, config)
    except CanvasConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    engine = SyncEngine(client, config, out)
    try:
        stats = engine.run(
            dry_run=dry_run,
            status=status,  # type: ignore[arg-type]
            max_workers=workers,
        )
    except CanvasAPIError as e:
        out.error(f"Download failed: {e}")
        ctx.exit(1)
    finally:
        client.close()

    if out.json_output:
        out.print_json(stats)
    if stats["failed"] > 0:
        ctx.exit(1)


@main.command()
@click.option("--base", "-p", help="Base directory of downloaded files")
@click.option("--limit", "-l", help="Total storage limit. e.g. 500mb, or 20gb")
@click.option("--file-limit", "-f", help="Storage limit for a single file. e.g 100mb")
@click.option(
    "--file-wlist",
    "-w",
    help="If exists, guaranteed to be downloaded. e.g. a.pdf,b.pdf",
)
@click.option("--file-blist", "-b", help="If exists, won't be downloaded")
@click.option(
    "--file-ext-wlist",
    "-e",
    help="Files with given extensions will be downloaded. e.g. pdf,pptx",
)
@click.option(
    "--file-ext-blist",
    "-z",
    help="Files with given extensions won't be downloaded",
)
@click.option("--update-method", "-u", type=click.Choice(UPDATE_METHODS))
@click.option("--verbosity", "-V", type=click.Choice(VERBOSITY_LEVELS))
@click.option(
    "--output",
    "-o",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    help="Where to write the template, '-' for stdout",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def template(
    ctx: Any,
    base: Optional[str],
    limit: Optional[str],
    file_limit: Optional[str],
    file_wlist: Optional[str],
    file_blist: Optional[str],
    file_ext_wlist: Optional[str],
    file_ext_blist: Optional[str],
    update_method: Optional[str],
    verbosity: Optional[str],
    output: str,
    force: bool,
) -> None:
    """Generate a YAML config template."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        text = render_template(
            base_dir=base,
            max_total_size=limit,
            max_file_size=file_limit,
            file_white_list=split_list(file_wlist),
            file_black_list=split_list(file_blist),
            file_extension_white_list=split_list(file_ext_wlist),
            file_extension_black_list=split_list(file_ext_blist),
            update=update_method,
            verbosity=verbosity,
        )
    except CanvasConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    if output == "-":
        click.echo(text, nl=False)
        return

    if os.path.exists(output) and not force:
        out.error(f"{output} already exists, use --force to overwrite")
        ctx.exit(1)

    Path(output).write_text(text, encoding="utf-8")
    out.success(f"Template written to {output}")


@main.command()
@click.pass_context
def user(ctx: Any) -> None:
    """Show user info."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        client = _make_client(ctx)
    except CanvasConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    try:
        profile = client.get_logged_user()
    except CanvasAPIError as e:
        out.error(str(e))
        ctx.exit(1)
    finally:
        client.close()

    out.print_summary(
        "User",
        [
            ("Name", profile.get("name", "-")),
            ("Login", profile.get("login_id") or profile.get("primary_email", "-")),
            ("ID", profile.get("id", "-")),
        ],
    )


@main.command()
@click.pass_context
def quota(ctx: Any) -> None:
    """Show storage quota on Canvas."""
    out: OutputFormatter = ctx.obj["out"]

    try:
        client = _make_client(ctx)
    except CanvasConfigError as e:
        out.error(str(e))
        ctx.exit(1)

    try:
        usage = client.get_quota()
    except CanvasAPIError as e:
        out.error(str(e))
        ctx.exit(1)
    finally:
        client.close()

    total = usage.get("quota", 0)
    used = usage.get("quota_used", 0)
    out.print_summary(
        "Storage Quota",
        [
            ("Used", format_size(used)),
            ("Total", format_size(total)),
            ("Available", format_size(max(total - used, 0))),
        ],
    )


if __name__ == "__main__":
    main()
