"""Console output helpers for the CLI."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Formats messages, tables and summaries for the terminal or as JSON."""

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the output formatter.

        Args:
            json_output: Print machine readable JSON instead of tables
            quiet: Suppress informational messages
            console: Console for regular output (created if omitted)
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = Console(stderr=True)

    def print(self, message: str = "") -> None:
        if not self.quiet:
            self.console.print(message, highlight=False)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, highlight=False)

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[green]{message}[/green]", highlight=False)

    def warning(self, message: str) -> None:
        self.err_console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {message}", highlight=False)

    def print_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data, default=str))

    def print_table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[Any]],
    ) -> None:
        """Print rows as a table, or as a JSON list of objects in JSON mode."""
        if self.json_output:
            self.print_json([dict(zip(columns, row)) for row in rows])
            return

        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(str(value) for value in row))
        self.console.print(table)

    def print_summary(self, title: str, items: list[tuple[str, Any]]) -> None:
        """Print a titled list of key/value pairs."""
        if self.json_output:
            self.print_json({key: value for key, value in items})
            return
        if self.quiet:
            return

        self.console.print(f"\n[bold]{title}[/bold]")
        for key, value in items:
            self.console.print(f"  {key}: [blue]{value}[/blue]", highlight=False)
        self.console.print()
