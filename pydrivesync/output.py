"""Console output formatting for the CLI."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Writes user-facing messages to the terminal."""

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            json_output: Emit machine-readable JSON where supported
            quiet: Suppress informational messages
            console: Console for regular output
            err_console: Console for warnings and errors
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def print(self, message: str) -> None:
        """Print a message regardless of quiet mode."""
        self.console.print(message, markup=False, soft_wrap=True)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, markup=False, soft_wrap=True)

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(message, style="green", markup=False, soft_wrap=True)

    def warning(self, message: str) -> None:
        self.err_console.print(
            f"Warning: {message}", style="yellow", markup=False, soft_wrap=True
        )

    def error(self, message: str) -> None:
        self.err_console.print(
            f"Error: {message}", style="bold red", markup=False, soft_wrap=True
        )

    def output_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data))

    def print_summary(self, title: str, items: list[tuple[str, str]]) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            items: (label, value) rows
        """
        if self.json_output:
            self.output_json({label: value for label, value in items})
            return

        table = Table(title=title, show_header=False, title_justify="left")
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for label, value in items:
            table.add_row(label, value)
        self.console.print(table)
