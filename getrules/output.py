"""Console output for getrules commands."""

import json
from typing import Any

from rich.console import Console
from rich.markup import escape


class OutputFormatter:
    """Writes user-facing messages, or JSON when requested.

    Human-readable messages go through a rich console. In JSON mode only
    :meth:`output_json` and errors are emitted, so the output stays
    machine-readable.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console(highlight=False, soft_wrap=True)
        self.err_console = Console(stderr=True, highlight=False, soft_wrap=True)

    def _human(self) -> bool:
        return not self.json_output and not self.quiet

    def print(self, message: str = "") -> None:
        if self._human():
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        if self._human():
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        if self._human():
            self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        if not self.json_output:
            self.err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {escape(message)}")

    def output_json(self, data: Any) -> None:
        self.console.print_json(json.dumps(data))
