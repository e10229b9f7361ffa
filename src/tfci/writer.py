"""Human readable rendering of command results."""

from typing import Mapping, Optional

from rich.console import Console
from rich.markup import escape


class ResultWriter:
    """Prints results to stdout and errors to stderr."""

    def __init__(
        self, console: Optional[Console] = None, err_console: Optional[Console] = None
    ):
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def output_result(self, outputs: Mapping[str, str]) -> None:
        if outputs:
            self.console.print_json(data=dict(outputs))

    def error_result(self, message: str) -> None:
        self.err_console.print(
            f"[red]Error: {escape(message)}[/red]", markup=True, highlight=False
        )

    def warn(self, message: str) -> None:
        self.err_console.print(
            f"[yellow]{escape(message)}[/yellow]", markup=True, highlight=False
        )
