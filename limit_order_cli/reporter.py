"""Terminal progress output."""

from typing import Optional

from rich.console import Console

DETAIL_INDENT = " " * 6


class Reporter:
    """Prints workflow progress; silent reporters print nothing."""

    def __init__(self, console: Optional[Console] = None, silent: bool = False, width: int = 80):
        self.console = console or Console(highlight=False)
        self.silent = silent
        self.width = width

    def _print(self, message: str = ""):
        if not self.silent:
            self.console.print(message, markup=True)

    def step(self, message: str):
        """Start of a workflow step, e.g. 'Checking maker balance...'."""
        self._print(message)

    def detail(self, message: str):
        """Indented line under the current step."""
        self._print(f"{DETAIL_INDENT}{message}")

    def success(self, message: str):
        self._print(f"{DETAIL_INDENT}[green]{message}[/green]")

    def failure(self, message: str):
        self._print(f"{DETAIL_INDENT}[red]{message}[/red]")

    def blank(self):
        self._print()

    def banner(self, title: str):
        """Title between two '=' rules."""
        self._print("=" * self.width)
        self._print(f"[bold cyan]{title}[/bold cyan]")
        self._print("=" * self.width)

    def rule(self, char: str = "-"):
        self._print(char * self.width)
