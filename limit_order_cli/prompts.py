"""Answers from a terminal prompt or from piped standard input."""

import sys
from typing import Optional, TextIO

from rich.console import Console
from rich.prompt import Prompt


class Answers:
    """Prompts on a terminal; otherwise consumes one stdin line per question."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        console: Optional[Console] = None,
        interactive: Optional[bool] = None,
    ):
        self.stream = stream or sys.stdin
        self.console = console or Console()
        if interactive is None:
            isatty = getattr(self.stream, "isatty", None)
            interactive = bool(isatty and isatty())
        self.interactive = interactive

    def ask(self, question: str) -> str:
        """Ask a question, returning the stripped answer ('' at end of input)."""
        if self.interactive:
            return Prompt.ask(question, console=self.console, default="", show_default=False).strip()

        self.console.print(f"{question}: ", end="")
        line = self.stream.readline()
        self.console.print(line.strip(), markup=False)
        return line.strip()

    def confirm(self, question: str) -> bool:
        """Yes only for 'y' or 'yes'."""
        return self.ask(question).lower() in ("y", "yes")
