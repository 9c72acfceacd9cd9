"""Prompt rendering with rich."""

from typing import List, Mapping, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from pvelxc.engine.prompts import PromptCancelled, Prompter


class RichPrompter(Prompter):
    """Prompter reading answers from the terminal.

    Ctrl-C or end of input cancels the current prompt.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def ask(self, title: str, message: str, default: Optional[str] = None, secret: bool = False) -> str:
        try:
            return Prompt.ask(
                f"[bold cyan]{title}[/bold cyan] {message}",
                console=self.console,
                password=secret,
                default=default or "",
                show_default=bool(default) and not secret,
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptCancelled(title) from e

    def choose(self, title: str, message: str, choices: List[str], default: Optional[str] = None) -> str:
        kwargs = {"default": default} if default is not None else {}
        try:
            return Prompt.ask(
                f"[bold cyan]{title}[/bold cyan] {message}",
                console=self.console,
                choices=choices,
                **kwargs,
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptCancelled(title) from e

    def confirm(self, title: str, message: str, default: bool = False) -> bool:
        try:
            return Confirm.ask(
                f"[bold cyan]{title}[/bold cyan] {message}",
                console=self.console,
                default=default,
            )
        except (KeyboardInterrupt, EOFError) as e:
            raise PromptCancelled(title) from e

    def notify(self, title: str, message: str) -> None:
        self.console.print(Panel(message, title=title, border_style="red"))

    def summary(self, title: str, rows: Mapping[str, str]) -> None:
        table = Table(title=title, show_header=False)
        table.add_column("Setting", style="green")
        table.add_column("Value", style="bold")
        for name, value in rows.items():
            table.add_row(name, value)
        self.console.print(table)
