"""User Interface Module - Prompts, editing checkpoints and notifications."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm


class UserInterface(ABC):
    """What the dispatcher needs from the host editor or terminal."""

    @abstractmethod
    def confirm(self, question: str) -> bool:
        """Ask a yes/no question."""

    @abstractmethod
    def capture_view(self) -> Any:
        """Return a handle that ``restore_view`` can later return to."""

    @abstractmethod
    def restore_view(self, handle: Any):
        """Return the user to the view captured at workflow start."""

    @abstractmethod
    def open_for_editing(self, path: Path, label: str):
        """Present a scratch artifact for editing at a checkpoint."""

    @abstractmethod
    def collect_edits(self, path: Path) -> str:
        """Return the user's edited text for a scratch artifact."""

    @abstractmethod
    def notify(self, message: str):
        """Show an informational message."""

    @abstractmethod
    def error(self, message: str):
        """Show a failure."""


class ConsoleInterface(UserInterface):
    """
    Terminal implementation using rich.

    Checkpoints print the scratch path; the user edits it with any editor
    and runs ``cite_harvest.py continue`` to resume.
    """

    def __init__(self, console: Console = None, assume_yes: bool = None):
        self.console = console or Console()
        self.assume_yes = assume_yes

    def confirm(self, question: str) -> bool:
        if self.assume_yes is not None:
            return self.assume_yes
        return Confirm.ask(question, console=self.console)

    def capture_view(self) -> Any:
        return str(Path.cwd())

    def restore_view(self, handle: Any):
        if handle:
            self.console.print(f"[dim]Returning to {handle}[/dim]")

    def open_for_editing(self, path: Path, label: str):
        self.console.print(Panel.fit(
            f"[bold]{label}[/bold]\n"
            f"Edit: [cyan]{path}[/cyan]\n"
            "Then run [green]cite_harvest.py continue[/green] "
            "(or [red]cite_harvest.py kill[/red] to abort)",
            border_style="blue",
        ))

    def collect_edits(self, path: Path) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def notify(self, message: str):
        self.console.print(escape(message))

    def error(self, message: str):
        self.console.print(f"[red]Error: {escape(message)}[/red]")
