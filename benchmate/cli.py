"""Terminal UI for Benchmate."""

import atexit
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.status import Status
from rich.table import Table

from benchmate.logging import get_logger
from benchmate.memory import StoredFact

log = get_logger(__name__)

HISTORY_FILE = Path("~/.benchmate/history").expanduser()


class TerminalUI:
    """Line-edited prompt plus rich output."""

    def __init__(self, console: Console | None = None, history_file: Path | None = None):
        self.console = console or Console()
        self._special_commands = [
            "/help",
            "/model",
            "/models",
            "/facts",
            "/remember",
            "/exit",
            "/quit",
        ]
        self._readline = None
        self._history_file = history_file or HISTORY_FILE
        self._setup_readline()

    def _setup_readline(self) -> None:
        """Set up line editing, history, and command completion."""
        try:
            import readline  # type: ignore
        except ImportError:
            return

        self._readline = readline

        try:
            self._history_file.parent.mkdir(parents=True, exist_ok=True)
            if self._history_file.exists():
                readline.read_history_file(str(self._history_file))
            readline.set_history_length(1000)
            readline.parse_and_bind("tab: complete")
            readline.set_completer(self._complete_special_command)
            atexit.register(self._save_history)
        except OSError as e:
            log.debug("Readline setup failed", error=str(e))

    def _save_history(self) -> None:
        """Persist readline history to disk."""
        if self._readline is None:
            return
        try:
            self._readline.write_history_file(str(self._history_file))
        except OSError as e:
            log.debug("Failed to save history", error=str(e))

    def _complete_special_command(self, text: str, state: int) -> str | None:
        """Readline completer for slash commands."""
        if not text.startswith("/"):
            return None
        matches = [cmd for cmd in self._special_commands if cmd.startswith(text)]
        if state < len(matches):
            return matches[state]
        return None

    def prompt(self) -> str:
        """Read one line of user input."""
        return input("> ")

    def thinking(self) -> Status:
        """Spinner shown while a turn runs."""
        return self.console.status("Thinking...", spinner="dots")

    def print_welcome(self, model: str, skill_count: int) -> None:
        self.console.print(
            Panel(
                f"Model: [bold]{escape(model)}[/bold]\n"
                f"Skills loaded: {skill_count}\n\n"
                "Type your message, or [bold]/help[/bold] for commands.",
                title="Benchmate",
                border_style="cyan",
            )
        )

    def print_help(self) -> None:
        """Print help message."""
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_row("/help", "Show this help message")
        table.add_row("/model [id]", "Show or switch the active model")
        table.add_row("/models", "List available models")
        table.add_row("/facts", "List stored facts")
        table.add_row("/remember <text>", "Store a fact")
        table.add_row("/exit, /quit", "Exit")
        self.console.print(table)

    def print_message(self, content: str) -> None:
        """Print an assistant reply."""
        self.console.print("[green]Assistant:[/green]")
        self.console.print(content, markup=False, highlight=False)

    def print_error(self, error: str) -> None:
        self.console.print(f"[red]Error:[/red] {escape(error)}")

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]{escape(message)}[/green]")

    def print_model_list(self, models: list[dict[str, Any]], active_model: str) -> None:
        table = Table(title="Models")
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Category")
        for entry in models:
            model_id = str(entry.get("id", ""))
            marker = " *" if model_id == active_model else ""
            name = str(entry.get("name", ""))
            if entry.get("free"):
                name += " (free)"
            table.add_row(f"{model_id}{marker}", name, str(entry.get("category", "")))
        self.console.print(table)

    def print_facts(self, facts: list[StoredFact]) -> None:
        if not facts:
            self.console.print("(No facts stored yet)")
            return
        for fact in facts:
            self.console.print(f"- {fact.content}", markup=False, highlight=False)

    def handle_special_command(self, cmd: str) -> str | None:
        """Handle special commands.

        Returns the plain message for non-commands, a command token for the
        main loop, or None when the command was fully handled here.
        """
        cmd = cmd.strip()

        if not cmd.startswith("/"):
            return cmd

        parts = cmd.split(None, 1)
        command = parts[0].lower()
        args = parts[1].strip() if len(parts) > 1 else ""

        if command in ("/help", "/h", "/?"):
            self.print_help()
            return None
        elif command == "/model":
            return f"MODEL_SET:{args}" if args else "MODEL_INFO"
        elif command == "/models":
            return "MODELS"
        elif command == "/facts":
            return "FACTS"
        elif command == "/remember":
            if not args:
                self.print_error("Usage: /remember <text>")
                return None
            return f"REMEMBER:{args}"
        elif command in ("/exit", "/quit", "/q"):
            return "EXIT"
        else:
            self.print_error(f"Unknown command: {command}")
            return None
