"""Terminal output formatting for the CLI."""

from typing import Optional

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Writes user-facing messages to the terminal.

    Core modules only log; color and layout are decided here.
    """

    def __init__(
        self,
        quiet: bool = False,
        no_color: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize output formatter.

        Args:
            quiet: Suppress informational output (errors are still shown)
            no_color: Disable colored output
            console: Console to write to (mainly for tests)
        """
        self.quiet = quiet
        self.console = console or Console(no_color=no_color, highlight=False)
        self.err_console = Console(stderr=True, no_color=no_color, highlight=False)

    def print(self, message: str = "", style: Optional[str] = None) -> None:
        """Print a plain line."""
        if not self.quiet:
            self.console.print(message, style=style, markup=False)

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, style="blue", markup=False)

    def success(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        self.err_console.print(f"Warning: {message}", style="yellow", markup=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"Error: {message}", style="bold red", markup=False)

    def banner(self, title: str) -> None:
        """Print a section header."""
        if not self.quiet:
            self.console.rule(title, style="cyan")

    def variable(self, name: str, value: object) -> None:
        """Print a ``name: value`` line for a resolved setting."""
        if not self.quiet:
            self.console.print(f"{name}: ", style="dim", end="", markup=False)
            self.console.print(str(value), markup=False)

    def print_summary(self, title: str, rows: list[tuple[str, str]]) -> None:
        """Print a two-column summary table.

        Args:
            title: Table title
            rows: (label, value) pairs
        """
        if self.quiet:
            return
        table = Table(title=title, show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for label, value in rows:
            table.add_row(label, value)
        self.console.print(table)

    def print_plan_line(self, action_label: str, line: str) -> None:
        """Print one sync plan row colored by its action."""
        self.print(line, style=ACTION_STYLES.get(action_label))


ACTION_STYLES: dict[str, str] = {
    "Unknown": "yellow",
    "Delete": "red",
    "Update": "magenta",
    "Create": "magenta",
}
