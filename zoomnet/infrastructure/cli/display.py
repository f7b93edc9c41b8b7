import logging
import threading
from typing import Any, Optional, Sequence

from rich.box import HEAVY, ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from zoomnet.domain.interfaces.output_sink import OutputSink
from zoomnet.domain.models.jobs import JobOutcome, OutcomeKind

logger = logging.getLogger(__name__)

JOB_NAME_MAX_LENGTH = 25

OUTCOME_STYLES = {
    OutcomeKind.SUCCESS: "green",
    OutcomeKind.CANCELLED: "yellow",
    OutcomeKind.FAILURE: "bold red",
}


def truncate_job_name(name: str, max_length: int = JOB_NAME_MAX_LENGTH) -> str:
    """Shortens long names to ``max_length`` characters, ending with '...'."""
    if len(name) <= max_length:
        return name
    return name[: max_length - 3] + "..."


def format_summary_line(outcome: JobOutcome, max_length: int = JOB_NAME_MAX_LENGTH) -> str:
    return f"{truncate_job_name(outcome.name, max_length).ljust(max_length)} : {outcome.message}"


class ConsoleDisplay(OutputSink):
    """Output sink writing to a rich Console shared by all running jobs."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console and the lock guarding it."""
        self._console = console or Console()
        self._lock = threading.Lock()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def write_block(self, text: str) -> None:
        """Writes a job's buffered output in one piece.

        The lock is held for the whole write and released on every exit path.
        """
        with self._lock:
            self.console.print(text, markup=False, highlight=False, end="" if text.endswith("\n") else "\n")

    def display_summary(self, outcomes: Sequence[JobOutcome], **kwargs: Any) -> None:
        """Displays one row per job: its (truncated) name and its outcome message.

        Args:
            outcomes: Outcomes in display order.
            **kwargs: Additional arguments including:
                - title: Table title (default: "SUMMARY")
        """
        title = kwargs.get("title", "SUMMARY")
        with self._lock:
            try:
                table = Table(title=f"[bold]{title}[/bold]", box=ROUNDED, border_style="cyan", padding=(0, 1))
                table.add_column("Job", no_wrap=True, min_width=JOB_NAME_MAX_LENGTH)
                table.add_column("Result")
                for outcome in outcomes:
                    table.add_row(
                        truncate_job_name(outcome.name),
                        Text(outcome.message, style=OUTCOME_STYLES[outcome.kind]),
                    )
                self.console.print("")
                self.console.print(table)
            except Exception as e:
                # Fallback if Rich formatting fails
                logger.error(f"Error displaying summary table: {e}")
                self.console.print(f"\n{'*' * 50}\n{title.center(50, '*')}\n{'*' * 50}", markup=False)
                for outcome in outcomes:
                    self.console.print(format_summary_line(outcome), markup=False)
                self.console.print("*" * 50, markup=False)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        with self._lock:
            self.console.print(panel)
