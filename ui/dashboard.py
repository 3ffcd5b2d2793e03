"""
Rich-based terminal dashboard for speed-test runs.

All formatting helpers live in ``engine.stats`` -- this module only does
presentation via the ``rich`` library, driven by ``RunnerState`` snapshots.
"""
from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from engine.models import MeasurementResult, PhaseKind, RunnerState
from engine.stats import format_latency, format_speed

console = Console()

PHASE_LABELS = {
    PhaseKind.IDLE: "Idle",
    PhaseKind.MEASURING_DOWNLOAD: "Downloading",
    PhaseKind.MEASURING_UPLOAD: "Uploading",
    PhaseKind.MEASURING_PING: "Measuring ping",
    PhaseKind.DONE: "Done",
    PhaseKind.ERROR: "Error",
}


def phase_label(state: RunnerState) -> str:
    return PHASE_LABELS[state.phase.kind]


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]speedcheck[/bold cyan]\n"
            "[dim]Latency, download and upload against speed.cloudflare.com[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def _value_or_dash(value: Optional[float], fmt) -> str:  # noqa: ANN001
    return fmt(value) if value is not None else "--"


def print_final_results(result: MeasurementResult) -> None:
    console.print()
    console.print(
        Panel.fit(
            f"[bold white]   Ping:[/bold white]  "
            f"[bold yellow]{_value_or_dash(result.ping, format_latency)}[/bold yellow]\n"
            f"[bold white]   Download:[/bold white]  "
            f"[bold green]{_value_or_dash(result.download, format_speed)}[/bold green]\n"
            f"[bold white]   Upload:[/bold white]  "
            f"[bold blue]{_value_or_dash(result.upload, format_speed)}[/bold blue]",
            title="[bold]Results[/bold]",
            border_style="cyan",
        )
    )
    console.print()


def print_error(message: str) -> None:
    console.print(f"\n[red]Error: {message}[/red]")


def print_cancelled() -> None:
    console.print("\n[yellow]Test cancelled by user[/yellow]")


# ---------------------------------------------------------------------------
# Live observer
# ---------------------------------------------------------------------------

class LiveDashboard:
    """
    Renders runner snapshots as a single ``rich`` progress bar.

    Subscribe ``update`` to a ``SpeedTestRunner``; the bar shows the overall
    progress fraction, the current phase and the live transfer speed.
    """

    def __init__(self, target: Optional[Console] = None) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description:<15}"),
            BarColumn(bar_width=40),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("[bold cyan]{task.fields[speed]}[/bold cyan]"),
            TimeElapsedColumn(),
            console=target or console,
        )
        self._task_id: Optional[TaskID] = None

    def start(self) -> None:
        self.progress.start()
        self._task_id = self.progress.add_task("Starting", total=100, speed="")

    def update(self, state: RunnerState) -> None:
        if self._task_id is None:
            return
        if state.phase.is_transfer:
            speed = format_speed(state.live_speed) if state.live_speed > 0 else "..."
        else:
            speed = ""
        self.progress.update(
            self._task_id,
            completed=state.progress * 100,
            description=phase_label(state),
            speed=speed,
        )

    def stop(self) -> None:
        self.progress.stop()
        self._task_id = None
