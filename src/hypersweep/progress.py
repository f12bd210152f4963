# Copyright (c) Syntropy Systems
"""Progress reporting for blocking waits."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

from rich.console import Console

if TYPE_CHECKING:
    from hypersweep.run import RunState

STATE_STYLES = {
    "QUEUED": "yellow",
    "PREPARING": "yellow",
    "RUNNING": "blue",
    "FINALIZING": "blue",
    "CANCEL_REQUESTED": "yellow",
    "COMPLETED": "green",
    "FAILED": "red",
    "CANCELED": "dim",
}


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as a short duration."""
    total_seconds = int(seconds)
    if total_seconds < 60:
        return f"{total_seconds}s"
    if total_seconds < 3600:
        m, s = divmod(total_seconds, 60)
        return f"{m}m {s}s"
    h, rem = divmod(total_seconds, 3600)
    m, _ = divmod(rem, 60)
    return f"{h}h {m}m"


def styled_state(state: RunState) -> str:
    style = STATE_STYLES.get(state.value, "white")
    return f"[{style}]{state.value.lower()}[/{style}]"


class ProgressReporter(Protocol):
    """Receives state observations while a wait is in progress."""

    def update(self, run_id: str, state: RunState, elapsed: float) -> None:
        ...

    def finish(self, run_id: str, state: RunState, elapsed: float) -> None:
        ...


class ConsoleProgressReporter:
    """Prints a line to the console whenever the observed state changes."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._last: dict[str, RunState] = {}

    def update(self, run_id: str, state: RunState, elapsed: float) -> None:
        if self._last.get(run_id) is state:
            return
        self._last[run_id] = state
        now = datetime.now(timezone.utc).strftime("%H:%M:%S")
        self.console.print(
            f"[dim]{now}[/dim] {run_id}: {styled_state(state)} "
            f"[dim]({format_elapsed(elapsed)})[/dim]"
        )

    def finish(self, run_id: str, state: RunState, elapsed: float) -> None:
        self.console.print(
            f"[bold]{run_id}[/bold] finished {styled_state(state)} "
            f"after {format_elapsed(elapsed)}"
        )
