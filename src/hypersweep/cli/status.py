# Copyright (c) Syntropy Systems
"""hypersweep status and cancel commands."""
from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from hypersweep.cli.common import SERVER_OPTION_HELP, attach, console, fail, open_client
from hypersweep.config import load_config
from hypersweep.errors import HypersweepError, WaitInterrupted
from hypersweep.progress import styled_state
from hypersweep.run import cancel as cancel_sweep
from hypersweep.run import poll_status, wait_for_completion


def status(
    run_id: str = typer.Argument(..., help="Sweep run ID"),
    server: Optional[str] = typer.Option(
        None,
        "--server", "-s",
        envvar="HYPERSWEEP_SERVER_URL",
        help=SERVER_OPTION_HELP,
    ),
    wait: bool = typer.Option(
        False,
        "--wait", "-w",
        help="Wait until the sweep reaches a terminal state",
    ),
    interval: Optional[float] = typer.Option(
        None,
        "--interval", "-i",
        help="Seconds between status checks",
    ),
) -> None:
    """Show the state of a sweep.

    With --wait, polls until the sweep completes, fails or is canceled.
    Ctrl+C stops waiting but leaves the sweep running.
    """
    with open_client(server) as client:
        handle = attach(client, run_id)
        try:
            if wait:
                state = wait_for_completion(
                    handle,
                    show_progress=True,
                    poll_interval=interval or load_config().poll_interval,
                )
            else:
                state = poll_status(handle)
        except WaitInterrupted as e:
            console.print(f"\n[dim]{escape(str(e))}; the sweep keeps running[/dim]")
            return
        except HypersweepError as e:
            raise fail(str(e)) from e

    console.print(f"Sweep {run_id}: {styled_state(state)}")


def cancel(
    run_id: str = typer.Argument(..., help="Sweep run ID"),
    server: Optional[str] = typer.Option(
        None,
        "--server", "-s",
        envvar="HYPERSWEEP_SERVER_URL",
        help=SERVER_OPTION_HELP,
    ),
) -> None:
    """Cancel a sweep and all of its child runs."""
    with open_client(server) as client:
        handle = attach(client, run_id)
        try:
            state = poll_status(handle)
            if state.is_terminal:
                console.print(
                    f"[yellow]Sweep {run_id} is already {state.value.lower()}[/yellow]"
                )
                return
            state = cancel_sweep(handle)
        except HypersweepError as e:
            raise fail(str(e)) from e

    console.print(f"[yellow]Cancellation requested for sweep {run_id}[/yellow]")
    console.print(f"  [dim]State:[/dim] {styled_state(state)}")
