# Copyright (c) Syntropy Systems
"""hypersweep children and best commands."""
from __future__ import annotations

import json
from typing import Optional

import typer
from rich.markup import escape

from hypersweep.cli.common import (
    SERVER_OPTION_HELP,
    attach,
    build_children_table,
    console,
    fail,
    open_client,
)
from hypersweep.errors import HypersweepError, NoCompletedRuns
from hypersweep.run import best_child_run, list_child_runs_sorted_by_primary_metric


def children(
    run_id: str = typer.Argument(..., help="Sweep run ID"),
    metric: str = typer.Option(..., "--metric", "-m", help="Primary metric name"),
    goal: str = typer.Option(
        "maximize",
        "--goal", "-g",
        help="maximize or minimize",
    ),
    top: int = typer.Option(0, "--top", "-n", help="Show only the best N runs"),
    server: Optional[str] = typer.Option(
        None,
        "--server", "-s",
        envvar="HYPERSWEEP_SERVER_URL",
        help=SERVER_OPTION_HELP,
    ),
) -> None:
    """List child runs ranked by the primary metric."""
    with open_client(server) as client:
        try:
            handle = attach(client, run_id, metric=metric, goal=goal)
            runs = list_child_runs_sorted_by_primary_metric(handle, top=top)
        except HypersweepError as e:
            raise fail(str(e)) from e

    console.print(build_children_table(runs, metric))


def best(
    run_id: str = typer.Argument(..., help="Sweep run ID"),
    metric: str = typer.Option(..., "--metric", "-m", help="Primary metric name"),
    goal: str = typer.Option(
        "maximize",
        "--goal", "-g",
        help="maximize or minimize",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the run as JSON"),
    server: Optional[str] = typer.Option(
        None,
        "--server", "-s",
        envvar="HYPERSWEEP_SERVER_URL",
        help=SERVER_OPTION_HELP,
    ),
) -> None:
    """Show the child run with the best primary metric."""
    with open_client(server) as client:
        try:
            handle = attach(client, run_id, metric=metric, goal=goal)
            run = best_child_run(handle)
        except NoCompletedRuns as e:
            console.print(f"[yellow]{escape(str(e))}[/yellow]")
            raise typer.Exit(1) from e
        except HypersweepError as e:
            raise fail(str(e)) from e

    if as_json:
        console.print_json(json.dumps(run.model_dump(mode="json")))
        return

    console.print(f"[bold]Best run:[/bold] {run.run_id}")
    console.print(f"  [dim]{metric}:[/dim] {run.primary_metric_value:.6g}")
    for name, value in run.hyperparameters.items():
        console.print(f"  [dim]{name}:[/dim] {escape(str(value))}")
