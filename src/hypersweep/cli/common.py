# Copyright (c) Syntropy Systems
"""Helpers shared by hypersweep commands."""
from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hypersweep.client import get_client
from hypersweep.config import load_config
from hypersweep.goal import PrimaryMetricGoal
from hypersweep.progress import styled_state
from hypersweep.run import Experiment, RunHandle, RunState

if TYPE_CHECKING:
    from hypersweep.client import HttpControlPlaneClient
    from hypersweep.models.run import ChildRunSummary
    from hypersweep.sampling import SamplingStrategy

console = Console()

SERVER_OPTION_HELP = "Control-plane URL (default from .hypersweep/config.yaml)"


def open_client(server: str | None) -> HttpControlPlaneClient:
    """Create a client for ``server`` or the configured default."""
    config = load_config()
    return get_client(server or config.server_url, timeout=config.timeout)


def attach(
    client: HttpControlPlaneClient,
    run_id: str,
    metric: str | None = None,
    goal: str | None = None,
    experiment: str = "default",
) -> RunHandle:
    """Build a handle for an existing sweep."""
    return RunHandle(
        run_id=run_id,
        experiment=Experiment(name=experiment, client=client),
        primary_metric_name=metric,
        primary_metric_goal=PrimaryMetricGoal.parse(goal) if goal else None,
    )


def fail(message: str) -> typer.Exit:
    """Print an error and return the exit to raise."""
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(1)


def build_space_table(sampling: SamplingStrategy, title: str) -> Table:
    """Build a table of hyperparameters and their distributions."""
    table = Table(title=title)
    table.add_column("Parameter")
    table.add_column("Distribution")
    table.add_column("Arguments", style="dim")

    for name, dist in sampling.parameter_space.items():
        args = ", ".join(str(p) for p in dist.params())
        table.add_row(name, dist.tag, escape(args))

    return table


def build_children_table(runs: list[ChildRunSummary], metric: str) -> Table:
    """Build the ranked child-run table."""
    table = Table(title="Child runs", show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=4)
    table.add_column("Run ID")
    table.add_column("Status", width=12)
    table.add_column(metric, justify="right")
    table.add_column("Hyperparameters")

    if not runs:
        table.add_row("-", "[dim]No child runs[/dim]", "-", "-", "-")
        return table

    for rank, run in enumerate(runs, 1):
        value = "-" if run.primary_metric_value is None else f"{run.primary_metric_value:.6g}"
        params = ", ".join(f"{k}={v}" for k, v in run.hyperparameters.items())
        table.add_row(
            str(rank),
            run.run_id,
            styled_state(RunState(run.status)),
            value,
            escape(params) or "-",
        )

    return table
