# Copyright (c) Syntropy Systems
"""hypersweep submit command."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from hypersweep.cli.common import (
    SERVER_OPTION_HELP,
    build_space_table,
    console,
    fail,
    open_client,
)
from hypersweep.config import load_config
from hypersweep.errors import HypersweepError, SubmissionRejected
from hypersweep.progress import styled_state
from hypersweep.run import Experiment
from hypersweep.run import submit as submit_sweep
from hypersweep.run import wait_for_completion
from hypersweep.run_config import RunConfiguration, load_sweep_yaml


def submit(
    config_file: Path = typer.Argument(
        ...,
        help="Path to sweep configuration YAML file",
        exists=True,
    ),
    experiment: Optional[str] = typer.Option(
        None,
        "--experiment", "-e",
        help="Experiment name (overrides 'experiment' in the file)",
    ),
    server: Optional[str] = typer.Option(
        None,
        "--server", "-s",
        envvar="HYPERSWEEP_SERVER_URL",
        help=SERVER_OPTION_HELP,
    ),
    wait: bool = typer.Option(
        False,
        "--wait", "-w",
        help="Wait for the sweep to finish",
    ),
    interval: Optional[float] = typer.Option(
        None,
        "--interval", "-i",
        help="Seconds between status checks when waiting",
    ),
) -> None:
    """Submit a sweep to the control plane."""
    config = load_config()
    try:
        data = load_sweep_yaml(config_file)
        run_config = RunConfiguration.from_dict(
            data, bayesian_distributions=config.bayesian_distributions
        )
    except (OSError, HypersweepError) as e:
        raise fail(f"loading config: {e}") from e

    experiment_name = experiment or data.get("experiment")
    if not isinstance(experiment_name, str) or not experiment_name:
        console.print("[red]Error:[/red] No experiment name given")
        console.print("\nPass --experiment or set 'experiment' in the sweep file")
        raise typer.Exit(1)

    console.print(build_space_table(run_config.sampling, f"Sweep: {experiment_name}"))

    with open_client(server) as client:
        try:
            handle = submit_sweep(Experiment(experiment_name, client), run_config)
        except SubmissionRejected as e:
            raise fail(f"submission rejected: {e.detail}") from e
        except HypersweepError as e:
            raise fail(str(e)) from e

        console.print(f"\n[green]Submitted sweep {handle.run_id}[/green]")
        console.print(
            f"  [dim]Runs:[/dim] {run_config.max_total_runs}"
            f"  [dim]Concurrent:[/dim] {run_config.max_concurrent_runs or '-'}"
        )

        if not wait:
            return

        try:
            state = wait_for_completion(
                handle,
                show_progress=True,
                poll_interval=interval or config.poll_interval,
            )
        except HypersweepError as e:
            raise fail(str(e)) from e
        console.print(f"Sweep finished: {styled_state(state)}")
