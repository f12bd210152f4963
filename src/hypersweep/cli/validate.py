# Copyright (c) Syntropy Systems
"""hypersweep validate command."""
from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.markup import escape

from hypersweep.cli.common import build_space_table, console, fail
from hypersweep.config import load_config
from hypersweep.errors import HypersweepError
from hypersweep.run_config import RunConfiguration


def validate(
    config_file: Path = typer.Argument(
        ...,
        help="Path to sweep configuration YAML file",
        exists=True,
    ),
) -> None:
    """Check a sweep file without submitting it."""
    config = load_config()
    try:
        run_config = RunConfiguration.from_yaml(
            config_file, bayesian_distributions=config.bayesian_distributions
        )
    except (OSError, HypersweepError) as e:
        raise fail(str(e)) from e

    title = f"Sampling: {run_config.sampling.method.lower()}"
    console.print(build_space_table(run_config.sampling, title))
    policy = run_config.policy.to_wire()
    console.print(f"[dim]Policy:[/dim] {escape(json.dumps(policy)) if policy else 'none'}")
    console.print(
        f"[dim]Primary metric:[/dim] {run_config.primary_metric_name} "
        f"({run_config.primary_metric_goal.value.lower()})"
    )
    console.print("[green]Configuration is valid[/green]")
