# Copyright (c) Syntropy Systems
"""Main CLI entry point for hypersweep."""

import typer

from hypersweep.cli.runs import best, children
from hypersweep.cli.status import cancel, status
from hypersweep.cli.submit import submit
from hypersweep.cli.validate import validate

app = typer.Typer(
    name="hypersweep",
    help=(
        "Client for hosted hyperparameter sweeps. Describe a search space, "
        "submit it, read back the best run."
    ),
    no_args_is_help=True,
    add_completion=False,
)

# Register commands
_ = app.command()(validate)
_ = app.command()(submit)
_ = app.command()(status)
_ = app.command()(cancel)
_ = app.command()(children)
_ = app.command()(best)


if __name__ == "__main__":
    app()
