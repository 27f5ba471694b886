# Copyright (c) Syntropy Systems
"""Main CLI entry point for ssebench."""

import typer

from ssebench.cli.doctor import doctor
from ssebench.cli.run_cmd import run

app = typer.Typer(
    name="ssebench",
    help=(
        "Measure the latency cost of server-side encryption on "
        "S3-compatible object storage."
    ),
    no_args_is_help=True,
    add_completion=False,
)

# Register commands
_ = app.command()(run)
_ = app.command()(doctor)


if __name__ == "__main__":
    app()
