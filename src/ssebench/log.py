# Copyright (c) Syntropy Systems
"""Logging setup for the command line."""
from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# Libraries that log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "botocore")


def configure_logging(verbose: bool, console: Console | None = None) -> None:  # noqa: FBT001
    """Send log records to stderr through rich.

    Verbose shows progress and retry lines (INFO); otherwise only warnings.
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        show_level=False,
        markup=False,
    )
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
