"""CI job surface: log groups, workflow commands, step outputs and failure status."""

from __future__ import annotations

import logging
import os
import sys
import uuid
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

import click

PACKAGE_LOGGER = "devcontainer_publish"

_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def escape_data(value: str) -> str:
    """Escape a message so the runner reads it as a single workflow command."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Render records as GitHub workflow commands (``::warning::...``).

    INFO records pass through as plain log lines.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{escape_data(message)}"


class _WorkflowHandler(logging.StreamHandler):
    pass


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a workflow-command handler to the package logger and return it."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, _WorkflowHandler):
            logger.removeHandler(handler)

    handler = _WorkflowHandler(sys.stdout)
    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return logger


@contextmanager
def group(title: str) -> Iterator[None]:
    """
    Fold the log lines emitted inside the block under ``title``.

    The group is always closed; exceptions raised inside propagate unchanged.
    """
    click.echo(f"::group::{title}")
    try:
        yield
    finally:
        click.echo("::endgroup::")


def set_output(name: str, value: str, environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Publish a step output.

    Uses the ``$GITHUB_OUTPUT`` file when the runner provides one, otherwise
    only prints ``name=value`` to the log.
    """
    environ = os.environ if environ is None else environ
    output_file = environ.get("GITHUB_OUTPUT")
    if not output_file:
        click.echo(f"{name}={value}")
        return

    with open(output_file, "a", encoding="utf-8") as f:
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        else:
            f.write(f"{name}={value}\n")


def set_failed(message: str) -> None:
    """Report the run as failed. The CLI turns this into a non-zero exit."""
    logging.getLogger(PACKAGE_LOGGER).error(message)
