"""Main CLI entry point for devcontainer-publish."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from . import workflow
from .config import JobInputs
from .digests import resolve_digest
from .exceptions import PublisherError
from .matrix import BuildMode, build_matrix
from .runner import RunController


def load_inputs(inputs: Optional[Path]) -> JobInputs:
    if inputs is not None:
        return JobInputs.from_yaml(inputs)
    return JobInputs.from_env()


inputs_option = click.option(
    "--inputs",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file of job inputs. Defaults to INPUT_* environment variables.",
)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
def cli(verbose: bool):
    """devcontainer-publish: build dev container images and publish them by tag and platform."""
    workflow.configure_logging(verbose)


@cli.command()
@inputs_option
def build(inputs: Optional[Path]):
    """Builds, optionally pushes, and reports digests for the configured images."""
    try:
        request = load_inputs(inputs).to_request()
    except PublisherError as exc:
        workflow.set_failed(str(exc))
        raise SystemExit(1)

    result = RunController().run(request)
    if not result.success:
        raise SystemExit(1)


@cli.command()
@inputs_option
def plan(inputs: Optional[Path]):
    """Prints the image references a build would produce, without running anything."""
    try:
        request = load_inputs(inputs).to_request()
        mode = BuildMode.select(request)
    except PublisherError as exc:
        workflow.set_failed(str(exc))
        raise SystemExit(1)

    tasks = build_matrix(request.tags, mode)
    click.echo(
        json.dumps(
            {
                "mode": mode.kind.value,
                "platforms": list(mode.platforms),
                "images": [
                    {"tag": t.tag, "platform": t.platform_key, "reference": t.reference}
                    for t in tasks
                ],
            },
            indent=2,
        )
    )


@cli.command()
@click.argument("reference")
def digest(reference: str):
    """Prints the registry digest of a published image reference."""
    value = resolve_digest(reference)
    if value is None:
        raise SystemExit(1)
    click.echo(value)


if __name__ == "__main__":
    cli()
