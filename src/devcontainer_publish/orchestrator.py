"""Runs the single dev container build for a run's image matrix."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from . import workflow
from .builders.devcontainer import BuildArgs, BuildOutcome, DevContainerCLI
from .config import BuildRequest
from .exporters.publish import archive_output
from .matrix import ImageTask, references

logger = logging.getLogger(__name__)


def build_args(tasks: Sequence[ImageTask], request: BuildRequest) -> BuildArgs:
    return BuildArgs(
        workspace_folder=request.workspace_folder,
        config_file=request.config_file,
        image_names=references(tasks),
        platforms=list(request.platforms),
        cache_from=list(request.cache_from),
        cache_to=list(request.cache_to),
        no_cache=request.no_cache,
        user_data_folder=request.user_data_folder,
        output=archive_output(request.archive_path),
        env=dict(request.env),
    )


def build_images(
    tasks: Sequence[ImageTask],
    request: BuildRequest,
    cli: Optional[DevContainerCLI] = None,
) -> BuildOutcome:
    """
    Invokes the build engine once with every reference and platform.

    The outcome is returned as reported; failures are logged, never retried.
    """
    cli = cli or DevContainerCLI()
    with workflow.group("build image"):
        outcome = cli.build(build_args(tasks, request), log=logger.info)
        if not outcome.success:
            logger.error(
                "Dev container build failed: %s (exit code: %s)\n%s",
                outcome.message,
                outcome.code,
                outcome.description or "",
            )
    return outcome
