"""Top-level sequencing of a build-and-publish run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, Mapping, Optional

from . import workflow
from .builders.buildx import BuildxClient
from .builders.devcontainer import DevContainerCLI
from .config import BuildRequest
from .digests import aggregate_digests, resolve_digest
from .exceptions import BuildFailure, PrerequisiteMissing, PublisherError
from .exporters.publish import Publisher
from .exporters.skopeo import SkopeoTransfer
from .matrix import BuildMode, build_matrix
from .orchestrator import build_images

logger = logging.getLogger(__name__)

DOCS_URL = "https://github.com/devcontainers/ci/blob/main/docs/github-action.md"
BUILDX_MISSING = (
    "docker buildx not available: add a step to set up with "
    f"docker/setup-buildx-action - see {DOCS_URL}"
)
SKOPEO_MISSING = (
    "skopeo not available: add a step to set up with "
    f"skopeo/install-action - see {DOCS_URL}"
)
CLI_INSTALL_FAILED = "@devcontainers/cli install failed!"
DIGESTS_OUTPUT = "imageDigests"


@dataclass
class RunResult:
    """Terminal status of a run."""

    success: bool
    message: Optional[str] = None
    digests: Dict[str, Dict[str, str]] = field(default_factory=dict)


class RunController:
    """
    Sequences one run: prerequisites, matrix, build, publish, digests.

    Every fatal error ends the run through a single failure report; a
    missing dev container CLI gets exactly one install attempt.
    """

    def __init__(
        self,
        cli: Optional[DevContainerCLI] = None,
        buildx: Optional[BuildxClient] = None,
        transfer: Optional[SkopeoTransfer] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.cli = cli or DevContainerCLI()
        self.buildx = buildx or BuildxClient()
        self.transfer = transfer or SkopeoTransfer()
        self.publisher = Publisher(self.transfer)
        self.environ = environ

    def check_prerequisites(self) -> None:
        if not self.buildx.is_available():
            raise PrerequisiteMissing(BUILDX_MISSING)
        if not self.transfer.is_available():
            raise PrerequisiteMissing(SKOPEO_MISSING)
        if not self.cli.is_installed() and not self.cli.install():
            raise PrerequisiteMissing(CLI_INSTALL_FAILED)

    def run(self, request: BuildRequest) -> RunResult:
        logger.info("Starting...")
        try:
            return self._run(request)
        except PublisherError as exc:
            message = str(exc)
            workflow.set_failed(message)
            return RunResult(success=False, message=message)
        except Exception as exc:
            logger.debug("Run failed", exc_info=True)
            message = str(exc) or exc.__class__.__name__
            workflow.set_failed(message)
            return RunResult(success=False, message=message)

    def _run(self, request: BuildRequest) -> RunResult:
        # Conflicting inputs are rejected before any tool is invoked.
        mode = BuildMode.select(request)
        self.check_prerequisites()

        tasks = build_matrix(request.tags, mode)
        outcome = build_images(tasks, request, self.cli)
        if not outcome.success:
            raise BuildFailure(
                outcome.message or "Dev container build failed",
                code=outcome.code,
                description=outcome.description,
            )

        if not request.push:
            logger.info("Images not pushed")
            return RunResult(success=True)

        self.publisher.publish(tasks, request.archive_path)

        report = aggregate_digests(
            tasks,
            mode,
            engine_digests=outcome.image_digests,
            resolve=partial(resolve_digest, buildx=self.buildx),
        )
        if len(report) > 0:
            digests_json = report.to_json()
            logger.info("Image digests: %s", digests_json)
            workflow.set_output(DIGESTS_OUTPUT, digests_json, self.environ)
        return RunResult(success=True, digests=report.to_dict())
