"""Publishing policy: the build writes an OCI archive, skopeo copies it to each reference."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from .. import workflow
from ..matrix import ImageTask, references
from .skopeo import SkopeoTransfer

logger = logging.getLogger(__name__)


def archive_output(archive_path: Path) -> str:
    """BuildKit output directive that writes the build result to a local OCI archive."""
    return f"type=oci,dest={archive_path}"


class Publisher:
    """
    Pushes built references to their registries.

    Transfers run one at a time; the first failure propagates and the
    remaining references are not pushed.
    """

    def __init__(self, transfer: Optional[SkopeoTransfer] = None):
        self.transfer = transfer or SkopeoTransfer()

    @staticmethod
    def source(archive_path: Path) -> str:
        return f"oci-archive:{archive_path}"

    @staticmethod
    def destination(reference: str) -> str:
        return f"docker://{reference}"

    def publish(self, tasks: Sequence[ImageTask], archive_path: Path) -> None:
        with workflow.group("push image"):
            for reference in references(tasks):
                logger.info("Pushing image '%s'...", reference)
                self.transfer.copy(self.source(archive_path), self.destination(reference))
            logger.info("Images pushed successfully")
