"""Wrapper for skopeo, which copies built archives into a registry."""

from __future__ import annotations

import logging

from ..exceptions import PublishFailure
from ..subprocess_utils import command_succeeds, run_command

logger = logging.getLogger(__name__)


class SkopeoTransfer:
    """Copies images between transports with 'skopeo copy'."""

    def __init__(self, executable: str = "skopeo"):
        self.executable = executable

    def is_available(self) -> bool:
        return command_succeeds([self.executable, "--version"])

    def copy(self, source: str, destination: str, all_images: bool = True) -> None:
        """
        Copies ``source`` to ``destination``.

        ``all_images`` keeps every architecture of a multi-arch source.
        Raises PublishFailure when skopeo cannot be started or exits non-zero.
        """
        cmd = [self.executable, "copy"]
        if all_images:
            cmd.append("--all")
        cmd += [source, destination]

        try:
            result = run_command(cmd, log=logger.info)
        except OSError as exc:
            raise PublishFailure(f"Failed to start {self.executable}: {exc}") from exc
        if not result.ok:
            raise PublishFailure(
                f"Failed to copy {source} to {destination} (exit code: {result.returncode})"
            )
