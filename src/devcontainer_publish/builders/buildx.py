"""Wrapper for 'docker buildx', used as a prerequisite and for registry inspection."""

from __future__ import annotations

from ..subprocess_utils import CommandResult, command_succeeds, run_command


class BuildxClient:
    """Interfaces with the 'docker buildx' plugin."""

    def __init__(self, docker: str = "docker"):
        self.docker = docker

    def is_available(self) -> bool:
        return command_succeeds([self.docker, "buildx", "version"])

    def inspect_raw(self, reference: str) -> CommandResult:
        """Fetches the raw registry manifest for a reference."""
        return run_command([self.docker, "buildx", "imagetools", "inspect", "--raw", reference])
