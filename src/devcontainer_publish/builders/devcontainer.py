"""Wrapper for the dev container CLI, the engine that turns devcontainer.json into images."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

from ..subprocess_utils import command_succeeds, run_command

logger = logging.getLogger(__name__)

CLI_PACKAGE = "@devcontainers/cli@0"


@dataclass(frozen=True)
class BuildArgs:
    """Arguments for a single 'devcontainer build' invocation."""

    workspace_folder: Path
    image_names: List[str]
    platforms: List[str] = field(default_factory=list)
    config_file: Optional[Path] = None
    cache_from: List[str] = field(default_factory=list)
    cache_to: List[str] = field(default_factory=list)
    no_cache: bool = False
    user_data_folder: Optional[str] = None
    output: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class BuildOutcome:
    """Result reported by the build engine."""

    outcome: str
    image_digests: Optional[Dict[str, str]] = None
    message: Optional[str] = None
    code: Optional[int] = None
    description: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == "success"

    @classmethod
    def from_json(cls, data: Dict) -> BuildOutcome:
        digests = data.get("imageDigests")
        return cls(
            outcome=data.get("outcome", "error"),
            image_digests=dict(digests) if isinstance(digests, dict) else None,
            message=data.get("message"),
            code=data.get("code"),
            description=data.get("description"),
        )


def _last_json_outcome(stdout: str) -> Optional[Dict]:
    """The CLI prints its result as the last JSON object on stdout."""
    for line in reversed(stdout.splitlines()):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict) and "outcome" in data:
            return data
    return None


class DevContainerCLI:
    """Interfaces with the 'devcontainer' executable."""

    def __init__(self, executable: str = "devcontainer"):
        self.executable = executable

    def is_installed(self) -> bool:
        return command_succeeds([self.executable, "--version"])

    def install(self) -> bool:
        """Installs the CLI globally with npm. Returns True on success."""
        logger.info("Installing %s...", CLI_PACKAGE)
        return command_succeeds(["npm", "install", "-g", CLI_PACKAGE])

    def build_command(self, args: BuildArgs) -> List[str]:
        cmd = [self.executable, "build", "--workspace-folder", str(args.workspace_folder)]

        if args.config_file:
            cmd += ["--config", str(args.config_file)]
        for image_name in args.image_names:
            cmd += ["--image-name", image_name]
        if args.platforms:
            cmd += ["--platform", ",".join(args.platforms)]
        if args.output:
            cmd += ["--output", args.output]
        if args.user_data_folder:
            cmd += ["--user-data-folder", args.user_data_folder]

        # --no-cache and --cache-from are mutually exclusive for the CLI.
        if args.no_cache:
            cmd.append("--no-cache")
        else:
            for cache_from in args.cache_from:
                cmd += ["--cache-from", cache_from]
        for cache_to in args.cache_to:
            cmd += ["--cache-to", cache_to]

        return cmd

    def environment(self, overlay: Mapping[str, str]) -> Dict[str, str]:
        """The process environment with the job overlay applied on top."""
        env = dict(os.environ)
        env.update(overlay)
        env["DOCKER_BUILDKIT"] = "1"
        env["COMPOSE_DOCKER_CLI_BUILD"] = "1"
        return env

    def build(self, args: BuildArgs, log: Optional[Callable[[str], None]] = None) -> BuildOutcome:
        """
        Executes 'devcontainer build' and interprets its JSON result.

        A failed process that printed no result still yields an error
        outcome carrying its exit code.
        """
        cmd = self.build_command(args)
        try:
            result = run_command(cmd, env=self.environment(args.env), log=log)
        except OSError as exc:
            return BuildOutcome(
                outcome="error",
                message=f"Failed to start {self.executable}",
                description=str(exc),
            )

        data = _last_json_outcome(result.stdout)
        if data is not None:
            outcome = BuildOutcome.from_json(data)
            if not outcome.success and outcome.code is None:
                outcome = BuildOutcome(
                    outcome=outcome.outcome,
                    image_digests=outcome.image_digests,
                    message=outcome.message,
                    code=result.returncode,
                    description=outcome.description,
                )
            return outcome

        if result.ok:
            return BuildOutcome(outcome="success")
        return BuildOutcome(
            outcome="error",
            message="devcontainer build failed",
            code=result.returncode,
            description=(result.stderr or result.stdout).strip(),
        )
