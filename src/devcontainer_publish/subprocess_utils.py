"""Thin wrapper around subprocess for the external tools the job drives."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured output from a command invocation."""

    command: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    command: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    log: Optional[Callable[[str], None]] = None,
) -> CommandResult:
    """
    Run a command to completion and capture its output.

    When ``log`` is given, stderr is merged into stdout and every line is
    forwarded to it while the process runs; the full text is still returned
    as ``stdout``. There is no timeout: a hung process hangs the caller.
    """
    cmd_list = [str(item) for item in command]
    logger.debug("Executing: %s", " ".join(cmd_list))

    if log is None:
        result = subprocess.run(
            cmd_list,
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        return CommandResult(cmd_list, result.returncode, result.stdout, result.stderr)

    lines: List[str] = []
    with subprocess.Popen(
        cmd_list,
        cwd=cwd,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    ) as proc:
        for line in proc.stdout:
            line = line.rstrip("\n")
            lines.append(line)
            log(line)
        returncode = proc.wait()
    return CommandResult(cmd_list, returncode, "\n".join(lines), "")


def command_succeeds(command: Sequence[str]) -> bool:
    """Return True when the command can be started and exits with status 0."""
    try:
        return run_command(command).ok
    except OSError as exc:
        logger.debug("Could not run %s: %s", command[0], exc)
        return False
