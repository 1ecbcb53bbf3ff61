"""
process.py

Responsibility: run external programs (git, npm) synchronously.

- `run`: for steps that must succeed; raises CommandError on failure.
- `spawn`: for steps whose exit status the caller inspects itself.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import structlog

from svcbuilder.errors import CommandError

logger = structlog.get_logger()


@dataclass(frozen=True)
class Completed:
    status: int
    stdout: str
    stderr: str


def command_exists(command: str) -> bool:
    return shutil.which(command) is not None


def require_command(command: str, message: str | None = None) -> None:
    if not command_exists(command):
        raise CommandError(message or f"{command} command is not installed!")


def run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    """
    Run a subprocess command, raising a CommandError on failure.

    Returns the combined stdout/stderr output.
    """
    logger.debug("Running command", cmd=cmd, cwd=str(cwd))
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        raise CommandError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e
    except FileNotFoundError as e:
        raise CommandError(f"Command not found: {cmd[0]}") from e
    return proc.stdout


def spawn(cmd: list[str], *, cwd: Path) -> Completed:
    """
    Run a subprocess command and return its status and output without raising
    on a non-zero exit.
    """
    logger.debug("Spawning command", cmd=cmd, cwd=str(cwd))
    try:
        proc = subprocess.run(cmd, cwd=str(cwd), stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except FileNotFoundError:
        return Completed(status=127, stdout="", stderr=f"Command not found: {cmd[0]}")
    return Completed(status=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
