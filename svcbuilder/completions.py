"""
completions.py

Responsibility: install / remove the bash (or zsh via bashcompinit) completion
script for the CLI in the user's shell rc file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping, Sequence

import structlog

from svcbuilder import console
from svcbuilder.renderer import render_resource

logger = structlog.get_logger()


def _begin_marker(program: str) -> str:
    return f"###-begin-{program}-completions-###"


def _end_marker(program: str) -> str:
    return f"###-end-{program}-completions-###"


def is_zsh(environ: Mapping[str, str] | None = None) -> bool:
    environ = os.environ if environ is None else environ
    return any(key.startswith("ZSH") for key in environ)


def rc_file(zsh: bool, home: Path | None = None) -> Path:
    return (home or Path.home()) / (".zshrc" if zsh else ".bashrc")


def completion_script(program: str, commands: Mapping[str, Sequence[str]], zsh: bool = False) -> str:
    return render_resource(
        "completion.sh.j2",
        program=program,
        function_name=re.sub(r"\W", "_", program),
        commands=commands,
        zsh=zsh,
    )


def enable(program: str, commands: Mapping[str, Sequence[str]], *, zsh: bool | None = None, home: Path | None = None) -> bool:
    """
    Append the completion script to the rc file. Returns False if it was
    already there.
    """
    zsh = is_zsh() if zsh is None else zsh
    rc = rc_file(zsh, home)
    text = rc.read_text(encoding="utf-8") if rc.exists() else ""

    if _begin_marker(program) in text:
        console.warning(f"Completion script already exists in your {rc}.")
        console.info(f"If it does not work, please try one of:\n\n  1. Reload your shell\n  2. Run source {rc}\n")
        return False

    with open(rc, "a", encoding="utf-8") as f:
        f.write("\n" + completion_script(program, commands, zsh))
    logger.info("Completion script added", rc_file=str(rc))
    console.success(f"Completion script added to {rc}")
    console.info(f"To have these changes to take effect, please, run:\n\n  $ source {rc}\n")
    return True


def disable(program: str, *, zsh: bool | None = None, home: Path | None = None) -> bool:
    """Remove the completion script block. Returns False if none was found."""
    zsh = is_zsh() if zsh is None else zsh
    rc = rc_file(zsh, home)
    if not rc.exists():
        return False

    text = rc.read_text(encoding="utf-8")
    rx = re.compile(
        r"\n?" + re.escape(_begin_marker(program)) + r"[\s\S]*?" + re.escape(_end_marker(program)) + r"\n?",
    )
    cleaned, count = rx.subn("\n", text)
    if not count:
        console.warning(f"No completion script found in {rc}.")
        return False

    rc.write_text(cleaned, encoding="utf-8")
    console.success(f"Completion script removed from {rc}")
    return True
