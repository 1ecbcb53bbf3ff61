"""
update_version.py

Responsibility: the `service update-version` command.

For every service found under a root path run the release git flow:

    CHECKOUT -> PULL -> BUMP_VERSION -> PUSH

The flow for one service stops at the first failing step; the next service is
still processed. Nothing is retried or rolled back.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

import structlog

from svcbuilder import console
from svcbuilder.errors import InputError
from svcbuilder.manifest import is_service_dir
from svcbuilder.process import Completed, spawn

logger = structlog.get_logger()

DEFAULT_BRANCH = "master"
DEFAULT_NPM_VERSION = "prerelease"
NPM_VERSION_KINDS = ("major", "minor", "patch", "premajor", "preminor", "prepatch", "prerelease")

Runner = Callable[..., Completed]


class GitFlowStep(enum.Enum):
    CHECKOUT = "checkout"
    PULL = "pull"
    BUMP_VERSION = "bump-version"
    PUSH = "push"


@dataclass(frozen=True)
class StepResult:
    step: GitFlowStep
    ok: bool
    message: str = ""


@dataclass(frozen=True)
class GitFlowResult:
    path: Path
    steps: list[StepResult]

    @property
    def ok(self) -> bool:
        return len(self.steps) == len(GitFlowStep) and all(s.ok for s in self.steps)


def step_command(step: GitFlowStep, *, branch: str, version: str) -> tuple[str, list[str]]:
    """(progress message, command) for a git flow step."""
    if step is GitFlowStep.CHECKOUT:
        return f"Switching on branch {branch}...", ["git", "checkout", branch]
    if step is GitFlowStep.PULL:
        return "Execution git pull...", ["git", "pull"]
    if step is GitFlowStep.BUMP_VERSION:
        return f"Execute npm version {version}", ["npm", "version", version]
    return "Execution git push...", ["git", "push", "--follow-tags"]


def run_step(step: GitFlowStep, path: Path, *, branch: str, version: str, runner: Runner = spawn) -> StepResult:
    message, cmd = step_command(step, branch=branch, version=version)
    console.info(message)
    completed = runner(cmd, cwd=path)
    if completed.status != 0:
        return StepResult(step=step, ok=False, message=(completed.stderr or completed.stdout).strip())
    return StepResult(step=step, ok=True)


def run_git_flow(path: Path, *, branch: str = DEFAULT_BRANCH, version: str = DEFAULT_NPM_VERSION, runner: Runner = spawn) -> GitFlowResult:
    results: list[StepResult] = []
    for step in GitFlowStep:
        result = run_step(step, path, branch=branch, version=version, runner=runner)
        results.append(result)
        if not result.ok:
            logger.info("Git flow step failed", path=str(path), step=step.value)
            console.warning(result.message or f"{step.value} failed")
            break
    else:
        console.success("Done!")
    return GitFlowResult(path=path, steps=results)


def find_service_dirs(path: str | Path) -> list[Path]:
    """
    The root itself if it is a service, otherwise every immediate
    subdirectory that is one.
    """
    root = Path(path).expanduser().resolve()
    if not root.is_dir():
        raise InputError(f"Directory does not exist: {root}")

    if is_service_dir(root):
        return [root]

    return [child for child in sorted(root.iterdir()) if child.is_dir() and is_service_dir(child)]


def update_versions(
    paths: Iterable[Path],
    *,
    branch: str = DEFAULT_BRANCH,
    version: str = DEFAULT_NPM_VERSION,
    runner: Runner = spawn,
) -> list[GitFlowResult]:
    results = []
    for path in paths:
        console.info(f"\nService: {path}")
        results.append(run_git_flow(path, branch=branch, version=version, runner=runner))
    return results


def update_version(
    path: str | Path,
    branch: str = DEFAULT_BRANCH,
    version: str = DEFAULT_NPM_VERSION,
    runner: Runner = spawn,
) -> list[GitFlowResult]:
    folders = find_service_dirs(path)
    logger.info("Services found", root=str(path), count=len(folders))
    if not folders:
        console.warning(f"No services found under {path}")
    return update_versions(folders, branch=branch, version=version, runner=runner)
