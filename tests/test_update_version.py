"""Tests for the update-version git flow."""

from pathlib import Path

import pytest

from svcbuilder.errors import InputError
from svcbuilder.manifest import MANIFEST_FILE, ServiceManifest, write_manifest
from svcbuilder.process import Completed
from svcbuilder.update_version import (
    GitFlowStep,
    find_service_dirs,
    run_git_flow,
    update_version,
    update_versions,
)


class RecordingRunner:
    """Fake process runner; fails the given commands for the given directories."""

    def __init__(self, failures: dict[tuple[str, str], str] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[tuple[str, list[str]]] = []

    def __call__(self, cmd: list[str], *, cwd: Path) -> Completed:
        self.calls.append((Path(cwd).name, cmd))
        error = self.failures.get((Path(cwd).name, cmd[1]))
        if error is not None:
            return Completed(status=1, stdout="", stderr=error)
        return Completed(status=0, stdout="", stderr="")

    def commands_for(self, name: str) -> list[list[str]]:
        return [cmd for cwd, cmd in self.calls if cwd == name]


def _service(path: Path) -> Path:
    path.mkdir(parents=True)
    write_manifest(path, ServiceManifest(name=path.name, class_name="X", version="1.0.0", license="MIT", template="default"))
    return path


def test_full_flow_runs_all_steps(tmp_path: Path) -> None:
    runner = RecordingRunner()

    result = run_git_flow(tmp_path, branch="develop", version="patch", runner=runner)

    assert result.ok
    assert [s.step for s in result.steps] == list(GitFlowStep)
    assert [cmd for _, cmd in runner.calls] == [
        ["git", "checkout", "develop"],
        ["git", "pull"],
        ["npm", "version", "patch"],
        ["git", "push", "--follow-tags"],
    ]


def test_checkout_failure_stops_flow_and_next_service_still_runs(tmp_path: Path) -> None:
    a = _service(tmp_path / "a-service")
    b = _service(tmp_path / "b-service")
    runner = RecordingRunner({("a-service", "checkout"): "error: pathspec 'master' did not match"})

    results = update_versions([a, b], runner=runner)

    assert runner.commands_for("a-service") == [["git", "checkout", "master"]]
    assert results[0].steps[-1].step is GitFlowStep.CHECKOUT
    assert not results[0].ok
    assert "pathspec" in results[0].steps[-1].message
    assert len(runner.commands_for("b-service")) == 4
    assert results[1].ok


def test_bump_failure_skips_push(tmp_path: Path) -> None:
    runner = RecordingRunner({(tmp_path.name, "version"): "npm ERR! Git working directory not clean."})

    result = run_git_flow(tmp_path, runner=runner)

    assert [s.step for s in result.steps] == [GitFlowStep.CHECKOUT, GitFlowStep.PULL, GitFlowStep.BUMP_VERSION]
    assert ["git", "push", "--follow-tags"] not in [cmd for _, cmd in runner.calls]


def test_find_service_dirs_root_is_service(tmp_path: Path) -> None:
    root = _service(tmp_path / "svc")
    _service(root / "nested")
    assert find_service_dirs(root) == [root.resolve()]


def test_find_service_dirs_children(tmp_path: Path) -> None:
    a = _service(tmp_path / "a")
    b = _service(tmp_path / "b")
    (tmp_path / "not-a-service").mkdir()
    (tmp_path / "file.txt").write_text("x")
    other = tmp_path / "other-base"
    other.mkdir()
    (other / MANIFEST_FILE).write_text("base: SomethingElse\n")
    broken = tmp_path / "broken"
    broken.mkdir()
    (broken / MANIFEST_FILE).write_text("base: [unclosed\n")

    assert find_service_dirs(tmp_path) == [a.resolve(), b.resolve()]


def test_find_service_dirs_missing(tmp_path: Path) -> None:
    with pytest.raises(InputError, match="does not exist"):
        find_service_dirs(tmp_path / "missing")


def test_update_version_processes_discovered_services(tmp_path: Path) -> None:
    _service(tmp_path / "svc")
    (tmp_path / "docs").mkdir()
    runner = RecordingRunner()

    results = update_version(tmp_path, "main", "minor", runner=runner)

    assert [r.path.name for r in results] == ["svc"]
    assert runner.commands_for("svc")[0] == ["git", "checkout", "main"]
    assert runner.commands_for("svc")[2] == ["npm", "version", "minor"]
    assert runner.commands_for("docs") == []
