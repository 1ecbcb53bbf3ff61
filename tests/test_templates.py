"""Tests for template lookup."""

from pathlib import Path
from unittest.mock import patch

import pytest

from svcbuilder.errors import TemplateError
from svcbuilder.templates import bundled_templates_dir, ensure_template, is_git_url, load_templates


def test_bundled_default_template_exists() -> None:
    default = bundled_templates_dir() / "default"
    assert (default / "package.json").is_file()
    assert (default / ".travis.yml").is_file()


@pytest.mark.parametrize(
    "value, expected",
    [
        ("git@github.com:imqueue/templates.git", True),
        ("ssh://git@example.com/t.git", True),
        ("https://github.com/imqueue/templates.git", True),
        ("https://example.com/page", False),
        ("default", False),
        ("./templates/default", False),
    ],
)
def test_is_git_url(value: str, expected: bool) -> None:
    assert is_git_url(value) is expected


def test_load_templates_registry_shadows_bundled(tmp_path: Path) -> None:
    (tmp_path / "default").mkdir()
    (tmp_path / "grpc").mkdir()
    (tmp_path / ".hidden").mkdir()

    templates = load_templates(tmp_path)

    assert templates["default"] == tmp_path / "default"
    assert templates["grpc"] == tmp_path / "grpc"
    assert ".hidden" not in templates


def test_ensure_template_by_path(tmp_path: Path) -> None:
    tpl = tmp_path / "my-template"
    tpl.mkdir()
    assert ensure_template(str(tpl), scratch_dir=tmp_path) == tpl.resolve()


def test_ensure_template_by_name(tmp_path: Path) -> None:
    path = ensure_template("default", scratch_dir=tmp_path, registry_dir=tmp_path / "registry")
    assert path == bundled_templates_dir() / "default"


def test_ensure_template_unknown_name(tmp_path: Path) -> None:
    with pytest.raises(TemplateError, match="No such template exists"):
        ensure_template("nope", scratch_dir=tmp_path, registry_dir=tmp_path)


def test_ensure_template_git_url_clones(tmp_path: Path) -> None:
    with patch("svcbuilder.templates.require_command"), patch("svcbuilder.templates.run") as run:
        path = ensure_template("git@github.com:imqueue/tpl.git", scratch_dir=tmp_path)

    assert path == tmp_path / "template"
    run.assert_called_once_with(
        ["git", "clone", "--depth", "1", "git@github.com:imqueue/tpl.git", str(tmp_path / "template")],
        cwd=tmp_path,
    )
