"""
templates.py

Responsibility: find the service template to generate from.

A template reference is one of:
- a filesystem directory
- a git URL (cloned shallowly into a scratch directory)
- a template name, looked up in the user's registry directory and then
  in the templates bundled with the package
"""

from __future__ import annotations

import re
from importlib import resources
from pathlib import Path

import structlog

from svcbuilder.errors import TemplateError
from svcbuilder.process import require_command, run

logger = structlog.get_logger()

DEFAULT_TEMPLATE = "default"

RX_GIT_URL = re.compile(r"^(?:git@[^:]+:.+|ssh://.+|git://.+|https?://.+\.git/?)$")


def default_registry_dir() -> Path:
    return Path.home() / ".svcbuilder" / "templates"


def bundled_templates_dir() -> Path:
    return Path(str(resources.files("svcbuilder").joinpath("resources/templates")))


def is_git_url(template: str) -> bool:
    return bool(RX_GIT_URL.match(template.strip()))


def _template_dirs(root: Path) -> dict[str, Path]:
    if not root.is_dir():
        return {}
    return {p.name: p for p in sorted(root.iterdir()) if p.is_dir() and not p.name.startswith(".")}


def load_templates(registry_dir: str | Path | None = None) -> dict[str, Path]:
    """
    Return name -> directory for every known template.

    Registry templates shadow bundled ones with the same name.
    """
    templates = _template_dirs(bundled_templates_dir())
    templates.update(_template_dirs(Path(registry_dir) if registry_dir else default_registry_dir()))
    return templates


def load_template(url: str, destination: Path) -> Path:
    """Clone a template repository into destination/template."""
    require_command("git", "Git command expected, but is not installed!")
    target = destination / "template"
    logger.info("Cloning template", url=url, target=str(target))
    run(["git", "clone", "--depth", "1", url, str(target)], cwd=destination)
    return target


def ensure_template(template: str, *, scratch_dir: Path, registry_dir: str | Path | None = None) -> Path:
    """
    Resolve a template reference into a local directory.

    `scratch_dir` receives git clones; the caller owns its lifetime.
    """
    template = (template or DEFAULT_TEMPLATE).strip()

    path = Path(template).expanduser()
    if path.is_dir():
        return path.resolve()

    if is_git_url(template):
        return load_template(template, scratch_dir)

    templates = load_templates(registry_dir)
    if template not in templates:
        raise TemplateError(f"No such template exists - \"{template}\"")
    return templates[template]
