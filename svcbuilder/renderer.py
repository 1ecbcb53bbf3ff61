"""
renderer.py

Responsibility: copy a template directory and fill its `%TAG` placeholders.

Rules:
- Walk template files in sorted order so output does not depend on the filesystem.
- Placeholders are literal `%NAME` tokens, replaced in tag insertion order.
  There is no escaping: a tag whose name is a prefix of a longer tag name
  will also match inside the longer token, so order tags longest first when
  that matters.
- Files are rewritten in place; nothing is created or deleted by `compile_template`.
- Non-text/binary files are left untouched.

Bundled text resources (service class file, shell completion script) are
Jinja2 templates and are rendered with `render_resource`.

This module intentionally does NOT know about GitHub, git, or CLI parsing.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import structlog
from jinja2 import Environment, PackageLoader, StrictUndefined

from svcbuilder.errors import TemplateError

logger = structlog.get_logger()

TAG_PREFIX = "%"

_resources = Environment(
    loader=PackageLoader("svcbuilder", "resources"),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class CompileResult:
    compiled_files: int
    skipped_files: int


def _read_text(path: Path) -> str | None:
    """
    Return the file as UTF-8 text, or None if it is binary.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return None


def _iter_files(root: Path) -> list[Path]:
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in filenames:
            files.append(Path(dirpath) / name)
    files.sort(key=lambda p: str(p.relative_to(root)).replace(os.sep, "/"))
    return files


def compile_template_text(text: str, tags: Mapping[str, object]) -> str:
    for tag, value in tags.items():
        text = text.replace(f"{TAG_PREFIX}{tag}", str(value))
    return text


def compile_template(path: str | Path, tags: Mapping[str, object]) -> CompileResult:
    """
    Replace every `%TAG` occurrence in every regular file under `path`.

    Filesystem errors propagate and abort the walk.
    """
    root = Path(path)
    compiled = 0
    skipped = 0

    for file_path in _iter_files(root):
        text = _read_text(file_path)
        if text is None:
            skipped += 1
            continue
        file_path.write_text(compile_template_text(text, tags), encoding="utf-8")
        compiled += 1

    logger.debug("Template compiled", path=str(root), compiled=compiled, skipped=skipped)
    return CompileResult(compiled_files=compiled, skipped_files=skipped)


def copy_template(template_dir: str | Path, destination_dir: str | Path) -> None:
    """
    Recursively copy a template into destination_dir, skipping VCS metadata.

    The destination may already exist (e.g. when generating into ".").
    """
    src = Path(template_dir).resolve()
    dst = Path(destination_dir).resolve()

    if not src.is_dir():
        raise TemplateError(f"Template directory not found: {src}")

    shutil.copytree(src, dst, ignore=shutil.ignore_patterns(".git"), dirs_exist_ok=True)
    logger.debug("Template copied", source=str(src), destination=str(dst))


def render_resource(name: str, **context: object) -> str:
    try:
        return _resources.get_template(name).render(**context)
    except Exception as e:  # noqa: BLE001 - surface as TemplateError
        raise TemplateError(f"Failed rendering resource: {name}") from e
