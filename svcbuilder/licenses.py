"""
licenses.py

Responsibility: resolve license text and source headers for a generated service.

The license table is bundled with the package (`resources/licenses.yaml`).
UNLICENSED services get a generated proprietary notice instead.
"""

from __future__ import annotations

import datetime
import textwrap
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Callable

import structlog
import yaml

from svcbuilder.errors import LicenseError

logger = structlog.get_logger()

UNLICENSED = "UNLICENSED"
WRAP_WIDTH = 80


@dataclass(frozen=True)
class License:
    name: str
    spdx_id: str
    body: str
    header: str = ""


@dataclass(frozen=True)
class LicenseInfo:
    text: str
    header: str
    name: str
    tag: str


@lru_cache(maxsize=1)
def load_licenses() -> tuple[License, ...]:
    raw = resources.files("svcbuilder").joinpath("resources/licenses.yaml").read_text(encoding="utf-8")
    return tuple(
        License(
            name=item["name"],
            spdx_id=item["spdx_id"],
            body=item["body"],
            header=item.get("header") or "",
        )
        for item in yaml.safe_load(raw)
    )


def find_license(spdx_id: str) -> License | None:
    wanted = spdx_id.strip().lower()
    return next((lic for lic in load_licenses() if lic.spdx_id.lower() == wanted), None)


def licensing_options() -> list[tuple[str, str]]:
    """(id, display name) pairs offered when asking the user for a license."""
    options = [(UNLICENSED, "UNLICENSED (private, all rights reserved)")]
    options.extend((lic.spdx_id, lic.name) for lic in load_licenses())
    return options


def update_license_text(
    text: str,
    *,
    author: str,
    email: str,
    project: str,
    project_url: str,
    year: int | None = None,
) -> str:
    """
    Fill bracketed placeholders. Only the first occurrence of each token is replaced.
    """
    values = {
        "year": str(year or datetime.date.today().year),
        "fullname": author,
        "email": email,
        "project": project,
        "project_url": project_url,
    }
    for key, value in values.items():
        text = text.replace(f"[{key}]", value, 1)
    return text


def comment_block(text: str) -> str:
    lines = text.splitlines() or [""]
    return "/*!\n * " + "\n * ".join(lines) + "\n */"


def wrap(text: str, width: int = WRAP_WIDTH) -> str:
    """Wrap long lines, keeping existing line breaks and indentation."""
    out: list[str] = []
    for line in text.splitlines():
        if len(line) <= width:
            out.append(line)
            continue
        indent = line[: len(line) - len(line.lstrip())]
        out.extend(textwrap.wrap(line, width=width, subsequent_indent=indent, break_on_hyphens=False))
    return "\n".join(out) + ("\n" if text.endswith("\n") else "")


def unlicensed(author: str, email: str, year: int) -> LicenseInfo:
    notice = (
        f"Copyright (c) {year} {author} <{email}>\n"
        "\n"
        "This software is private and is unlicensed. Please, contact\n"
        "author for any licensing details."
    )
    return LicenseInfo(text=notice + "\n", header=comment_block(notice), name=UNLICENSED, tag=UNLICENSED)


def resolve_license(
    license_id: str,
    *,
    author: str,
    email: str,
    project: str,
    homepage: str = "",
    has_default: bool = True,
    choose: Callable[[], str] | None = None,
    year: int | None = None,
) -> LicenseInfo:
    """
    Resolve a license id (SPDX id or UNLICENSED) into text, header, name and tag.

    When the id is UNLICENSED and the user has no configured default license,
    `choose` is called to pick one interactively.
    """
    year = year or datetime.date.today().year
    license_id = (license_id or UNLICENSED).strip()
    if license_id.upper() == UNLICENSED:
        license_id = UNLICENSED

    if license_id == UNLICENSED and not has_default and choose is not None:
        license_id = choose() or UNLICENSED

    if license_id == UNLICENSED:
        return unlicensed(author, email, year)

    lic = find_license(license_id)
    if lic is None:
        raise LicenseError(f"Unknown license \"{license_id}\", expected SPDX id or {UNLICENSED}")

    fill = dict(author=author, email=email, project=project, project_url=homepage, year=year)
    text = update_license_text(lic.body + "\n", **fill)
    header = update_license_text(lic.header, **fill) or (
        f"Copyright (c) {year} {author} <{email}>\n"
        "\n"
        f"This software is licensed under {lic.spdx_id} license.\n"
        "Please, refer to LICENSE file in project's root directory for details."
    )
    logger.debug("License resolved", license=lic.spdx_id)
    return LicenseInfo(text=text, header=comment_block(header), name=lic.name, tag=lic.spdx_id)


def write_license(path: str | Path, text: str) -> Path:
    target = Path(path) / "LICENSE"
    try:
        target.unlink()
    except FileNotFoundError:
        pass
    target.write_text(wrap(text), encoding="utf-8")
    return target
