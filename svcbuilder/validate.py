"""
validate.py

Responsibility: pure name derivation and input validation helpers.

Nothing in here prompts the user. Interactive fallbacks are layered on top by
`console.resolve`, which takes one of these predicates as its `valid` argument.
"""

from __future__ import annotations

import re

import semver

from svcbuilder.errors import InputError

DEFAULT_VERSION = "1.0.0"

RX_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
RX_NAMESPACE = re.compile(r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){0,38}$", re.IGNORECASE)
RX_GITHUB_TOKEN = re.compile(
    r"^(?:[0-9a-f]{40}|(?:ghp|gho|ghu|ghs|ghr)_[A-Za-z0-9]{36,255}|github_pat_[A-Za-z0-9_]{22,255})$"
)

_RX_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_RX_SEPARATORS = re.compile(r"[^a-zA-Z0-9]+")


def dashed(name: str) -> str:
    """
    Convert any name into dash-separated lower case:
    "MyCoolService" / "my cool_service" -> "my-cool-service".
    """
    name = _RX_WORD_BOUNDARY.sub(r"\1-\2", name.strip())
    return _RX_SEPARATORS.sub("-", name).strip("-").lower()


def camel_case(name: str) -> str:
    """
    Convert a name into an upper camel case class name:
    "my-cool-service" -> "MyCoolService".
    """
    return "".join(part[:1].upper() + part[1:] for part in dashed(name).split("-") if part)


def is_email(value: str | None) -> bool:
    return bool(value) and bool(RX_EMAIL.match(value.strip()))


def is_namespace(value: str | None) -> bool:
    return bool(value) and bool(RX_NAMESPACE.match(value.strip()))


def is_github_token(value: str | None) -> bool:
    return bool(value) and bool(RX_GITHUB_TOKEN.match(value.strip()))


def is_semver(value: str) -> bool:
    return semver.Version.is_valid(value)


def ensure_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise InputError("Service name expected, but was not given!")
    result = dashed(name)
    if not result:
        raise InputError(f"Given service name \"{name}\" is invalid!")
    return result


def ensure_version(version: str | None) -> str:
    version = (version or "").strip() or DEFAULT_VERSION
    if not is_semver(version):
        raise InputError("Given version is invalid, please, provide valid semver format!")
    return version


def ensure_description(description: str | None, name: str) -> str:
    return (description or "").strip() or f"{dashed(name)} - IMQ based service"
