"""Tests for name helpers and validators."""

import pytest

from svcbuilder.errors import InputError
from svcbuilder.validate import (
    camel_case,
    dashed,
    ensure_description,
    ensure_name,
    ensure_version,
    is_email,
    is_github_token,
    is_namespace,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("MyCoolService", "my-cool-service"),
        ("my cool_service", "my-cool-service"),
        ("  user-service ", "user-service"),
        ("Auth2Service", "auth2-service"),
    ],
)
def test_dashed(name: str, expected: str) -> None:
    assert dashed(name) == expected


def test_camel_case() -> None:
    assert camel_case("my-cool-service") == "MyCoolService"
    assert camel_case("MyCoolService") == "MyCoolService"
    assert camel_case("user") == "User"


def test_is_email() -> None:
    assert is_email("jane@example.com")
    assert not is_email("jane@example")
    assert not is_email("")
    assert not is_email(None)


def test_is_namespace() -> None:
    assert is_namespace("imqueue")
    assert is_namespace("my-org")
    assert not is_namespace("-org")
    assert not is_namespace("org-")
    assert not is_namespace("my--org")
    assert not is_namespace("my org")
    assert not is_namespace("a" * 40)


def test_is_github_token() -> None:
    assert is_github_token("0123456789abcdef0123456789abcdef01234567")
    assert is_github_token("ghp_" + "A" * 36)
    assert is_github_token("github_pat_" + "a1_" * 10)
    assert not is_github_token("not-a-token")
    assert not is_github_token("")


def test_ensure_name() -> None:
    assert ensure_name(" MyService ") == "my-service"
    with pytest.raises(InputError, match="Service name expected"):
        ensure_name("   ")
    for bad in ("!!!", "--"):
        with pytest.raises(InputError, match="is invalid"):
            ensure_name(bad)


def test_ensure_version() -> None:
    assert ensure_version("") == "1.0.0"
    assert ensure_version("2.1.0-rc.1") == "2.1.0-rc.1"
    with pytest.raises(InputError, match="valid semver"):
        ensure_version("1.0")


def test_ensure_description() -> None:
    assert ensure_description("", "MyService") == "my-service - IMQ based service"
    assert ensure_description("Does things", "MyService") == "Does things"
