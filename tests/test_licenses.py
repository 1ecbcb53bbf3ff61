"""Tests for license resolution."""

from pathlib import Path

import pytest

from svcbuilder.errors import LicenseError
from svcbuilder.licenses import (
    UNLICENSED,
    comment_block,
    find_license,
    licensing_options,
    resolve_license,
    update_license_text,
    wrap,
    write_license,
)

AUTHOR = dict(author="Jane Doe", email="jane@example.com", project="user-service", homepage="https://example.com")


def test_find_license_is_case_insensitive() -> None:
    lic = find_license("mit")
    assert lic is not None
    assert lic.spdx_id == "MIT"
    assert find_license("NOT-A-LICENSE") is None


def test_licensing_options_start_with_unlicensed() -> None:
    options = licensing_options()
    assert options[0][0] == UNLICENSED
    assert ("Apache-2.0", "Apache License 2.0") in options


def test_update_license_text_replaces_first_occurrence_only() -> None:
    text = update_license_text(
        "[fullname] [fullname] [year] [email] [project] [project_url]",
        author="A",
        email="a@b.c",
        project="p",
        project_url="u",
        year=2020,
    )
    assert text == "A [fullname] 2020 a@b.c p u"


def test_resolve_mit() -> None:
    info = resolve_license("MIT", year=2024, **AUTHOR)

    assert info.tag == "MIT"
    assert info.name == "MIT License"
    assert "Copyright (c) 2024 Jane Doe" in info.text
    for token in ("[fullname]", "[year]"):
        assert token not in info.text
    assert info.text.endswith("SOFTWARE.\n")
    # no header in the table: generated notice, comment wrapped
    assert info.header.startswith("/*!\n * Copyright (c) 2024 Jane Doe <jane@example.com>\n")
    assert " * This software is licensed under MIT license." in info.header
    assert info.header.endswith("\n */")


def test_resolve_isc_fills_email_and_project() -> None:
    info = resolve_license("ISC", year=2024, **AUTHOR)

    assert "Copyright (c) 2024, Jane Doe <jane@example.com>" in info.text
    assert info.header.startswith("/*!\n * user-service\n")
    for token in ("[fullname]", "[email]", "[year]", "[project]"):
        assert token not in info.header


def test_resolve_apache_header() -> None:
    info = resolve_license("Apache-2.0", year=2024, **AUTHOR)
    assert " * Copyright 2024 Jane Doe" in info.header
    assert "Apache License" in info.text


def test_resolve_unknown_license() -> None:
    with pytest.raises(LicenseError, match="Unknown license"):
        resolve_license("WTFPL-9", **AUTHOR)


def test_resolve_unlicensed_with_default_does_not_ask() -> None:
    def choose() -> str:
        raise AssertionError("should not ask")

    info = resolve_license(UNLICENSED, has_default=True, choose=choose, year=2024, **AUTHOR)

    assert info.tag == UNLICENSED
    assert info.name == UNLICENSED
    assert info.text.startswith("Copyright (c) 2024 Jane Doe <jane@example.com>\n")
    assert "This software is private and is unlicensed." in info.text
    assert info.header.startswith("/*!\n * Copyright (c) 2024 Jane Doe")


def test_resolve_unlicensed_without_default_asks() -> None:
    asked = []

    def choose() -> str:
        asked.append(True)
        return "MIT"

    info = resolve_license(UNLICENSED, has_default=False, choose=choose, **AUTHOR)

    assert asked == [True]
    assert info.tag == "MIT"


def test_resolve_unlicensed_without_default_keeps_unlicensed_choice() -> None:
    info = resolve_license(UNLICENSED, has_default=False, choose=lambda: UNLICENSED, **AUTHOR)
    assert info.tag == UNLICENSED
    assert "private and is unlicensed" in info.text


def test_comment_block() -> None:
    assert comment_block("a\n\nb") == "/*!\n * a\n * \n * b\n */"


def test_wrap_long_lines() -> None:
    text = wrap("short\n" + "word " * 30 + "\n", width=40)
    lines = text.splitlines()
    assert lines[0] == "short"
    assert all(len(line) <= 40 for line in lines)
    assert text.endswith("\n")


def test_write_license_replaces_existing(tmp_path: Path) -> None:
    (tmp_path / "LICENSE").write_text("old")
    target = write_license(tmp_path, "new text\n")
    assert target.read_text() == "new text\n"


def test_resolve_unlicensed_any_case() -> None:
    info = resolve_license("unlicensed", has_default=True, **AUTHOR)
    assert info.tag == UNLICENSED
