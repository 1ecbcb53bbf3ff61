"""Tests for template copying and tag substitution."""

from pathlib import Path

import pytest

from svcbuilder.errors import TemplateError
from svcbuilder.renderer import compile_template, compile_template_text, copy_template, render_resource


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    root = tmp_path / "template"
    (root / "src" / "nested").mkdir(parents=True)
    (root / "package.json").write_text('{"name": "%SERVICE_NAME", "version": "%SERVICE_VERSION"}\n')
    (root / "src" / "index.ts").write_text("// %SERVICE_NAME by %AUTHOR\n")
    (root / "src" / "nested" / "README.md").write_text("%SERVICE_NAME %SERVICE_NAME\n")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe%SERVICE_NAME")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/master\n")
    return root


def test_compile_template_text_replaces_every_occurrence() -> None:
    text = compile_template_text("%A-%A-%B", {"A": "x", "B": 1})
    assert text == "x-x-1"


def test_compile_template_text_leaves_unknown_tags() -> None:
    assert compile_template_text("%A %UNKNOWN", {"A": "x"}) == "x %UNKNOWN"


def test_compile_template_text_prefix_tags_apply_in_insertion_order() -> None:
    # A shorter tag applied first also matches inside the longer token.
    assert compile_template_text("%NAME_FULL", {"NAME": "a", "NAME_FULL": "b"}) == "a_FULL"
    assert compile_template_text("%NAME_FULL", {"NAME_FULL": "b", "NAME": "a"}) == "b"


def test_compile_template_is_idempotent_when_values_have_no_tags(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("%NAME is %VERSION\n")
    tags = {"NAME": "svc", "VERSION": "1.0.0"}

    compile_template(tmp_path, tags)
    first = (tmp_path / "a.txt").read_text()
    compile_template(tmp_path, tags)

    assert first == "svc is 1.0.0\n"
    assert (tmp_path / "a.txt").read_text() == first


def test_compile_template_is_not_idempotent_when_value_contains_a_tag(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("%VERSION %NAME\n")
    tags = {"VERSION": "1.0.0", "NAME": "%VERSION"}

    compile_template(tmp_path, tags)
    first = (tmp_path / "a.txt").read_text()
    compile_template(tmp_path, tags)

    assert first == "1.0.0 %VERSION\n"
    assert (tmp_path / "a.txt").read_text() == "1.0.0 1.0.0\n"


def test_compile_template_walks_tree_and_skips_binary(template_dir: Path) -> None:
    png = (template_dir / "logo.png").read_bytes()

    result = compile_template(template_dir, {"SERVICE_NAME": "svc", "SERVICE_VERSION": "1.2.3", "AUTHOR": "me"})

    assert (template_dir / "package.json").read_text() == '{"name": "svc", "version": "1.2.3"}\n'
    assert (template_dir / "src" / "index.ts").read_text() == "// svc by me\n"
    assert (template_dir / "src" / "nested" / "README.md").read_text() == "svc svc\n"
    assert (template_dir / "logo.png").read_bytes() == png
    assert result.skipped_files == 1


def test_compile_template_does_not_create_or_delete_files(template_dir: Path) -> None:
    before = sorted(p.relative_to(template_dir) for p in template_dir.rglob("*"))
    compile_template(template_dir, {"SERVICE_NAME": "svc"})
    after = sorted(p.relative_to(template_dir) for p in template_dir.rglob("*"))
    assert before == after


def test_copy_template_skips_git_metadata(template_dir: Path, tmp_path: Path) -> None:
    dest = tmp_path / "out"
    copy_template(template_dir, dest)

    assert (dest / "package.json").exists()
    assert (dest / "src" / "nested" / "README.md").exists()
    assert not (dest / ".git").exists()


def test_copy_template_missing_dir(tmp_path: Path) -> None:
    with pytest.raises(TemplateError, match="Template directory not found"):
        copy_template(tmp_path / "nope", tmp_path / "out")


def test_render_resource_service_file() -> None:
    text = render_resource("service.ts.j2", license_header="/*!\n * header\n */", class_name="UserService")
    assert text.startswith("/*!\n * header\n */\n")
    assert "export class UserService extends IMQService {" in text


def test_render_resource_missing_variable() -> None:
    with pytest.raises(TemplateError):
        render_resource("service.ts.j2", class_name="UserService")
