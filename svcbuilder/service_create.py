"""
service_create.py

Responsibility: the `service create` command.

High-level flow:
1) Resolve the template and copy it into the target path
2) Collect tags (name, version, author, license...) and fill `%TAG` placeholders
3) (Optional) Create the GitHub repository
4) Fill CI tags; with docker enabled also encrypt DockerHub secrets for Travis
   and enable Travis builds, otherwise strip the docker files
5) (Optional) npm install
6) (Only when the GitHub repo was created) git init, commit, push

Every step that may need user input takes it from the options first, then the
loaded config, and only then asks through the context's prompter.
"""

from __future__ import annotations

import getpass
import json
import os
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import structlog

from svcbuilder import console
from svcbuilder.config import Config
from svcbuilder.console import Prompter, resolve
from svcbuilder.errors import InputError, TemplateError, TravisError
from svcbuilder.github_client import GitHubClient, create_repository
from svcbuilder.licenses import UNLICENSED, licensing_options, resolve_license, write_license
from svcbuilder.manifest import ServiceManifest, write_manifest
from svcbuilder.node import NodeVersionCatalog, parse_node_tags, to_travis_tags
from svcbuilder.process import require_command, run
from svcbuilder.renderer import compile_template, compile_template_text, copy_template, render_resource
from svcbuilder.templates import DEFAULT_TEMPLATE, ensure_template
from svcbuilder.travis import TravisClient, enable_builds, travis_encrypt
from svcbuilder.validate import (
    camel_case,
    ensure_description,
    ensure_name,
    ensure_version,
    is_email,
    is_github_token,
    is_namespace,
)

logger = structlog.get_logger()

DEFAULT_NODE_TAGS = ("stable", "latest")
RX_TRAVIS_SERVICES = re.compile(r"services:[\s\S]*$")
DOCKER_FILES = ("Dockerfile", ".dockerignore")
PACKAGE_FILE = "package.json"
JSON_STRING_TAGS = (
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "SERVICE_DESCRIPTION",
    "SERVICE_AUTHOR_NAME",
    "SERVICE_AUTHOR_EMAIL",
    "LICENSE_TAG",
)


@dataclass
class CreateOptions:
    """Everything `service create` accepts on the command line."""

    name: str
    path: str = "."
    author: str = ""
    email: str = ""
    use_git: bool = False
    github_namespace: str = ""
    no_install: bool = False
    service_version: str = "1.0.0"
    homepage: str = ""
    bugs_url: str = ""
    license: str = UNLICENSED
    template: str = DEFAULT_TEMPLATE
    description: str = ""
    node_versions: list[str] = field(default_factory=list)
    dockerize: bool = False
    node_docker_tag: str = ""
    docker_namespace: str = ""
    github_token: str = ""
    private: bool = False


@dataclass
class CreateContext:
    """Per-invocation state threaded through every create step."""

    options: CreateOptions
    config: Config
    prompter: Prompter = field(default_factory=Prompter)
    node: NodeVersionCatalog = field(default_factory=NodeVersionCatalog)
    github_factory: Callable[[str], GitHubClient] = GitHubClient
    travis_factory: Callable[[bool], TravisClient] = TravisClient
    repo_initialized: bool = False

    @property
    def target(self) -> Path:
        return Path(self.options.path).expanduser().resolve()

    @property
    def name(self) -> str:
        return ensure_name(self.options.name)

    @property
    def owner(self) -> str:
        return (self.options.github_namespace or "").strip()


def _is_cwd(path: str) -> bool:
    return path in (".", "./") or Path(path).expanduser().resolve() == Path.cwd().resolve()


def _ensure_empty_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    if any(path.iterdir()):
        raise InputError(f"Target directory is not empty: {path}")


def ensure_author_name(ctx: CreateContext) -> str:
    name = (ctx.options.author or "").strip()
    if not name:
        fallback = getpass.getuser()
        name = ctx.prompter.ask("Enter author's name", default=fallback) or fallback
        ctx.options.author = name
    return name


def ensure_author_email(ctx: CreateContext) -> str:
    email = resolve(
        ctx.options.email,
        valid=is_email,
        ask=lambda: ctx.prompter.ask("Enter author's email"),
        error=InputError("Author's email is required, but was not given!"),
    )
    ctx.options.email = email
    return email


def service_homepage(owner: str, name: str, homepage: str) -> str:
    url = (homepage or "").strip()
    if not url and owner:
        url = f"https://github.com/{owner}/{name}"
    return url


def service_bugs_url(owner: str, name: str, bugs_url: str) -> str:
    url = (bugs_url or "").strip()
    if not url and owner:
        url = f"https://github.com/{owner}/{name}/issues"
    return url


def _json_fragment(key: str, value: Any) -> str:
    """A `"key": value,` package.json fragment, on its own line."""
    body = json.dumps(value, indent=2).replace("\n", "\n  ")
    return f'\n  "{key}": {body},'


def build_tags(ctx: CreateContext, path: Path) -> dict[str, str]:
    opts = ctx.options
    name = ctx.name
    author = ensure_author_name(ctx)
    email = ensure_author_email(ctx)
    homepage = service_homepage(ctx.owner, name, opts.homepage)
    bugs = service_bugs_url(ctx.owner, name, opts.bugs_url)

    license_info = resolve_license(
        opts.license,
        author=author,
        email=email,
        project=name,
        homepage=homepage,
        has_default=ctx.config.has("license"),
        choose=lambda: ctx.prompter.choose("Choose a license for this service", licensing_options(), UNLICENSED),
    )
    write_license(path, license_info.text)

    repo = {"type": "git", "url": f"git@github.com:{ctx.owner}/{name}.git"} if ctx.owner else None

    return {
        "SERVICE_NAME": name,
        "SERVICE_CLASS_NAME": camel_case(name),
        "SERVICE_VERSION": ensure_version(opts.service_version),
        "SERVICE_DESCRIPTION": ensure_description(opts.description, name),
        "SERVICE_REPO": _json_fragment("repository", repo) if repo else "",
        "SERVICE_BUGS": _json_fragment("bugs", {"url": bugs}) if bugs else "",
        "SERVICE_HOMEPAGE": _json_fragment("homepage", homepage) if homepage else "",
        "SERVICE_AUTHOR_NAME": author,
        "SERVICE_AUTHOR_EMAIL": f"<{email}>",
        "LICENSE_HEADER": license_info.header,
        "LICENSE_TEXT": license_info.text,
        "LICENSE_NAME": license_info.name,
        "LICENSE_TAG": license_info.tag,
    }


def read_package_file(path: Path) -> dict[str, Any]:
    target = path / PACKAGE_FILE
    try:
        return json.loads(target.read_text(encoding="utf-8"))
    except ValueError as e:
        raise TemplateError(f"Generated {PACKAGE_FILE} is not valid JSON: {e}") from e


def compile_package_file(path: Path, tags: dict[str, str]) -> None:
    """
    Fill package.json first, with string values JSON-escaped, so the
    general pass finds no tags left in it.
    """
    target = path / PACKAGE_FILE
    if not target.is_file():
        return
    escaped = {**tags, **{k: json.dumps(tags[k])[1:-1] for k in JSON_STRING_TAGS if k in tags}}
    target.write_text(compile_template_text(target.read_text(encoding="utf-8"), escaped), encoding="utf-8")
    read_package_file(path)


def create_service_file(path: Path, tags: dict[str, str]) -> Path:
    console.info("Creating main service file...")
    target = path / "src" / f"{tags['SERVICE_CLASS_NAME']}.ts"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        render_resource(
            "service.ts.j2",
            license_header=tags["LICENSE_HEADER"],
            class_name=tags["SERVICE_CLASS_NAME"],
        ),
        encoding="utf-8",
    )
    return target


def make_service(ctx: CreateContext, path: Path) -> dict[str, str]:
    tags = build_tags(ctx, path)
    compile_package_file(path, tags)
    compile_template(path, tags)
    create_service_file(path, tags)
    write_manifest(
        path,
        ServiceManifest(
            name=tags["SERVICE_NAME"],
            class_name=tags["SERVICE_CLASS_NAME"],
            version=tags["SERVICE_VERSION"],
            license=tags["LICENSE_TAG"],
            template=ctx.options.template,
        ),
    )
    return tags


def build_from_template(ctx: CreateContext) -> dict[str, str]:
    path = ctx.target
    path.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(prefix="svcbuilder-") as scratch:
        template = ensure_template(
            ctx.options.template,
            scratch_dir=Path(scratch),
            registry_dir=ctx.config.get("templatesDir"),
        )
        console.info(f"Building service from template \"{template}\"...")
        copy_template(template, path)

    return make_service(ctx, path)


def ensure_git_repo(ctx: CreateContext) -> str:
    owner = resolve(
        ctx.options.github_namespace,
        valid=is_namespace,
        ask=lambda: ctx.prompter.ask("Enter GitHub owner (user name or organization)"),
        error=InputError(f"Given github namespace \"{ctx.options.github_namespace}\" is invalid!"),
    )
    ctx.options.github_namespace = owner
    return f"{owner}/{ctx.name}"


def ensure_github_token(ctx: CreateContext) -> str:
    token = resolve(
        ctx.options.github_token or ctx.config.get("gitHubAuthToken", ""),
        valid=is_github_token,
        ask=lambda: ctx.prompter.ask("Enter your GitHub auth token", password=True),
        error=InputError("Given GitHub auth token is invalid!"),
    )
    ctx.options.github_token = token
    ctx.config.remember("gitHubAuthToken", token)
    return token


def _flag(ctx: CreateContext, value: bool, key: str, question: str) -> bool:
    """
    A boolean option: CLI flag, then config value, then a yes/no question.
    """
    if value:
        return True
    if ctx.config.has(key):
        return bool(ctx.config.get(key))
    answer = ctx.prompter.confirm(question, default=True)
    ctx.config.remember(key, answer)
    return answer


def create_git_repo(ctx: CreateContext) -> None:
    use_git = _flag(ctx, ctx.options.use_git, "useGit", "Would you like to enable automatic GitHub integration for this service?")
    if not use_git:
        ctx.options.dockerize = False
        ctx.config.remember("useDocker", False)
        return

    url = ensure_git_repo(ctx)
    token = ensure_github_token(ctx)
    private = _flag(ctx, ctx.options.private, "gitRepoPrivate", "Should be service created on GitHub as private repo?")
    ctx.options.private = private

    console.info("Creating github repository...")
    create_repository(
        url,
        token,
        ensure_description(ctx.options.description, ctx.name),
        private,
        client=ctx.github_factory(token),
    )
    ctx.repo_initialized = True


def ensure_node_tags(ctx: CreateContext) -> list[str]:
    tags = parse_node_tags(ctx.options.node_versions)
    if not tags:
        answer = ctx.prompter.ask(
            "Enter node version(s) for CI builds (comma-separated if multiple)",
            default=", ".join(DEFAULT_NODE_TAGS),
        )
        tags = parse_node_tags(answer) or list(DEFAULT_NODE_TAGS)
    ctx.options.node_versions = tags
    return tags


def ensure_docker_namespace(ctx: CreateContext) -> str:
    ns = (ctx.options.docker_namespace or "").strip()
    dockerize = _flag(ctx, ctx.options.dockerize, "useDocker", "Would you like to dockerize your service?")
    ctx.options.dockerize = dockerize

    if dockerize and not is_namespace(ns):
        ns = ctx.prompter.ask("Enter DockerHub namespace")
        if not is_namespace(ns):
            raise InputError("Given DockerHub namespace is invalid!")
        ctx.options.docker_namespace = ns
        ctx.config.remember("dockerHubNamespace", ns)

    return ns if dockerize else ""


def ensure_docker_tag(ctx: CreateContext) -> str:
    tag = (ctx.options.node_docker_tag or "").strip()
    if tag:
        return tag

    version = ctx.node.resolve(ensure_node_tags(ctx)[0])
    if not version:
        raise InputError("Invalid node version specified!")
    return version


def _ask_secret(ctx: CreateContext, key: str, question: str, password: bool = False) -> str:
    value = (ctx.config.get(key) or "").strip()
    if value:
        return value
    value = ctx.prompter.ask(question, password=password)
    if not value:
        raise InputError(f"{question.rstrip(':')} required, but was not given!")
    return value


def ensure_docker_secrets(ctx: CreateContext) -> list[str]:
    owner = ctx.owner
    token = ctx.options.github_token or ctx.config.get("gitHubAuthToken", "")

    if not owner:
        raise InputError("GitHub namespace required, but is empty!")
    if not token:
        raise InputError("Github auth token required, but was not given!")

    user = _ask_secret(ctx, "dockerHubUser", "DockerHub user")
    password = _ask_secret(ctx, "dockerHubPassword", "DockerHub password", password=True)
    repo = f"{owner}/{ctx.name}"

    console.info("Encrypting secrets...")
    client = ctx.travis_factory(True)
    return [
        travis_encrypt(repo, f'DOCKER_USER="{user}"', token, client=client),
        travis_encrypt(repo, f'DOCKER_PASS="{password}"', token, client=client),
    ]


def strip_dockerization(path: Path) -> None:
    travis = path / ".travis.yml"
    if travis.exists():
        travis.write_text(RX_TRAVIS_SERVICES.sub("", travis.read_text(encoding="utf-8")), encoding="utf-8")

    for name in DOCKER_FILES:
        target = path / name
        if target.exists():
            target.unlink()


def build_docker_ci(ctx: CreateContext) -> None:
    path = ctx.target
    dockerize = False
    if ctx.repo_initialized:
        dockerize = bool(ensure_docker_namespace(ctx))

    tags = {"TRAVIS_NODE_TAG": "\n".join(f"- {t}" for t in to_travis_tags(ensure_node_tags(ctx)))}

    if not dockerize:
        strip_dockerization(path)
    else:
        console.info("Building docker <-> CI integration...")
        tags["DOCKER_NAMESPACE"] = ctx.options.docker_namespace
        tags["NODE_DOCKER_TAG"] = ensure_docker_tag(ctx)
        tags["DOCKER_SECRETS"] = "\n  ".join(f'- secure: "{s}"' for s in ensure_docker_secrets(ctx))

    console.info("Updating docker and CI configs...")
    compile_template(path, tags)

    if not ctx.repo_initialized:
        return

    console.info("Enabling travis builds...")
    try:
        enabled = enable_builds(
            ctx.owner,
            ctx.name,
            ctx.options.github_token,
            ctx.options.private,
            client=ctx.travis_factory(ctx.options.private),
        )
    except TravisError as e:
        logger.warning("Enabling travis builds failed", error=str(e))
        enabled = False

    if not enabled:
        console.warning(
            "There was a problem enabling builds for this service. Please "
            "go to https://travis-ci.com/ and enable builds manually."
        )


def install_packages(ctx: CreateContext) -> None:
    require_command("npm", "npm command is not installed!")
    path = ctx.target
    pkg = read_package_file(path)
    deps = list(pkg.get("dependencies") or {})
    dev_deps = list(pkg.get("devDependencies") or {})

    if deps:
        console.info("Installing dependencies...")
        run(["npm", "i", "--save", *deps], cwd=path)

    if dev_deps:
        console.info("Installing dev dependencies...")
        run(["npm", "i", "--save-dev", *dev_deps], cwd=path)


def remote_url(ctx: CreateContext) -> str:
    base = (ctx.config.get("gitBaseUrl") or "").strip()
    if ctx.owner:
        return f"git@github.com:{ctx.owner}/{ctx.name}.git"
    if base:
        return f"{base.rstrip('/')}/{ctx.name}.git"
    raise InputError("GitHub namespace missing!")


def commit(ctx: CreateContext) -> None:
    url = remote_url(ctx)
    path = ctx.target
    require_command("git", "Git command expected, but is not installed!")

    console.info("Committing changes...")
    env = os.environ.copy()
    if not (path / ".git").exists():
        run(["git", "init"], cwd=path, env=env)
    run(["git", "checkout", "-B", "master"], cwd=path, env=env)
    run(["git", "add", "."], cwd=path, env=env)
    run(["git", "commit", "-am", "Initial commit"], cwd=path, env=env)
    run(["git", "remote", "add", "origin", url], cwd=path, env=env)
    run(["git", "push", "origin", "master"], cwd=path, env=env)


def _remove_generated(path: Path, keep_dir: bool) -> None:
    if not keep_dir:
        shutil.rmtree(path, ignore_errors=True)
        return
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child, ignore_errors=True)
        else:
            child.unlink(missing_ok=True)


def create_service(ctx: CreateContext) -> None:
    """
    Run the whole create pipeline. On failure everything generated is removed
    (unless the target is the current directory) and the error re-raised. A
    target directory that existed before the run is emptied but kept.
    """
    logger.info("Creating service", name=ctx.options.name, path=str(ctx.target))
    cleanup = not _is_cwd(ctx.options.path)
    existed = ctx.target.exists()
    if cleanup:
        _ensure_empty_dir(ctx.target)

    try:
        build_from_template(ctx)
        create_git_repo(ctx)
        build_docker_ci(ctx)

        if not ctx.options.no_install:
            install_packages(ctx)

        if ctx.repo_initialized:
            commit(ctx)
    except BaseException:
        if cleanup:
            logger.debug("Cleaning up service directory", path=str(ctx.target), keep=existed)
            _remove_generated(ctx.target, keep_dir=existed)
        raise

    console.success("Service successfully created!")
