"""
cli.py

Responsibility: CLI entrypoint for svcbuilder.

Commands:
- `service create [name] [path]`: generate a service from a template, wire up
  license, GitHub, Travis CI and docker, install packages, commit and push
- `service update-version <path> [branch] [version]`: bump and push versions of
  already generated services
- `config get|set|unset|list`: manage the user config file
- `completions on|off`: shell completion script

This module parses arguments and hands off to the command modules; it also
owns logging setup and the top-level error reporting.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import structlog

from svcbuilder import __version__, completions, console
from svcbuilder.config import Config, load_config, parse_value
from svcbuilder.errors import SvcBuilderError
from svcbuilder.licenses import UNLICENSED
from svcbuilder.node import NodeVersionCatalog
from svcbuilder.service_create import CreateContext, CreateOptions, create_service
from svcbuilder.templates import DEFAULT_TEMPLATE
from svcbuilder.update_version import DEFAULT_BRANCH, DEFAULT_NPM_VERSION, NPM_VERSION_KINDS, update_version

PROG = "svcbuilder"
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

logger = structlog.get_logger()


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper())),
        logger_factory=structlog.PrintLoggerFactory(file=console.err.file),
    )


def _github_namespace_default(config: Config) -> str:
    return (config.get("gitBaseUrl") or "").split(":")[-1].strip("/")


def create_cmd(args: argparse.Namespace, config: Config) -> int:
    options = CreateOptions(
        name=args.name or Path.cwd().name,
        path=args.path,
        author=args.author or config.get("author", ""),
        email=args.email or config.get("email", ""),
        use_git=bool(args.use_git),
        github_namespace=args.github_namespace or _github_namespace_default(config),
        no_install=bool(args.no_install),
        service_version=args.service_version,
        homepage=args.homepage,
        bugs_url=args.bugs_url,
        license=args.license or config.get("license", UNLICENSED),
        template=args.template or config.get("template", DEFAULT_TEMPLATE),
        description=args.description,
        node_versions=[args.node_versions] if args.node_versions else [],
        dockerize=bool(args.dockerize),
        node_docker_tag=args.node_docker_tag,
        docker_namespace=args.docker_namespace or config.get("dockerHubNamespace", ""),
        github_token=args.github_token or config.get("gitHubAuthToken", ""),
        private=bool(args.private),
    )
    create_service(CreateContext(options=options, config=config, node=NodeVersionCatalog()))
    return 0


def update_version_cmd(args: argparse.Namespace, config: Config) -> int:
    update_version(
        args.path,
        branch=args.branch_arg or args.branch,
        version=args.version_arg or args.npm_version,
    )
    return 0


def config_get_cmd(args: argparse.Namespace, config: Config) -> int:
    value = config.get(args.key)
    if value is None:
        console.info(f"{args.key} is not set")
    else:
        console.info(f"{args.key} = {value}")
    return 0


def config_set_cmd(args: argparse.Namespace, config: Config) -> int:
    config.set(args.key, parse_value(args.value))
    console.info(f"Set {args.key} = {args.value}")
    return 0


def config_unset_cmd(args: argparse.Namespace, config: Config) -> int:
    config.unset(args.key)
    console.info(f"Unset {args.key}")
    return 0


def config_list_cmd(args: argparse.Namespace, config: Config) -> int:
    settings = config.list()
    if not settings:
        console.info("No configuration settings")
        return 0
    for key, value in settings.items():
        shown = "********" if key in ("gitHubAuthToken", "dockerHubPassword") and value else value
        console.info(f"{key} = {shown}")
    return 0


def completions_on_cmd(args: argparse.Namespace, config: Config) -> int:
    completions.enable(PROG, command_tree())
    return 0


def completions_off_cmd(args: argparse.Namespace, config: Config) -> int:
    completions.disable(PROG)
    return 0


class Subcommands:
    """
    Required subcommands of `parser`, recording every registered name under
    `name` in `tree` (command name -> subcommand names).
    """

    def __init__(self, parser: argparse.ArgumentParser, name: str, dest: str, tree: dict[str, list[str]]) -> None:
        self._actions = parser.add_subparsers(dest=dest, required=True)
        self._names = tree.setdefault(name, [])

    def add(self, name: str, **kwargs) -> argparse.ArgumentParser:
        self._names.append(name)
        return self._actions.add_parser(name, **kwargs)


def command_tree() -> dict[str, list[str]]:
    """
    Map each command name to its subcommand names, starting with the program.
    """
    tree: dict[str, list[str]] = {}
    _build_parser(tree)
    return tree


def _add_create_parser(sub: Subcommands) -> None:
    c = sub.add(
        "create",
        help="Creates new service package with the given service name under given path",
    )
    c.add_argument("name", nargs="?", default=None, help="Service name to create with (default: current directory name)")
    c.add_argument("path", nargs="?", default=".", help="Path to directory where service will be generated to")

    c.add_argument("-a", "--author", default=None, help="Service author full name (person or organization)")
    c.add_argument("-e", "--email", default=None, help="Service author's contact email")
    c.add_argument("-g", "--use-git", action="store_true", help="Turns on automatic git repo creation")
    c.add_argument("-u", "--github-namespace", default=None, help="GitHub namespace (usually user name or organization name)")
    c.add_argument("--no-install", action="store_true", help="Do not install npm packages automatically on service creation")
    c.add_argument("-V", "--service-version", default="1.0.0", help="Initial service version (default: 1.0.0)")
    c.add_argument("-H", "--homepage", default="", help="Homepage URL for service, if required")
    c.add_argument("-B", "--bugs-url", default="", help="Bugs url for service, if required")
    c.add_argument(
        "-l",
        "--license",
        default=None,
        help=f"License for created service, as SPDX id (default: config license or {UNLICENSED})",
    )
    c.add_argument(
        "-t",
        "--template",
        default=None,
        help=f"Template name, git url or file system directory (default: config template or {DEFAULT_TEMPLATE})",
    )
    c.add_argument("-d", "--description", default="", help="Service description")
    c.add_argument(
        "-n",
        "--node-versions",
        default="",
        help="Node version tags to use for builds, separated by comma if multiple. "
        "First one will be used for docker build, if dockerize option enabled.",
    )
    c.add_argument("-D", "--dockerize", action="store_true", help="Enable service dockerization with CI builds")
    c.add_argument("-L", "--node-docker-tag", default="", help="Node docker tag to use as base docker image for docker builds")
    c.add_argument("-N", "--docker-namespace", default=None, help="Docker hub namespace")
    c.add_argument("-T", "--github-token", default=None, help="GitHub auth token")
    c.add_argument("-p", "--private", action="store_true", help="Service repository will be private at GitHub")
    c.set_defaults(func=create_cmd)


def _add_update_version_parser(sub: Subcommands) -> None:
    u = sub.add(
        "update-version",
        help="Updates services under given path with new version tag and pushes changes, triggering builds",
    )
    u.add_argument("path", help="Path to directory containing services")
    u.add_argument("branch_arg", nargs="?", default=None, metavar="branch", help="The branch to checkout")
    u.add_argument("version_arg", nargs="?", default=None, metavar="version", help="NPM version to update")
    u.add_argument("-b", "--branch", default=DEFAULT_BRANCH, help=f"The branch to checkout and use during update (default: {DEFAULT_BRANCH})")
    u.add_argument(
        "-n",
        "--npm-version",
        default=DEFAULT_NPM_VERSION,
        help=f"NPM version to update ({'|'.join(NPM_VERSION_KINDS)}, default: {DEFAULT_NPM_VERSION})",
    )
    u.set_defaults(func=update_version_cmd)


def _build_parser(tree: dict[str, list[str]] | None = None) -> argparse.ArgumentParser:
    tree = {} if tree is None else tree
    p = argparse.ArgumentParser(prog=PROG, description="svcbuilder - service scaffolding and release tool")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--log-level", choices=LOG_LEVELS, default="critical", help="Log level (default: critical)")
    p.add_argument("--config", default=None, help="Config file (default: ~/.svcbuilder/config.yaml)")
    sub = Subcommands(p, PROG, "command", tree)

    service = sub.add("service", help="Service related commands")
    service_sub = Subcommands(service, "service", "service_command", tree)
    _add_create_parser(service_sub)
    _add_update_version_parser(service_sub)

    cfg = sub.add("config", help="Manage configuration")
    cfg_sub = Subcommands(cfg, "config", "config_command", tree)
    g = cfg_sub.add("get", help="Get the value of a configuration setting")
    g.add_argument("key")
    g.set_defaults(func=config_get_cmd)
    s = cfg_sub.add("set", help="Set a configuration setting")
    s.add_argument("key")
    s.add_argument("value")
    s.set_defaults(func=config_set_cmd)
    un = cfg_sub.add("unset", help="Unset a configuration setting")
    un.add_argument("key")
    un.set_defaults(func=config_unset_cmd)
    ls = cfg_sub.add("list", help="List all configuration settings")
    ls.set_defaults(func=config_list_cmd)

    comp = sub.add("completions", help="Shell completions")
    comp_sub = Subcommands(comp, "completions", "completions_command", tree)
    on = comp_sub.add("on", help="Enables completions for this program in your shell")
    on.set_defaults(func=completions_on_cmd)
    off = comp_sub.add("off", help="Disables completions for this program in your shell")
    off.set_defaults(func=completions_off_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = load_config(args.config)
        return int(args.func(args, config))
    except (SvcBuilderError, OSError) as e:
        logger.debug("Command failed", command=args.command, error=str(e))
        console.print_error(e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
