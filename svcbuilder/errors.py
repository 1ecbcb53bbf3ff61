"""
errors.py

Responsibility: the exception hierarchy shared by every svcbuilder module.

The CLI catches `SvcBuilderError` at the top level, prints it and exits with a
generic failure status. Modules raise the most specific subclass they can.
"""

from __future__ import annotations


class SvcBuilderError(RuntimeError):
    pass


class InputError(SvcBuilderError, ValueError):
    """Invalid user input: service name, version, license id, namespace, token."""


class ConfigError(SvcBuilderError):
    pass


class CommandError(SvcBuilderError):
    """An external command is missing or exited with a non-zero status."""


class TemplateError(SvcBuilderError):
    pass


class LicenseError(InputError):
    pass


class GitHubError(SvcBuilderError):
    pass


class TravisError(SvcBuilderError):
    pass


class NodeVersionError(SvcBuilderError):
    pass
