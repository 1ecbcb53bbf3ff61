"""Configuration management for svcbuilder using a YAML file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml

from svcbuilder.errors import ConfigError

logger = structlog.get_logger()

CONFIG_ENV_VAR = "SVCBUILDER_CONFIG"

KNOWN_KEYS = (
    "author",
    "email",
    "license",
    "template",
    "templatesDir",
    "useGit",
    "useDocker",
    "gitBaseUrl",
    "gitHubAuthToken",
    "gitRepoPrivate",
    "dockerHubNamespace",
    "dockerHubUser",
    "dockerHubPassword",
)


def default_config_file() -> Path:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".svcbuilder" / "config.yaml"


class Config:
    """Configuration manager using YAML file storage.

    Values are loaded once per process. `set` / `unset` write back to disk;
    `remember` only changes the in-memory value, which is how answers given at
    interactive prompts are kept for the rest of a command.
    """

    def __init__(self, config_file: Path | None = None, values: dict[str, Any] | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_file: YAML file to read and write (defaults to `default_config_file()`)
            values: Preloaded values; skips reading the file when given
        """
        self.config_file = Path(config_file) if config_file is not None else default_config_file()
        self._config: dict[str, Any] = dict(values) if values is not None else self._load()
        logger.debug("Config initialized", config_file=str(self.config_file), keys=list(self._config))

    def _load(self) -> dict[str, Any]:
        if not self.config_file.exists():
            logger.debug("Config file does not exist, initializing empty config")
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config", error=str(e))
            raise ConfigError(f"Failed to load config from {self.config_file}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Config file {self.config_file} must contain a mapping")
        return config

    def _save(self) -> None:
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
            logger.debug("Config saved successfully")
        except OSError as e:
            logger.error("Failed to save config", error=str(e))
            raise ConfigError(f"Failed to save config to {self.config_file}: {e}") from e

    def has(self, key: str) -> bool:
        """True if the key was configured at all (even with a false value)."""
        return key in self._config and self._config[key] is not None

    def get(self, key: str, default: Any = None) -> Any:
        value = self._config.get(key)
        return default if value is None else value

    def remember(self, key: str, value: Any) -> None:
        self._config[key] = value

    def set(self, key: str, value: Any) -> None:
        logger.debug("Setting config value", key=key)
        self._config[key] = value
        self._save()

    def unset(self, key: str) -> None:
        logger.debug("Unsetting config value", key=key)
        if key in self._config:
            del self._config[key]
            self._save()

    def list(self) -> dict[str, Any]:
        return self._config.copy()


def load_config(config_file: str | Path | None = None) -> Config:
    return Config(Path(config_file).expanduser() if config_file else None)


def parse_value(raw: str) -> Any:
    """
    Parse a value given on the command line as a YAML scalar so that
    "true" / "false" / numbers keep their type.
    """
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    if isinstance(value, (dict, list)) or value is None:
        return raw
    return value
