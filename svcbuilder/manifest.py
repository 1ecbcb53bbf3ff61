"""
manifest.py

Responsibility: the `.svcbuilder.yml` marker written into every generated service.

A directory is a service when its manifest declares the IMQService base class.
Detection only reads the YAML file; no service code is loaded.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path

import structlog
import yaml

logger = structlog.get_logger()

MANIFEST_FILE = ".svcbuilder.yml"
BASE_SERVICE_NAME = "IMQService"


@dataclass(frozen=True)
class ServiceManifest:
    name: str
    class_name: str
    version: str
    license: str
    template: str
    base: str = BASE_SERVICE_NAME


def write_manifest(path: str | Path, manifest: ServiceManifest) -> Path:
    target = Path(path) / MANIFEST_FILE
    with open(target, "w", encoding="utf-8") as f:
        yaml.safe_dump(asdict(manifest), f, default_flow_style=False, sort_keys=False)
    return target


def read_manifest(path: str | Path) -> dict | None:
    """Return the raw manifest mapping, or None if missing or unreadable."""
    target = Path(path) / MANIFEST_FILE
    if not target.is_file():
        return None
    try:
        with open(target, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.debug("Unreadable service manifest", path=str(target), error=str(e))
        return None
    return data if isinstance(data, dict) else None


def is_service_dir(path: str | Path) -> bool:
    data = read_manifest(path)
    return bool(data) and data.get("base") == BASE_SERVICE_NAME
