"""
node.py

Responsibility: the Node.js release catalog and CI node tag helpers.

The catalog is fetched from nodejs.org once per `NodeVersionCatalog` instance.
Commands create one catalog per invocation and pass it down, so nothing is
cached at module level.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

import requests
import semver
import structlog

from svcbuilder.errors import NodeVersionError

logger = structlog.get_logger()

NODE_DIST_INDEX_URL = "https://nodejs.org/dist/index.json"

RX_TAG_SPLIT = re.compile(r"\s*,\s*|\s+")


@dataclass(frozen=True)
class NodeVersion:
    version: str
    date: str = ""
    lts: bool | str = False
    npm: str | None = None
    v8: str | None = None

    @property
    def number(self) -> str:
        return self.version[1:] if self.version.startswith("v") else self.version


def semver_compare(a: str, b: str) -> int:
    """
    Comparator for descending sorts: -1 if a > b, 1 if a < b, 0 if equal.
    """
    result = semver.Version.parse(a).compare(b)
    return -result


def _strip_v(version: str) -> str:
    return version[1:] if version.startswith("v") else version


class NodeVersionCatalog:
    """Released Node.js versions, newest first."""

    def __init__(
        self,
        url: str = NODE_DIST_INDEX_URL,
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        self._url = url
        self._session = session or requests.Session()
        self._timeout = timeout
        self._versions: list[NodeVersion] | None = None

    def _fetch(self) -> list[dict[str, Any]]:
        logger.debug("Fetching node versions", url=self._url)
        try:
            r = self._session.get(self._url, timeout=self._timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise NodeVersionError(f"Unable to load node versions from {self._url}: {e}") from e
        return data or []

    def versions(self, force: bool = False) -> list[NodeVersion]:
        if self._versions is not None and not force:
            return self._versions

        entries = [
            NodeVersion(
                version=item["version"],
                date=item.get("date", ""),
                lts=item.get("lts") or False,
                npm=item.get("npm"),
                v8=item.get("v8"),
            )
            for item in self._fetch()
            if semver.Version.is_valid(_strip_v(item.get("version", "")))
        ]
        entries.sort(key=lambda v: semver.Version.parse(v.number), reverse=True)
        self._versions = entries
        logger.debug("Node versions loaded", count=len(entries))
        return entries

    def resolve(self, tag: str) -> str:
        """
        Return the concrete version (without leading "v") for a node tag,
        or "" if nothing matches.

        - "latest" / "node": the newest release
        - "lts" / "stable" / "lts/*": the newest LTS release
        - anything else: the newest release whose version starts with the tag
        """
        versions = self.versions()
        tag = tag.strip()

        if tag in ("node", "latest"):
            found = versions[0] if versions else None
        elif tag in ("stable", "lts", "lts/*"):
            found = next((v for v in versions if v.lts), None)
        else:
            rx = re.compile("^v" + re.escape(_strip_v(tag)))
            found = next((v for v in versions if rx.match(v.version)), None)

        return found.number if found else ""


def parse_node_tags(value: str | Iterable[str] | None) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    tags: list[str] = []
    for item in value:
        tags.extend(t for t in RX_TAG_SPLIT.split(item.strip()) if t)
    return tags


def to_travis_tags(tags: str | Iterable[str] | None) -> list[str]:
    """
    Convert node tags into Travis CI node_js tags.

    "stable" and "lts" map to "lts/*" followed by "node"; "latest" maps to
    "node". Duplicates are dropped, first occurrence wins.
    """
    if not tags:
        return []
    if isinstance(tags, str):
        tags = [tags]

    travis_tags: list[str] = []
    for tag in tags:
        if tag in ("stable", "lts"):
            travis_tags.extend(["lts/*", "node"])
        elif tag == "latest":
            travis_tags.append("node")
        else:
            travis_tags.append(tag)

    return list(dict.fromkeys(travis_tags))
