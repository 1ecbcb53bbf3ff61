"""
travis.py

Responsibility: Isolate all direct Travis CI API interaction.

- Secure variable encryption with the repository public key
  (https://docs.travis-ci.com/user/encryption-keys/)
- Account sync and build (hook) enablement

Everything else should go through `travis_encrypt` and `enable_builds`.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from typing import Any, Callable

import requests
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from svcbuilder.errors import TravisError

logger = structlog.get_logger()

TRAVIS_API_ORG = "https://api.travis-ci.org"
TRAVIS_API_PRO = "https://api.travis-ci.com"


@dataclass(frozen=True)
class Hook:
    id: int
    owner_name: str
    name: str
    active: bool


class TravisClient:
    def __init__(self, pro: bool = False, api_base: str | None = None, session: requests.Session | None = None) -> None:
        self._api_base = (api_base or (TRAVIS_API_PRO if pro else TRAVIS_API_ORG)).rstrip("/")
        self._session = session or requests.Session()
        self._access_token: str | None = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.travis-ci.2.1+json",
            "Content-Type": "application/json",
            "User-Agent": "Travis/1.0",
        }
        if self._access_token:
            headers["Authorization"] = f'token "{self._access_token}"'
        return headers

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        try:
            r = self._session.request(method, url, headers=self._headers(), json=json_body, timeout=30)
        except requests.RequestException as e:
            raise TravisError(f"Travis API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            raise TravisError(f"Travis API error {r.status_code} {method} {path}: {r.text}")
        if r.status_code == 204 or not r.content:
            return None
        return r.json()

    def authenticate(self, github_token: str) -> None:
        data = self._request("POST", "/auth/github", json_body={"github_token": github_token})
        token = (data or {}).get("access_token")
        if not token:
            raise TravisError("Travis authentication failed: no access token returned")
        self._access_token = token

    def repo_key(self, owner: str, repo: str) -> str:
        data = self._request("GET", f"/repos/{owner}/{repo}/key")
        return data["key"]

    def sync(self) -> None:
        self._request("POST", "/users/sync")

    def hooks(self) -> list[Hook]:
        data = self._request("GET", "/hooks") or {}
        return [
            Hook(
                id=h["id"],
                owner_name=h.get("owner_name", ""),
                name=h.get("name", ""),
                active=bool(h.get("active")),
            )
            for h in data.get("hooks", [])
        ]

    def set_hook_active(self, hook_id: int, active: bool = True) -> None:
        self._request("PUT", f"/hooks/{hook_id}", json_body={"hook": {"id": hook_id, "active": active}})


def encrypt(pem: str, data: str) -> str:
    """
    PKCS#1 v1.5 encrypt `data` with a PEM RSA public key, base64 encoded.
    """
    try:
        key = serialization.load_pem_public_key(pem.encode("utf-8"))
    except ValueError as e:
        raise TravisError(f"Invalid repository public key: {e}") from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise TravisError("Repository public key is not an RSA key")
    return base64.b64encode(key.encrypt(data.encode("utf-8"), padding.PKCS1v15())).decode("ascii")


def travis_encrypt(
    repository: str,
    data: str,
    github_token: str | None = None,
    *,
    client: TravisClient | None = None,
) -> str:
    """
    Return a Travis secure value for `data`, e.g. 'DOCKER_USER="bob"'.

    `repository` is "owner/name". A GitHub token switches to the pro API.
    """
    travis = client or TravisClient(pro=bool(github_token))
    if github_token:
        travis.authenticate(github_token)

    owner, _, repo = repository.partition("/")
    return encrypt(travis.repo_key(owner, repo), data)


def try_sync_builds(
    travis: TravisClient,
    retry: int = 0,
    max_retries: int = 3,
    delay: float = 2.0,
    sleep: Callable[[float], None] | None = None,
) -> bool:
    """
    Run a Travis account sync, retrying the whole sync up to `max_retries`
    times with a fixed delay. Returns False once retries are exhausted.
    """
    sleep = sleep or time.sleep
    while True:
        try:
            travis.sync()
            sleep(delay)
            return True
        except TravisError as e:
            if retry >= max_retries:
                logger.warning("Travis sync failed", retries=retry, error=str(e))
                return False
            logger.debug("Travis sync failed, retrying", retry=retry, error=str(e))
            sleep(delay)
            retry += 1


def enable_builds(
    owner: str,
    repo: str,
    github_token: str,
    private: bool = False,
    *,
    client: TravisClient | None = None,
    sleep: Callable[[float], None] | None = None,
) -> bool:
    """
    Turn on Travis builds for owner/repo. Returns False when the account sync
    never succeeds or Travis has no hook for the repository.
    """
    travis = client or TravisClient(pro=private)
    travis.authenticate(github_token)

    if not try_sync_builds(travis, sleep=sleep):
        return False

    hook = next((h for h in travis.hooks() if h.owner_name == owner and h.name == repo), None)
    if hook is None:
        logger.info("Travis hook not found", owner=owner, repo=repo)
        return False
    if hook.active:
        return True

    travis.set_hook_active(hook.id)
    logger.info("Travis builds enabled", owner=owner, repo=repo, hook=hook.id)
    return True
