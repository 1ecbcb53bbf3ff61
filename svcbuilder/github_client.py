"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

Everything else (templates, git commands, CLI behavior) should use this client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests
import structlog

from svcbuilder.errors import GitHubError

logger = structlog.get_logger()


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    ssh_url: str
    clone_url: str
    private: bool


class GitHubClient:
    def __init__(
        self,
        token: str,
        api_base: str = "https://api.github.com",
        session: requests.Session | None = None,
    ) -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "svcbuilder",
        }

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> Any:
        url = f"{self._api_base}{path}"
        try:
            r = self._session.request(method, url, headers=self._headers(), json=json_body, timeout=30)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub API request failed {method} {path}: {e}") from e
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            raise GitHubError(
                f"GitHub API error {r.status_code} {method} {path}: {payload.get('message', payload)}",
            )
        if r.status_code == 204:
            return None
        return r.json()

    @staticmethod
    def _repo_info(owner: str, name: str, data: dict[str, Any]) -> RepoInfo:
        return RepoInfo(
            owner=owner,
            name=name,
            html_url=data["html_url"],
            ssh_url=data.get("ssh_url") or f"git@github.com:{owner}/{name}.git",
            clone_url=data["clone_url"],
            private=bool(data.get("private")),
        )

    def viewer_login(self) -> str:
        try:
            viewer = self._request("GET", "/user")
        except GitHubError as e:
            raise GitHubError(f"Given GitHub auth token is invalid or expired: {e}") from e
        return str(viewer.get("login") or "")

    def get_repo(self, owner: str, name: str) -> RepoInfo | None:
        """
        Return RepoInfo if the repo exists and is accessible; otherwise None.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{name}")
        except GitHubError as e:
            if " 404 " in str(e):
                return None
            raise
        return self._repo_info(owner, name, data)

    def owner_exists(self, owner: str) -> bool:
        try:
            self._request("GET", f"/users/{owner}")
        except GitHubError as e:
            if " 404 " in str(e):
                return False
            raise
        return True

    def create_repo(
        self,
        *,
        owner: str,
        name: str,
        private: bool,
        description: str = "",
    ) -> RepoInfo:
        """
        Create a new repository under either:
        - the authenticated user (if owner matches the viewer login), OR
        - an organization (if owner is an org).

        Fails if the owner does not exist or the repository already exists.
        """
        viewer = self.viewer_login()

        if not self.owner_exists(owner):
            raise GitHubError(f"GitHub namespace \"{owner}\" does not exist!")

        if self.get_repo(owner, name) is not None:
            raise GitHubError(f"Repository {owner}/{name} already exists!")

        body = {
            "name": name,
            "private": private,
            "description": description,
            "auto_init": False,
            "has_issues": True,
            "has_projects": False,
            "has_wiki": False,
        }

        logger.info("Creating GitHub repository", owner=owner, name=name, private=private)
        if owner.lower() == viewer.lower():
            data = self._request("POST", "/user/repos", json_body=body)
        else:
            data = self._request("POST", f"/orgs/{owner}/repos", json_body=body)

        return self._repo_info(owner, name, data)


def create_repository(url: str, token: str, description: str, private: bool, *, client: GitHubClient | None = None) -> RepoInfo:
    """
    Create the repository named by `url` ("owner/name").
    """
    owner, _, name = url.partition("/")
    if not owner or not name:
        raise GitHubError(f"Invalid repository name \"{url}\", expected owner/name")
    gh = client or GitHubClient(token)
    return gh.create_repo(owner=owner, name=name, private=private, description=description)
