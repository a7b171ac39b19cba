"""Source-control REST client.

Supports the two git providers the dev environment repository is usually
hosted on: GitHub (including GitHub Enterprise) and GitLab.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
import yaml

from ..boot.errors import ScmError

GITHUB_SERVER = "https://github.com"
GIT_AUTH_FILE = Path.home() / ".jx" / "gitAuth.yaml"

# Environment variable mappings
ENV_VARS = {
    "token": "GIT_TOKEN",
    "username": "GIT_USERNAME",
}


@dataclass
class ScmUser:
    """Authenticated user of the SCM."""

    login: str


@dataclass
class ScmRepository:
    """Repository as returned by the SCM."""

    name: str
    full_name: str
    link: str
    clone: str


def api_url(server: str, kind: str) -> str:
    """Return the REST API base URL for a git server."""
    server = (server or GITHUB_SERVER).rstrip("/")
    if kind == "gitlab":
        return f"{server}/api/v4"
    if server in (GITHUB_SERVER, "https://www.github.com"):
        return "https://api.github.com"
    return f"{server}/api/v3"


class ScmClient:
    """HTTP client for a GitHub or GitLab server."""

    def __init__(
        self,
        server: str,
        kind: str,
        token: str,
        username: str = "",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            server: Git server URL (e.g., https://github.com)
            kind: Git provider kind (github or gitlab)
            token: API token
            username: Configured user, used when the server reports no login
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.server = server or GITHUB_SERVER
        self.kind = kind or "github"
        self.username = username
        if self.kind not in ("github", "gitlab"):
            raise ScmError(f"unsupported git kind {self.kind}")

        if self.kind == "gitlab":
            headers = {"PRIVATE-TOKEN": token}
        else:
            headers = {
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
            }
        self._client = httpx.Client(
            base_url=api_url(self.server, self.kind),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ScmError(f"failed to reach {self.server}: {e}") from e
        if response.status_code >= 400:
            try:
                detail = response.json().get("message", response.text)
            except ValueError:
                detail = response.text
            raise ScmError(
                f"{method} {path} on {self.server} failed with HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        return response.json()

    def find_current_user(self) -> ScmUser:
        """Return the user the token belongs to."""
        data = self._request("GET", "/user")
        key = "username" if self.kind == "gitlab" else "login"
        return ScmUser(login=data.get(key) or self.username)

    def create_repository(
        self, owner: str, name: str, current_user: str, private: bool = True
    ) -> ScmRepository:
        """Create a repository under a user or organisation.

        Raises:
            ScmError: If the repository already exists or creation fails.
        """
        if self.kind == "gitlab":
            return self._create_gitlab_repository(owner, name, current_user, private)

        body = {"name": name, "private": private, "auto_init": False}
        path = "/user/repos" if owner == current_user else f"/orgs/{owner}/repos"
        data = self._request("POST", path, json=body)
        return ScmRepository(
            name=data.get("name", name),
            full_name=data.get("full_name", f"{owner}/{name}"),
            link=data.get("html_url", ""),
            clone=data.get("clone_url", ""),
        )

    def _create_gitlab_repository(
        self, owner: str, name: str, current_user: str, private: bool
    ) -> ScmRepository:
        body: dict[str, Any] = {
            "name": name,
            "path": name,
            "visibility": "private" if private else "public",
        }
        if owner != current_user:
            namespaces = self._request("GET", "/namespaces", params={"search": owner})
            match = next((n for n in namespaces if n.get("full_path") == owner), None)
            if match is None:
                raise ScmError(f"no GitLab namespace {owner} found on {self.server}")
            body["namespace_id"] = match["id"]

        data = self._request("POST", "/projects", json=body)
        return ScmRepository(
            name=data.get("path", name),
            full_name=data.get("path_with_namespace", f"{owner}/{name}"),
            link=data.get("web_url", ""),
            clone=data.get("http_url_to_repo", ""),
        )


def find_token(server: str, auth_file: Path | None = None) -> tuple[str, str]:
    """Find credentials for a git server.

    Precedence (highest to lowest):
    1. Environment variables (GIT_TOKEN, GIT_USERNAME)
    2. Git auth file (~/.jx/gitAuth.yaml)

    Returns:
        Tuple of (username, token); token is empty if none is configured.
    """
    if os.environ.get(ENV_VARS["token"]):
        return os.environ.get(ENV_VARS["username"], ""), os.environ[ENV_VARS["token"]]

    path = auth_file or GIT_AUTH_FILE
    if not path.exists():
        return "", ""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ScmError(f"failed to read git auth file {path}: {e}") from e

    wanted = (server or GITHUB_SERVER).rstrip("/")
    for entry in data.get("servers") or []:
        if str(entry.get("url", "")).rstrip("/") != wanted:
            continue
        users = entry.get("users") or []
        current = entry.get("currentuser", "")
        for user in users:
            if not current or user.get("username") == current:
                return user.get("username", ""), user.get("apitoken", "")
    return "", ""


def create_scm_client(
    server: str, owner: str, kind: str, auth_file: Path | None = None
) -> tuple[ScmClient, str]:
    """Create an authenticated client for a git server.

    Returns:
        Tuple of (client, token).

    Raises:
        ScmError: If no token is configured for the server.
    """
    username, token = find_token(server, auth_file)
    if not token:
        raise ScmError(
            f"no API token found for git server {server or GITHUB_SERVER} (owner {owner}). "
            f"set ${ENV_VARS['token']} or add the server to {auth_file or GIT_AUTH_FILE}"
        )
    return ScmClient(server, kind, token, username=username), token
