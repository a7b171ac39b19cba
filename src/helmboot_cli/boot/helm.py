"""Chart client backed by the helm CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .command import Command
from .errors import CommandError

logger = logging.getLogger(__name__)

LABS_CHART_REPO_NAME = "jx-labs"
LABS_CHART_REPO_URL = "https://storage.googleapis.com/jenkinsxio-labs/charts"


class HelmClient:
    """Register chart repositories and manage releases with helm."""

    def __init__(self, dir: str | None = None, binary: str = "helm"):
        self.dir = dir
        self.binary = binary

    def _command(self, *args: str) -> Command:
        return Command(name=self.binary, args=list(args), dir=Path(self.dir) if self.dir else None)

    def list_repos(self) -> dict[str, str]:
        """Return the registered repositories as {name: url}.

        helm exits non-zero when no repositories are configured at all, which
        is reported here as an empty mapping.
        """
        try:
            output = self._command("repo", "list", "-o", "json").run()
        except CommandError as e:
            if "no repositories" in e.output:
                return {}
            raise
        try:
            repos = json.loads(output or "[]")
        except json.JSONDecodeError:
            return {}
        return {r.get("name", ""): r.get("url", "") for r in repos}

    def add_repo_if_missing(self, url: str, name: str) -> str:
        """Add a chart repository unless one with the same URL exists.

        Returns:
            Name the repository is registered under.

        Raises:
            CommandError: If helm fails to add the repository.
        """
        for existing_name, existing_url in self.list_repos().items():
            if existing_url.rstrip("/") == url.rstrip("/"):
                logger.debug(f"chart repository {url} already registered as {existing_name}")
                return existing_name
        logger.info(f"adding chart repository {name} at {url}")
        self._command("repo", "add", name, url).run()
        return name

    def update_repos(self) -> None:
        """Refresh the local repository index."""
        self._command("repo", "update").run()

    def delete_release(self, name: str) -> None:
        """Delete a release by name."""
        self._command("delete", name).run()
