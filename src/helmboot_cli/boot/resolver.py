"""Resolution of the requirements document and git URL for a boot run.

Sources are consulted in a fixed order:

1. the dev environment record in the cluster
2. the explicit --git-url override
3. the requirements file in the local directory
4. the upstream remote of the local git clone
"""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import BootError, KubeError, ResolutionError
from .gitclient import GitClient
from .kube import KubeClient
from .requirements import (
    RequirementsDocument,
    load_requirements,
    requirements_from_git,
    requirements_from_team_settings,
)

logger = logging.getLogger(__name__)


class ConfigurationResolver:
    """Find the current boot configuration."""

    def __init__(
        self,
        kube: KubeClient,
        git: GitClient,
        dir: Path | str = ".",
        git_url: str = "",
        git_ref: str = "",
    ):
        """Initialize resolver.

        Args:
            kube: Control-plane client.
            git: Local git client.
            dir: Working directory holding the boot configuration.
            git_url: Explicit git URL override, empty if not given.
            git_ref: Git ref to read the override repository at, empty for its
                default branch.
        """
        self.kube = kube
        self.git = git
        self.dir = Path(dir)
        self.git_url = git_url
        self.git_ref = git_ref

    def resolve(self) -> tuple[RequirementsDocument, str]:
        """Resolve the requirements document and git URL.

        Returns:
            Tuple of (requirements, git URL).

        Raises:
            ResolutionError: Naming the stage that failed.
        """
        requirements: RequirementsDocument | None = None
        git_url = ""

        try:
            ns = self.kube.current_namespace()
            dev_env = self.kube.get_dev_environment(ns)
        except KubeError as e:
            raise ResolutionError(f"failed to look up the dev environment: {e.message}") from e

        if dev_env is not None:
            spec = dev_env.get("spec") or {}
            git_url = (spec.get("source") or {}).get("url", "") or ""
            try:
                requirements = requirements_from_team_settings(spec.get("teamSettings") or {})
            except BootError as e:
                logger.debug(f"failed to load requirements from team settings {e}")

        if self.git_url:
            git_url = self.git_url
            if requirements is None:
                try:
                    requirements = requirements_from_git(self.git, git_url, self.git_ref)
                except BootError as e:
                    raise ResolutionError(
                        f"failed to get requirements from git URL {git_url}: {e.message}"
                    ) from e

        if requirements is None:
            try:
                requirements, _ = load_requirements(self.dir)
            except BootError as e:
                raise ResolutionError(e.message) from e

        if not git_url:
            try:
                git_url = self._find_git_url_from_dir()
            except BootError as e:
                raise ResolutionError(
                    "your cluster has not been booted before and you are not inside a git clone "
                    "of your dev environment repository so you need to pass in the URL of the "
                    f"git repository as --git-url: {e.message}"
                ) from e

        return requirements, git_url

    def _find_git_url_from_dir(self) -> str:
        _, git_conf_dir = self.git.find_git_config_dir(self.dir)
        if git_conf_dir is None:
            raise ResolutionError(f"no .git directory could be found from dir {self.dir}")
        url = self.git.discover_upstream_git_url(git_conf_dir)
        if not url:
            raise ResolutionError(f"no upstream git URL could be found from dir {self.dir}")
        return url
