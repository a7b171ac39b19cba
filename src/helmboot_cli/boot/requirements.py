"""Requirements document model and loaders.

The requirements document (jx-requirements.yml) describes the desired
installation state of a cluster. It can come from the dev environment record
in the cluster, from a git repository, or from the local directory.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from .errors import BootError, RequirementsNotFoundError

if TYPE_CHECKING:
    from .gitclient import GitClient

REQUIREMENTS_FILE_NAME = "jx-requirements.yml"

DEFAULT_VERSIONS_URL = "https://github.com/jenkins-x/jenkins-x-versions.git"
DEFAULT_VERSIONS_REF = "master"

DEV_ENVIRONMENT_KEY = "dev"


def _text(section: dict[str, Any], key: str) -> str:
    value = section.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class ClusterConfig:
    """Cluster section of the requirements."""

    cluster_name: str = ""
    namespace: str = ""
    provider: str = ""
    git_server: str = ""
    git_kind: str = ""
    environment_git_owner: str = ""


@dataclass(frozen=True)
class VersionStreamConfig:
    """Version stream the cluster pins its charts against."""

    url: str = DEFAULT_VERSIONS_URL
    ref: str = DEFAULT_VERSIONS_REF


@dataclass(frozen=True)
class EnvironmentConfig:
    """One entry of the environments list."""

    key: str
    owner: str = ""
    repository: str = ""


@dataclass(frozen=True)
class RequirementsDocument:
    """Canonical description of a cluster's desired installation state."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    version_stream: VersionStreamConfig = field(default_factory=VersionStreamConfig)
    environments: tuple[EnvironmentConfig, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequirementsDocument:
        """Build a document from the parsed jx-requirements.yml layout."""
        cluster = data.get("cluster") or {}
        stream = data.get("versionStream") or {}
        envs = data.get("environments") or []

        return cls(
            cluster=ClusterConfig(
                cluster_name=_text(cluster, "clusterName"),
                namespace=_text(cluster, "namespace"),
                provider=_text(cluster, "provider"),
                git_server=_text(cluster, "gitServer"),
                git_kind=_text(cluster, "gitKind"),
                environment_git_owner=_text(cluster, "environmentGitOwner"),
            ),
            version_stream=VersionStreamConfig(
                url=str(stream.get("url") or DEFAULT_VERSIONS_URL),
                ref=str(stream.get("ref") or DEFAULT_VERSIONS_REF),
            ),
            environments=tuple(
                EnvironmentConfig(
                    key=_text(e, "key"),
                    owner=_text(e, "owner"),
                    repository=_text(e, "repository"),
                )
                for e in envs
                if isinstance(e, dict)
            ),
        )

    @classmethod
    def from_yaml(cls, text: str) -> RequirementsDocument:
        """Parse a document from YAML text."""
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise BootError("requirements YAML must be a mapping")
        return cls.from_dict(data)


def find_requirements_file(dir: Path, search_parents: bool = True) -> Path | None:
    """Find the requirements file in dir or, optionally, any of its parents."""
    current = dir.resolve()
    candidates = [current, *current.parents] if search_parents else [current]
    for candidate_dir in candidates:
        path = candidate_dir / REQUIREMENTS_FILE_NAME
        if path.is_file():
            return path
    return None


def load_requirements(
    dir: Path | str, search_parents: bool = True
) -> tuple[RequirementsDocument, Path]:
    """Load the requirements from a directory.

    Args:
        dir: Directory to start searching from.
        search_parents: Also look in parent directories.

    Returns:
        Tuple of (document, path of the file it was read from).

    Raises:
        RequirementsNotFoundError: If no requirements file can be found.
    """
    dir = Path(dir)
    path = find_requirements_file(dir, search_parents)
    if path is None:
        raise RequirementsNotFoundError(
            f"no {REQUIREMENTS_FILE_NAME} file found in directory {dir} or its parents"
        )
    try:
        doc = RequirementsDocument.from_yaml(path.read_text())
    except yaml.YAMLError as e:
        raise RequirementsNotFoundError(f"failed to parse {path}: {e}") from e
    return doc, path


def requirements_from_team_settings(team_settings: dict[str, Any]) -> RequirementsDocument | None:
    """Derive requirements from a dev environment record's team settings.

    Returns:
        The document, or None if the settings carry no boot requirements.

    Raises:
        BootError: If the embedded requirements are not valid YAML.
    """
    text = (team_settings or {}).get("bootRequirements", "")
    if not text:
        return None
    try:
        return RequirementsDocument.from_yaml(text)
    except yaml.YAMLError as e:
        raise BootError(f"failed to parse bootRequirements from team settings: {e}") from e


def requirements_from_git(git: GitClient, url: str, ref: str = "") -> RequirementsDocument:
    """Clone a git repository and load the requirements file at its root.

    An empty ref clones the default branch of the repository.
    """
    with tempfile.TemporaryDirectory(prefix="helmboot-") as tmpdir:
        git.shallow_clone(url, Path(tmpdir), ref)
        doc, _ = load_requirements(tmpdir, search_parents=False)
        return doc


def dev_environment_config(doc: RequirementsDocument) -> EnvironmentConfig | None:
    """Return the development environment entry, if any."""
    for env in doc.environments:
        if env.key == DEV_ENVIRONMENT_KEY:
            return env
    return None
