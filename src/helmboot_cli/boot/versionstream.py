"""Chart version resolution against a version stream.

A version stream is a git repository pinning chart versions, with one YAML
file per chart under ``charts/<repo>/<chart>.yml`` holding a ``version`` key.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

import yaml

from .errors import BootError, VersionResolutionError
from .gitclient import GitClient

logger = logging.getLogger(__name__)

KIND_CHART = "charts"


def is_relative_chart(chart_name: str) -> bool:
    """Check whether a chart name refers to a local folder rather than a repo chart."""
    if not chart_name:
        return True
    if chart_name[0] in (".", "/", "\\"):
        return True
    return chart_name.count("/") > 1


class VersionStreamClient:
    """Look up pinned versions in a cloned version stream."""

    def __init__(self, git: GitClient, cache_dir: Path | None = None):
        """Initialize client.

        Args:
            git: Git client used to clone the stream.
            cache_dir: Where clones are kept. A temporary directory, removed by
                cleanup(), by default.
        """
        self.git = git
        self.cache_dir = cache_dir
        self._owns_cache_dir = cache_dir is None
        self._clones: dict[tuple[str, str], Path] = {}

    def _clone(self, url: str, ref: str) -> Path:
        key = (url, ref)
        if key not in self._clones:
            if self.cache_dir is None:
                self.cache_dir = Path(tempfile.mkdtemp(prefix="helmboot-versions-"))
            target = self.cache_dir / f"stream-{len(self._clones)}"
            self.git.shallow_clone(url, target, ref)
            self._clones[key] = target
        return self._clones[key]

    def cleanup(self) -> None:
        """Remove the clones made by this client."""
        if self._owns_cache_dir and self.cache_dir is not None:
            shutil.rmtree(self.cache_dir, ignore_errors=True)
            self.cache_dir = None
        self._clones.clear()

    def get_version_number(self, kind: str, name: str, url: str, ref: str) -> str:
        """Resolve the pinned version of a named artifact.

        Returns:
            The version, or an empty string when the stream does not pin it.

        Raises:
            BootError: If the version file is not a mapping.
        """
        stream_dir = self._clone(url, ref)
        candidates = [stream_dir / kind / f"{name}.yml"]
        if "/" in name:
            candidates.append(stream_dir / kind / f"{name.split('/', 1)[1]}.yml")

        for path in candidates:
            if path.is_file():
                data = yaml.safe_load(path.read_text()) or {}
                if not isinstance(data, dict):
                    raise BootError(f"version file {path} must be a mapping")
                return str(data.get("version", ""))
        logger.debug(f"no version found for {kind} {name} in version stream {url}")
        return ""


class VersionResolver:
    """Resolve the chart version the boot job installs."""

    def __init__(self, client: VersionStreamClient):
        self.client = client

    def resolve(self, chart_name: str, stream_url: str, stream_ref: str) -> str:
        """Resolve the version for a chart.

        Local chart folders are never versioned, so an empty version is
        returned for them without touching the version stream.

        Raises:
            VersionResolutionError: If the version stream lookup fails.
        """
        if is_relative_chart(chart_name):
            return ""
        try:
            return self.client.get_version_number(KIND_CHART, chart_name, stream_url, stream_ref)
        except (BootError, OSError, yaml.YAMLError) as e:
            raise VersionResolutionError(
                f"failed to find version of chart {chart_name} in version stream "
                f"{stream_url} ref {stream_ref}: {e}"
            ) from e
