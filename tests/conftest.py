"""Shared test fixtures for helmboot-cli tests.

This module provides:
- Sample jx-requirements.yml content and a directory holding it
- A fake kubectl-backed client with canned namespace/secret/pod answers
- Pod object builders for supervision tests
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from helmboot_cli.boot import KubeClient, RequirementsDocument

# =============================================================================
# Requirements
# =============================================================================

REQUIREMENTS_YAML = """\
cluster:
  clusterName: mycluster
  namespace: jx
  provider: gke
  gitServer: https://github.com
  gitKind: github
  environmentGitOwner: myorg
versionStream:
  url: https://github.com/jenkins-x/jenkins-x-versions.git
  ref: v1.0.0
environments:
  - key: dev
    repository: environment-mycluster-dev
  - key: staging
  - key: production
"""


@pytest.fixture
def requirements_yaml() -> str:
    """Raw jx-requirements.yml content."""
    return REQUIREMENTS_YAML


@pytest.fixture
def requirements() -> RequirementsDocument:
    """Parsed requirements document for cluster 'mycluster' in namespace 'jx'."""
    return RequirementsDocument.from_yaml(REQUIREMENTS_YAML)


@pytest.fixture
def boot_dir(tmp_path: Path) -> Path:
    """Directory containing a jx-requirements.yml file."""
    (tmp_path / "jx-requirements.yml").write_text(REQUIREMENTS_YAML)
    return tmp_path


# =============================================================================
# Control plane
# =============================================================================


@pytest.fixture
def kube() -> MagicMock:
    """KubeClient double operating in namespace 'jx'."""
    client = MagicMock(spec=KubeClient)
    client.current_namespace.return_value = "jx"
    client.get_dev_environment.return_value = None
    return client


def make_pod(
    name: str = "jx-boot-abcde",
    phase: str = "Running",
    ready: str = "True",
    reason: str | None = None,
    deleting: bool = False,
    created: str = "2024-01-01T00:00:00Z",
) -> dict[str, Any]:
    """Build a pod object as returned by `kubectl get pod -o json`."""
    condition: dict[str, Any] = {"type": "Ready", "status": ready}
    if reason:
        condition["reason"] = reason
    metadata: dict[str, Any] = {
        "name": name,
        "creationTimestamp": created,
        "labels": {"job-name": "jx-boot"},
    }
    if deleting:
        metadata["deletionTimestamp"] = "2024-01-01T00:00:00Z"
    return {
        "metadata": metadata,
        "status": {"phase": phase, "conditions": [condition]},
    }


@pytest.fixture
def pod_factory():
    """Factory building pod objects."""
    return make_pod
