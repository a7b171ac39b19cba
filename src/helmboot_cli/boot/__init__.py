"""Boot package for installing a cluster with a GitOps boot job.

This package provides the `helmboot run` flow which:
1. Resolves the requirements and git URL of the cluster
2. Verifies the boot secret exists in the current namespace
3. Submits the boot Job chart with helm
4. Follows the Job pod logs until it completes
"""

from .command import Command
from .errors import (
    BootError,
    ChartRepoAddError,
    CommandError,
    GitError,
    JobSubmissionError,
    KubeError,
    MissingSecretError,
    NamespaceMismatchError,
    NoPodFoundError,
    NullSecretError,
    PodFetchError,
    PushError,
    RepositoryCreationError,
    RequirementsNotFoundError,
    ResolutionError,
    ScmError,
    SecretKeyMissingError,
    SecretReadError,
    VersionResolutionError,
)
from .gitclient import GitClient
from .helm import HelmClient
from .kube import ExecutionContext, KubeClient, PodObservation
from .launcher import ChartReference, JobLauncher, boot_job_command
from .preconditions import PreconditionVerifier
from .requirements import RequirementsDocument, load_requirements
from .resolver import ConfigurationResolver
from .runner import BootRunner, RunMode, RunOptions, choose_run_mode
from .supervisor import JobSupervisor
from .versionstream import VersionResolver, VersionStreamClient, is_relative_chart

__all__ = [
    # Collaborators
    "Command",
    "GitClient",
    "HelmClient",
    "KubeClient",
    "VersionStreamClient",
    # Model
    "ChartReference",
    "ExecutionContext",
    "PodObservation",
    "RequirementsDocument",
    "load_requirements",
    "is_relative_chart",
    # Components
    "ConfigurationResolver",
    "PreconditionVerifier",
    "VersionResolver",
    "JobLauncher",
    "JobSupervisor",
    "boot_job_command",
    # Orchestration
    "BootRunner",
    "RunMode",
    "RunOptions",
    "choose_run_mode",
    # Errors
    "BootError",
    "ChartRepoAddError",
    "CommandError",
    "GitError",
    "JobSubmissionError",
    "KubeError",
    "MissingSecretError",
    "NamespaceMismatchError",
    "NoPodFoundError",
    "NullSecretError",
    "PodFetchError",
    "PushError",
    "RepositoryCreationError",
    "RequirementsNotFoundError",
    "ResolutionError",
    "ScmError",
    "SecretKeyMissingError",
    "SecretReadError",
    "VersionResolutionError",
]
