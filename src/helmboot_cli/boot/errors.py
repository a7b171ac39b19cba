"""Error types for the boot flow.

Every fatal path raises a subclass of BootError. The CLI layer turns these
into a human-readable message and a non-zero exit code.
"""

from __future__ import annotations


class BootError(Exception):
    """Base error for all boot failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Collaborator errors
# =============================================================================


class CommandError(BootError):
    """An external command exited non-zero or could not be started."""

    def __init__(self, message: str, command_line: str = "", output: str = ""):
        self.command_line = command_line
        self.output = output
        super().__init__(message)


class KubeError(BootError):
    """A kubectl call against the control plane failed."""

    def __init__(self, message: str, not_found: bool = False):
        self.not_found = not_found
        super().__init__(message)


class GitError(BootError):
    """A local git operation failed."""


class ScmError(BootError):
    """A source-control REST API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


# =============================================================================
# Resolution
# =============================================================================


class ResolutionError(BootError):
    """No usable requirements document or git URL could be found."""


class RequirementsNotFoundError(ResolutionError):
    """No requirements file exists in or above a directory."""


class VersionResolutionError(BootError):
    """The version stream could not resolve a chart version."""


# =============================================================================
# Preconditions
# =============================================================================


class NamespaceMismatchError(BootError):
    """The current namespace differs from the one the cluster must boot in."""


class MissingSecretError(BootError):
    """The boot secret does not exist in the current namespace."""


class SecretReadError(BootError):
    """The boot secret could not be read."""


class NullSecretError(BootError):
    """The boot secret lookup returned nothing."""


class SecretKeyMissingError(BootError):
    """The boot secret lacks the required data key."""


# =============================================================================
# Job launch and supervision
# =============================================================================


class ChartRepoAddError(BootError):
    """The chart repository could not be registered."""


class JobSubmissionError(BootError):
    """The installer job submission command failed."""

    def __init__(self, message: str, command_line: str = ""):
        self.command_line = command_line
        super().__init__(message)


class NoPodFoundError(BootError):
    """No pod matched the job selector."""


class PodFetchError(BootError):
    """The job pod could not be re-fetched."""


# =============================================================================
# Repository provisioning
# =============================================================================


class RepositoryCreationError(BootError):
    """The dev environment repository could not be created."""


class PushError(BootError):
    """Local contents could not be pushed to the new repository."""
