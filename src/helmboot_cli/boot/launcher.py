"""Submission of the boot installer job."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .command import Command
from .errors import ChartRepoAddError, CommandError, JobSubmissionError
from .helm import LABS_CHART_REPO_NAME, LABS_CHART_REPO_URL, HelmClient
from .requirements import RequirementsDocument
from .supervisor import JobSupervisor
from .versionstream import VersionResolver

logger = logging.getLogger(__name__)

BOOT_RELEASE_NAME = "jx-boot"
DEFAULT_CHART_NAME = "jx-labs/jxl-boot"


@dataclass(frozen=True)
class ChartReference:
    """Chart used to install the boot job."""

    name: str
    version: str = ""


def boot_job_command(
    requirements: RequirementsDocument,
    git_url: str,
    chart: ChartReference,
    helm_log_level: str = "",
) -> Command:
    """Build the helm command that installs the boot job chart."""
    args = ["install", BOOT_RELEASE_NAME]

    values = {
        "boot.clusterName": requirements.cluster.cluster_name,
        "boot.namespace": requirements.cluster.namespace,
        "boot.provider": requirements.cluster.provider,
        "boot.bootGitURL": git_url,
        "boot.versionStreamURL": requirements.version_stream.url,
        "boot.versionStreamRef": requirements.version_stream.ref,
    }
    for key, value in values.items():
        if value:
            args.extend(["--set", f"{key}={value}"])

    if chart.version:
        args.extend(["--version", chart.version])
    if helm_log_level:
        args.extend(["-v", helm_log_level])
    args.append(chart.name)
    return Command(name="helm", args=args)


class JobLauncher:
    """Launch the boot job and hand it over to the supervisor."""

    def __init__(
        self,
        helm: HelmClient,
        versions: VersionResolver,
        supervisor: JobSupervisor,
        helm_log_level: str = "",
        chart_repo_url: str = LABS_CHART_REPO_URL,
        chart_repo_name: str = LABS_CHART_REPO_NAME,
    ):
        self.helm = helm
        self.versions = versions
        self.supervisor = supervisor
        self.helm_log_level = helm_log_level
        self.chart_repo_url = chart_repo_url
        self.chart_repo_name = chart_repo_name

    def launch(self, requirements: RequirementsDocument, git_url: str, chart_name: str) -> None:
        """Submit the boot job and supervise it to completion.

        Args:
            requirements: Resolved requirements document.
            git_url: Git URL of the dev environment repository.
            chart_name: Name of the boot job chart.

        Raises:
            ChartRepoAddError: If the chart repository cannot be registered.
            VersionResolutionError: If the chart version cannot be resolved.
            JobSubmissionError: If the helm install fails.
        """
        self.delete_stale_release()

        try:
            self.helm.add_repo_if_missing(self.chart_repo_url, self.chart_repo_name)
        except CommandError as e:
            raise ChartRepoAddError(
                f"failed to add chart repository {self.chart_repo_name} at "
                f"{self.chart_repo_url}: {e.message}"
            ) from e
        try:
            self.helm.update_repos()
        except CommandError as e:
            logger.warning(f"failed to update helm repositories: {e.message}")

        stream = requirements.version_stream
        version = self.versions.resolve(chart_name, stream.url, stream.ref)
        chart = ChartReference(name=chart_name, version=version)

        cmd = boot_job_command(requirements, git_url, chart, self.helm_log_level)
        command_line = cmd.command_line
        logger.info(f"running the command:\n\n{command_line}\n")
        try:
            cmd.run()
        except CommandError as e:
            raise JobSubmissionError(
                f"failed to run command {command_line}: {e.message}",
                command_line=command_line,
            ) from e

        self.supervisor.supervise()

    def delete_stale_release(self) -> None:
        """Delete any previous boot release, ignoring failures.

        The release is looked up by its fixed name, so a release of the same
        name owned by something else would be removed too.
        """
        logger.debug(f"deleting the old {BOOT_RELEASE_NAME} chart ...")
        try:
            self.helm.delete_release(BOOT_RELEASE_NAME)
        except CommandError as e:
            logger.debug(f"failed to delete the old {BOOT_RELEASE_NAME} chart: {e.message}")
