"""Entry point of a boot run.

A run either boots locally (when already inside the cluster) or submits the
boot job and supervises it. The choice is made once, up front.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .command import Command
from .errors import CommandError, ResolutionError
from .kube import ExecutionContext
from .launcher import DEFAULT_CHART_NAME, JobLauncher
from .preconditions import PreconditionVerifier
from .requirements import DEFAULT_VERSIONS_REF, DEFAULT_VERSIONS_URL
from .resolver import ConfigurationResolver

logger = logging.getLogger(__name__)


class RunMode(Enum):
    """How a boot run is carried out."""

    LOCAL_RUN = "local_run"  # Run the boot engine in this process' environment
    SUPERVISED_JOB_RUN = "supervised_job_run"  # Submit the boot Job and follow it


@dataclass
class RunOptions:
    """User-facing options of a boot run."""

    dir: str = "."
    git_url: str = ""
    git_ref: str = ""
    chart: str = DEFAULT_CHART_NAME
    versions_repo: str = DEFAULT_VERSIONS_URL
    versions_ref: str = DEFAULT_VERSIONS_REF
    helm_log_level: str = ""
    requirements_file: str = ""
    batch_mode: bool = False
    job_mode: bool = False


def choose_run_mode(context: ExecutionContext, job_mode: bool) -> RunMode:
    """Pick the run mode; outside the cluster the job is always used."""
    if job_mode or not context.in_cluster:
        return RunMode.SUPERVISED_JOB_RUN
    return RunMode.LOCAL_RUN


def local_boot_command(options: RunOptions) -> Command:
    """Build the command that runs the boot engine in-process."""
    args = ["boot", "--dir", options.dir]
    if options.git_url:
        args.extend(["--git-url", options.git_url])
    if options.git_ref:
        args.extend(["--git-ref", options.git_ref])
    if options.versions_repo:
        args.extend(["--versions-repo", options.versions_repo])
    if options.versions_ref:
        args.extend(["--versions-ref", options.versions_ref])
    if options.requirements_file:
        args.extend(["--requirements", options.requirements_file])
    if options.batch_mode:
        args.append("--batch-mode")
    return Command(name="jx", args=args)


class BootRunner:
    """Run a boot in the mode chosen at construction."""

    def __init__(
        self,
        options: RunOptions,
        context: ExecutionContext,
        resolver: ConfigurationResolver,
        verifier: PreconditionVerifier,
        launcher: JobLauncher,
    ):
        self.options = options
        self.mode = choose_run_mode(context, options.job_mode)
        self.resolver = resolver
        self.verifier = verifier
        self.launcher = launcher

    def run(self) -> None:
        """Carry out the boot run.

        Raises:
            BootError: On any fatal failure.
        """
        if self.mode == RunMode.LOCAL_RUN:
            self._run_local()
        else:
            self._run_job()

    def _run_local(self) -> None:
        cmd = local_boot_command(self.options)
        logger.info(f"running boot locally: {cmd.command_line}")
        try:
            cmd.run_attached()
        except CommandError as e:
            raise CommandError(
                f"failed to run boot locally: {e.message}", command_line=e.command_line
            ) from e

    def _run_job(self) -> None:
        requirements, git_url = self.resolver.resolve()
        if requirements is None:
            raise ResolutionError("no requirements could be found for this cluster")
        if not git_url:
            raise ResolutionError("missing option: --git-url")

        logger.info(
            f"running helmboot Job for cluster {requirements.cluster.cluster_name} "
            f"with git URL {git_url}"
        )

        self.verifier.verify(requirements)
        self.launcher.launch(requirements, git_url, self.options.chart)
