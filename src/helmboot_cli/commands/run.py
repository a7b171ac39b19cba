"""Run command for booting a cluster.

This module provides the `helmboot run` command which boots Jenkins X into
the current cluster, either locally or by triggering the boot Job.
"""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.markup import escape

from ..boot import (
    BootError,
    BootRunner,
    ConfigurationResolver,
    ExecutionContext,
    GitClient,
    HelmClient,
    JobLauncher,
    JobSupervisor,
    KubeClient,
    PreconditionVerifier,
    RunOptions,
    VersionResolver,
    VersionStreamClient,
)
from ..config import default_batch_mode
from ..shared.logging import get_logger

console = Console(stderr=True)
log = get_logger(__name__)


def build_runner(
    options: RunOptions,
    context: ExecutionContext,
    kube: KubeClient,
    git: GitClient,
    versions_client: VersionStreamClient,
) -> BootRunner:
    """Wire the boot components together."""
    supervisor = JobSupervisor(kube)
    launcher = JobLauncher(
        helm=HelmClient(options.dir),
        versions=VersionResolver(versions_client),
        supervisor=supervisor,
        helm_log_level=options.helm_log_level,
    )
    return BootRunner(
        options=options,
        context=context,
        resolver=ConfigurationResolver(
            kube, git, dir=options.dir, git_url=options.git_url, git_ref=options.git_ref
        ),
        verifier=PreconditionVerifier(kube),
        launcher=launcher,
    )


@click.command()
@click.option(
    "--dir",
    "-d",
    "dir_",
    default=".",
    help="the directory to look for the Jenkins X Pipeline, requirements and charts",
)
@click.option(
    "--git-url",
    "-u",
    default="",
    help="override the Git clone URL for the JX Boot source to start from, ignoring the "
    "versions stream. Normally specified with git-ref as well",
)
@click.option(
    "--git-ref",
    default="",
    help="override the Git ref for the JX Boot source to start from, ignoring the versions "
    "stream. Normally specified with git-url as well",
)
@click.option("--chart", "-c", default=None, help="the chart name to use to install the boot Job")
@click.option(
    "--versions-repo",
    default=None,
    help="the bootstrap URL for the versions repo. Once the boot config is cloned, the repo "
    "will be then read from the jx-requirements.yml",
)
@click.option(
    "--versions-ref",
    default=None,
    help="the bootstrap ref for the versions repo. Once the boot config is cloned, the repo "
    "will be then read from the jx-requirements.yml",
)
@click.option(
    "--helm-log",
    "-v",
    default="",
    help="sets the helm logging level from 0 to 9. Passed into the helm CLI via the '-v' "
    "argument. Useful to diagnose helm related issues",
)
@click.option(
    "--requirements",
    "-r",
    default="",
    help="requirements file which will overwrite the default requirements file",
)
@click.option(
    "--batch-mode",
    "-b",
    is_flag=True,
    default=default_batch_mode,
    help="Runs in batch mode without prompting for user input",
)
@click.option(
    "--job",
    is_flag=True,
    help="if running inside the cluster lets still default to creating the boot Job "
    "rather than running boot locally",
)
@click.pass_context
def run(
    ctx: click.Context,
    dir_: str,
    git_url: str,
    git_ref: str,
    chart: str | None,
    versions_repo: str | None,
    versions_ref: str | None,
    helm_log: str,
    requirements: str,
    batch_mode: bool,
    job: bool,
) -> None:
    """Boot Jenkins X in a Kubernetes cluster using GitOps.

    Outside the cluster (or with --job) this triggers the boot Job inside the
    cluster and follows its logs until it completes.

    Examples:

        # run the boot Job to install for the first time
        helmboot run --git-url https://github.com/myorg/environment-mycluster-dev.git

        # run the boot Job to upgrade a cluster from the latest in git
        helmboot run
    """
    config = ctx.obj["config"]
    options = RunOptions(
        dir=dir_,
        git_url=git_url,
        git_ref=git_ref,
        chart=chart or config.chart,
        versions_repo=versions_repo or config.versions_repo,
        versions_ref=versions_ref or config.versions_ref,
        helm_log_level=helm_log,
        requirements_file=requirements,
        batch_mode=batch_mode,
        job_mode=job,
    )

    git = GitClient()
    kube = KubeClient(poll_interval=config.poll_interval)
    versions_client = VersionStreamClient(git)
    runner = build_runner(options, ExecutionContext.detect(), kube, git, versions_client)

    try:
        runner.run()
    except BootError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        sys.exit(1)
    finally:
        versions_client.cleanup()

    log.info("boot run finished", mode=runner.mode.value)
