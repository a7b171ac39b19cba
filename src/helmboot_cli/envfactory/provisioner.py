"""Provisioning of the dev environment git repository.

Used before a cluster has ever been booted: it creates the repository that
will hold the installation state and pushes the local boot configuration to
it, then tells the operator how to start the boot job.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import click

from ..boot.errors import BootError, GitError, PushError, RepositoryCreationError, ScmError
from ..boot.gitclient import GitClient
from ..boot.requirements import dev_environment_config, load_requirements
from .create_repo import CreateRepository
from .scm import ScmClient, ScmRepository, create_scm_client

logger = logging.getLogger(__name__)

REMOTE_BRANCH = "master"

ScmClientFactory = Callable[[str, str, str], tuple[ScmClient, str]]


class RepositoryProvisioner:
    """Create and populate the dev environment repository."""

    def __init__(
        self,
        git: GitClient,
        scm_factory: ScmClientFactory = create_scm_client,
        repo_name: str = "",
        git_url_out_file: str = "",
        batch_mode: bool = False,
    ):
        """Initialize provisioner.

        Args:
            git: Local git client.
            scm_factory: Builds an authenticated SCM client from (server, owner, kind).
            repo_name: Repository name used when the requirements leave it blank.
            git_url_out_file: File to write the created repository URL to.
            batch_mode: Do not prompt for values.
        """
        self.git = git
        self.scm_factory = scm_factory
        self.repo_name = repo_name
        self.git_url_out_file = git_url_out_file
        self.batch_mode = batch_mode

    def provision(self, dir: Path | str) -> ScmRepository:
        """Create the dev environment repository from a directory.

        Returns:
            The created repository.

        Raises:
            BootError: If any step fails.
        """
        dir = Path(dir)
        requirements, file_name = load_requirements(dir)

        dev = dev_environment_config(requirements)
        if dev is None:
            raise BootError(f"the file {file_name} does not contain a development environment")

        cr = CreateRepository(
            git_server=requirements.cluster.git_server,
            git_kind=requirements.cluster.git_kind,
            owner=dev.owner or requirements.cluster.environment_git_owner,
            repository=dev.repository or self.repo_name,
        )
        cr.confirm_values(self.batch_mode)

        try:
            scm, token = self.scm_factory(cr.git_server, cr.owner, cr.git_kind)
        except ScmError as e:
            raise RepositoryCreationError(
                f"failed to create SCM client for server {cr.git_server}: {e.message}"
            ) from e

        try:
            try:
                user = scm.find_current_user()
            except ScmError as e:
                raise RepositoryCreationError(
                    f"failed to find the current SCM user: {e.message}"
                ) from e
            cr.current_username = user.login

            repo = cr.create_repository(scm)
        finally:
            scm.close()

        self._push_to_repository(dir, repo, user.login, token)
        self.print_boot_job_instructions(repo.link)

        if self.git_url_out_file:
            try:
                Path(self.git_url_out_file).write_text(repo.link)
            except OSError as e:
                raise BootError(
                    f"failed to save Git URL to file {self.git_url_out_file}: {e}"
                ) from e
        return repo

    def print_boot_job_instructions(self, link: str) -> None:
        """Print the commands that boot the cluster from the new repository."""
        click.echo("\nto boot your cluster run the following commands:\n")
        click.echo(click.style("helmboot secrets edit", fg="cyan"))
        click.echo(click.style(f"helmboot run --git-url {link}", fg="cyan"))

    def _push_to_repository(
        self, dir: Path, repo: ScmRepository, username: str, token: str
    ) -> None:
        try:
            push_url = self.git.create_authenticated_url(repo.clone, username, token)
        except GitError as e:
            raise PushError(f"creating push URL for {repo.clone}: {e.message}") from e

        try:
            self.git.push(dir, push_url, True, f"HEAD:{REMOTE_BRANCH}")
        except GitError as e:
            raise PushError(
                f"failed to push to the git repository: pushing branch {REMOTE_BRANCH}: {e.message}"
            ) from e
        logger.info("pushed code to the repository")
