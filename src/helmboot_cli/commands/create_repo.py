"""Command for creating the dev environment git repository."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.markup import escape

from ..boot import BootError, GitClient
from ..config import default_batch_mode
from ..envfactory import RepositoryProvisioner

console = Console(stderr=True)


@click.command("create-repo")
@click.option(
    "--dir",
    "-d",
    "dir_",
    default=".",
    help="the directory containing the boot configuration to push",
)
@click.option("--repo", default="", help="the name of the development git repository to create")
@click.option(
    "--out", default="", help="the name of the file to save with the created git URL inside"
)
@click.option(
    "--batch-mode",
    "-b",
    is_flag=True,
    default=default_batch_mode,
    help="Enables batch mode which avoids prompting for user input",
)
def create_repo(dir_: str, repo: str, out: str, batch_mode: bool) -> None:
    """Create the dev environment git repository and push the boot configuration.

    Examples:

        # create the repository named in jx-requirements.yml
        helmboot create-repo

        # create it with an explicit name and save its URL
        helmboot create-repo --repo environment-mycluster-dev --out giturl.txt
    """
    provisioner = RepositoryProvisioner(
        git=GitClient(),
        repo_name=repo,
        git_url_out_file=out,
        batch_mode=batch_mode,
    )
    try:
        provisioner.provision(dir_)
    except BootError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nCancelled.", err=True)
        sys.exit(1)
