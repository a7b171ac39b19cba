"""CLI main entry point."""

import json

import click

from . import __version__
from .commands.create_repo import create_repo
from .commands.run import run
from .config import KEYS, load_config
from .shared.logging import configure_logging

VERBOSITY_LEVELS = ["info", "debug"]


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--json-logs", is_flag=True, help="Emit log events as JSON")
@click.version_option(__version__, prog_name="helmboot")
@click.pass_context
def cli(ctx: click.Context, verbose: int, json_logs: bool) -> None:
    """Boot Jenkins X and/or Jenkins in a Kubernetes cluster using GitOps."""
    ctx.ensure_object(dict)
    config = load_config()
    ctx.obj["config"] = config

    level = config.log_level
    if verbose:
        level = VERBOSITY_LEVELS[min(verbose, len(VERBOSITY_LEVELS) - 1)]
    configure_logging(level, json_output=json_logs)


cli.add_command(run)
cli.add_command(create_repo)


@cli.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, json_output: bool) -> None:
    """Show the effective configuration and where each value came from."""
    cfg = ctx.obj["config"]
    data = {key: getattr(cfg, key) for key in KEYS}

    if json_output:
        click.echo(
            json.dumps(
                {key: {"value": value, "source": cfg.get_source(key)} for key, value in data.items()},
                indent=2,
            )
        )
        return

    for key, value in data.items():
        click.echo(f"{key}: {value}  ({cfg.get_source(key)})")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
