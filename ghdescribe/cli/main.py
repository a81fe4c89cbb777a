"""gh-git-describe CLI"""

import sys
from typing import Sequence

import click

from ghdescribe import __version__
from ghdescribe.cache import CommandGateway
from ghdescribe.config import get_log_level
from ghdescribe.exceptions import RepoCacheError

from .cache import cache
from .debug import add_debug_option
from .utils.logging import LOG_LEVELS, configure_logging, logger
from .utils.manager import build_manager

# Pass options such as --tags through to git
GIT_COMMAND_SETTINGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def run_git(ctx: click.Context, subcommand: str, args: Sequence[str]) -> None:
    """Run a git subcommand in the cached clone and print its output."""
    gateway = CommandGateway(build_manager(ctx))
    repo = ctx.find_root().obj["repo"]

    try:
        out = gateway.run(repo, subcommand, list(args))
    except RepoCacheError as e:
        logger.error(f"failed to run git {subcommand}: {e}")
        sys.exit(1)

    click.echo(out)


@click.group()
@click.version_option(__version__, prog_name="gh-git-describe")
@click.option(
    "--repo",
    "-R",
    default=None,
    help="GitHub repository ID ([HOST/]OWNER/NAME). Defaults to the repository "
    "of the current directory.",
)
@click.option(
    "--cache-dir",
    default=None,
    help="Cache directory path. If not specified, use the user cache directory.",
)
@click.option("--no-cache", is_flag=True, default=False, help="Disable cache.")
@click.option(
    "--cache-ttl",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds a cached clone stays fresh (default: 86400).",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (default: info).",
)
@click.pass_context
def cli(ctx, repo, cache_dir, no_cache, cache_ttl, log_level):
    """
    Run git queries (describe, rev-parse, rev-list, ...) against a cached bare
    clone of a GitHub repository.
    """
    ctx.ensure_object(dict)
    if not ctx.obj.get("DEBUG"):
        configure_logging(log_level or get_log_level())

    ctx.obj.update(
        {
            "repo": repo,
            "cache_dir": cache_dir,
            "no_cache": no_cache,
            "cache_ttl": cache_ttl,
        }
    )


@cli.command("describe", context_settings=GIT_COMMAND_SETTINGS)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def describe(ctx, args):
    """Run 'git describe ARGS...' for the repository.

    Example:

      gh-git-describe -R actions/checkout describe --tags 692973e
    """
    run_git(ctx, "describe", args)


@cli.command("rev-parse", context_settings=GIT_COMMAND_SETTINGS)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def rev_parse(ctx, args):
    """Run 'git rev-parse ARGS...' for the repository."""
    run_git(ctx, "rev-parse", args)


@cli.command("rev-list", context_settings=GIT_COMMAND_SETTINGS)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def rev_list(ctx, args):
    """Run 'git rev-list ARGS...' for the repository."""
    run_git(ctx, "rev-list", args)


@cli.command("exec", context_settings=GIT_COMMAND_SETTINGS)
@click.argument("subcommand")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def exec_(ctx, subcommand, args):
    """Run any git SUBCOMMAND with ARGS for the repository."""
    run_git(ctx, subcommand, args)


cli.add_command(cache)

# Add the debug option to every command
for _command in list(cli.commands.values()):
    add_debug_option(_command)
add_debug_option(cli)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
