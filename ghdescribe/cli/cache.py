"""CLI commands for repository cache management"""

import sys

import click

from ghdescribe.exceptions import RepoCacheError

from .debug import add_debug_option
from .utils.logging import logger
from .utils.manager import build_manager


@click.group(name="cache")
def cache():
    """Inspect the repository cache."""
    pass


@cache.command("path")
@click.pass_context
def path(ctx):
    """Clone or refresh the repository if needed and print its cache path.

    Example:

      gh-git-describe -R actions/checkout cache path
    """
    manager = build_manager(ctx)
    repo = ctx.find_root().obj["repo"]

    try:
        cached_path = manager.ensure_fresh(repo)
    except RepoCacheError as e:
        logger.error(f"failed to prepare the repository cache: {e}")
        sys.exit(1)

    click.echo(str(cached_path))


@cache.command("list")
@click.pass_context
def list_(ctx):
    """List cached repositories with their age and freshness."""
    manager = build_manager(ctx)
    entries = manager.list_entries()

    if not entries:
        logger.info(f"No cached repositories in {manager.root}")
        return

    for entry in entries:
        state = "fresh" if entry.fresh else "stale"
        click.echo(f"{entry.full_name}\t{state}\t{int(entry.age)}s\t{entry.path}")


for _command in list(cache.commands.values()):
    add_debug_option(_command)
