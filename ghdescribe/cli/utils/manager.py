"""Building the cache manager from command line options and the config file."""

import sys

import click

from ghdescribe.cache import RepoCacheManager
from ghdescribe.config import (
    get_cache_dir,
    get_cache_ttl,
    get_dir_mode,
    get_remote_host,
    get_url_template,
)
from ghdescribe.exceptions import RepoCacheError
from ghdescribe.git import GitCloner, IdentityResolver

from .logging import logger


def build_manager(ctx: click.Context) -> RepoCacheManager:
    """
    Create a cache manager for the invoked command.

    Command line options win over the config file. ``--no-cache`` sets the
    TTL to 0 so every call refreshes the clone. Exits with status 1 on an
    invalid configuration or an unusable cache directory.
    """
    obj = ctx.find_root().obj
    try:
        if obj["no_cache"]:
            ttl = 0.0
        elif obj["cache_ttl"] is not None:
            ttl = obj["cache_ttl"]
        else:
            ttl = get_cache_ttl()
        dir_mode = get_dir_mode()
    except ValueError as e:
        logger.error(f"invalid configuration: {e}")
        sys.exit(1)

    cache_dir = obj["cache_dir"] if obj["cache_dir"] is not None else get_cache_dir()

    try:
        return RepoCacheManager(
            cache_dir=cache_dir,
            ttl=ttl,
            dir_mode=dir_mode,
            cloner=GitCloner(get_url_template()),
            resolver=IdentityResolver(default_host=get_remote_host()),
        )
    except RepoCacheError as e:
        logger.error(f"failed to set up the cache: {e}")
        sys.exit(1)
