"""
Repository cache for gh-git-describe.

One bare clone per repository lives at <cache root>/<owner>/<name>. The
manager refreshes an entry when it is older than the TTL; the gateway runs
git commands in an entry while holding its shared lock.
"""

from .gateway import CommandGateway
from .lock import PathLockRegistry, ReadWriteLock
from .manager import DEFAULT_CACHE_TTL, CacheEntry, RepoCacheManager
from .root import DEFAULT_DIR_MODE, resolve_cache_root

__all__ = [
    "CacheEntry",
    "CommandGateway",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_DIR_MODE",
    "PathLockRegistry",
    "ReadWriteLock",
    "RepoCacheManager",
    "resolve_cache_root",
]
