"""
Repository cache manager.

Keeps exactly one bare clone per repository identity under the cache root and
decides when it has to be refreshed.

Cache Structure Example:
    ~/.cache/gh-git-describe/
    ├── actions/
    │   ├── checkout/          # bare clone
    │   ├── checkout.lock      # inter-process swap lock
    │   └── setup-python/
    └── cli/
        └── cli/

Freshness:
    An entry is fresh while ``now - mtime < ttl``. The TTL of a request
    overrides the manager default when it is positive; a TTL of 0 always
    refreshes. Freshness is recomputed from the directory's mtime on every
    call, never remembered.

Refresh:
    The clone runs in a temporary directory outside the cache tree and
    outside any lock, so a slow network clone never blocks readers of the
    existing entry or of other repositories. Only the final swap is done under
    the entry's exclusive lock: the old entry is renamed to a hidden sibling,
    the new clone is renamed into place, and the old copy is deleted after the
    lock is released. Concurrent refreshes of the same stale entry are not
    coalesced: each one clones and the last rename wins, which always leaves
    a complete clone in place.
"""

import logging
import os
import shutil
import tempfile
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from ghdescribe.cancel import CancelToken, raise_if_cancelled, remaining
from ghdescribe.config import APP_NAME
from ghdescribe.exceptions import CloneError, FilesystemError, RepoCacheError
from ghdescribe.git.clone import GitCloner
from ghdescribe.git.identity import IdentityResolver, RepoIdentity

from .lock import PathLockRegistry
from .root import DEFAULT_DIR_MODE, make_dirs, resolve_cache_root

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60 * 60

IdentityLike = Optional[Union[str, RepoIdentity]]


@dataclass
class CacheEntry:
    """A cached clone found on disk."""

    owner: str
    name: str
    path: Path
    age: float
    fresh: bool

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class RepoCacheManager:
    """
    Returns paths to ready-to-use bare clones, cloning or refreshing as needed.

    Args:
        cache_dir: Base cache directory (defaults to the per-user cache dir)
        ttl: Default freshness window in seconds
        dir_mode: Permission mode for directories created in the cache
        cloner: Object with ``clone(identity, destination, timeout=None)``
        resolver: Object with ``parse(repo_id)`` and ``current()``
        locks: Lock registry to use; a new one is created when omitted
        clock: Returns the current time in seconds since the epoch
        interprocess: Serialize swaps across processes with lock files
    """

    def __init__(
        self,
        cache_dir: Optional[Union[str, Path]] = None,
        ttl: float = DEFAULT_CACHE_TTL,
        dir_mode: int = DEFAULT_DIR_MODE,
        cloner=None,
        resolver=None,
        locks: Optional[PathLockRegistry] = None,
        clock: Callable[[], float] = time.time,
        interprocess: bool = True,
    ):
        self.root = resolve_cache_root(cache_dir, dir_mode)
        self.ttl = ttl
        self.dir_mode = dir_mode
        self.cloner = cloner if cloner is not None else GitCloner()
        self.resolver = resolver if resolver is not None else IdentityResolver()
        self.locks = (
            locks if locks is not None else PathLockRegistry(interprocess=interprocess)
        )
        self.clock = clock

    def resolve(self, identity: IdentityLike = None) -> RepoIdentity:
        """
        Turn an ID string, an identity or None (ambient repo) into an identity.

        A blank string is an invalid ID, not a request for the ambient repo.
        """
        if isinstance(identity, RepoIdentity):
            return identity
        if identity is None:
            return self.resolver.current()
        return self.resolver.parse(identity)

    def entry_path(self, identity: RepoIdentity) -> Path:
        return self.root / identity.owner / identity.name

    def effective_ttl(self, ttl: Optional[float] = None) -> float:
        if ttl is not None and ttl > 0:
            return ttl
        return self.ttl

    def ensure_fresh(
        self,
        identity: IdentityLike = None,
        ttl: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> Path:
        """
        Get the path of a clone of ``identity`` that is younger than the TTL.

        Args:
            identity: Repository ID, identity, or None for the current repository
            ttl: Freshness window for this request; used when positive
            cancel: Token that aborts lock waits and the clone

        Returns:
            Path to the cached bare clone

        Raises:
            InvalidInputError: If the repository ID is malformed
            ResolutionError: If the current repository cannot be determined
            FilesystemError: If the cache entry cannot be inspected or replaced
            CloneError: If the clone fails; the existing entry is kept
            CancelledError: If ``cancel`` fires while waiting
        """
        repo = self.resolve(identity)
        output_path = self.entry_path(repo)

        if self._is_fresh(output_path, ttl, cancel):
            logger.debug(f"Repository cache found for {repo} at {output_path}")
            return output_path

        self._refresh(repo, output_path, cancel)
        return output_path

    def _is_fresh(
        self, output_path: Path, ttl: Optional[float], cancel: Optional[CancelToken]
    ) -> bool:
        with self.locks.shared(output_path, cancel):
            try:
                info = os.stat(output_path)
            except FileNotFoundError:
                return False
            except OSError as e:
                raise FilesystemError(str(output_path), "stat", e) from e

        age = self.clock() - info.st_mtime
        return age < self.effective_ttl(ttl)

    def _refresh(
        self, repo: RepoIdentity, output_path: Path, cancel: Optional[CancelToken]
    ) -> None:
        raise_if_cancelled(cancel, f"refreshing {repo}")

        try:
            temp_dir = Path(tempfile.mkdtemp(prefix=f"{APP_NAME}-"))
        except OSError as e:
            raise FilesystemError(
                tempfile.gettempdir(), "create a temporary directory", e
            ) from e
        staging_dir: Optional[Path] = None

        try:
            try:
                self.cloner.clone(repo, temp_dir, timeout=remaining(cancel))
            except RepoCacheError:
                raise
            except Exception as e:
                logger.error(f"Failed to clone {repo}: {e}")
                raise CloneError(repo.full_name, e) from e

            try:
                make_dirs(output_path.parent, self.dir_mode)
            except OSError as e:
                raise FilesystemError(
                    str(output_path.parent), "create the parent directory", e
                ) from e

            source = temp_dir
            if not _same_device(temp_dir, output_path.parent):
                staging_dir = output_path.parent / f".{output_path.name}.{uuid.uuid4().hex}"
                logger.debug(f"Staging clone of {repo} at {staging_dir}")
                try:
                    shutil.copytree(temp_dir, staging_dir, symlinks=True)
                except OSError as e:
                    raise FilesystemError(str(staging_dir), "stage the clone", e) from e
                source = staging_dir

            retired = None
            with self.locks.exclusive(output_path, cancel):
                retired = self._swap(source, output_path)

            logger.info(f"Refreshed repository cache for {repo} at {output_path}")
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
            if staging_dir is not None:
                shutil.rmtree(staging_dir, ignore_errors=True)

        if retired is not None:
            try:
                _remove_entry(retired)
            except FilesystemError as e:
                logger.warning(f"Could not remove the replaced cache entry: {e}")

    def _swap(self, source: Path, output_path: Path) -> Optional[Path]:
        """
        Replace ``output_path`` with ``source``. Call with the exclusive lock held.

        The old entry is renamed to a hidden sibling first, so the path only
        ever holds the complete old clone or the complete new one. On failure
        the old entry is put back.

        Returns:
            The hidden path of the old entry, or None if there was none
        """
        retired: Optional[Path] = output_path.parent / (
            f".{output_path.name}.old.{uuid.uuid4().hex}"
        )
        try:
            os.rename(output_path, retired)
        except FileNotFoundError:
            retired = None
        except OSError as e:
            raise FilesystemError(str(output_path), "move aside", e) from e

        try:
            os.rename(source, output_path)
        except OSError as e:
            if retired is not None:
                try:
                    os.rename(retired, output_path)
                except OSError as restore_error:
                    logger.error(
                        f"Could not restore {output_path} from {retired}: {restore_error}"
                    )
            raise FilesystemError(str(output_path), "rename the directory", e) from e

        # age counts from the swap, not from the start of the clone
        now = self.clock()
        try:
            os.utime(output_path, (now, now))
        except OSError as e:
            logger.warning(f"Could not update the modification time of {output_path}: {e}")

        return retired

    def list_entries(self, ttl: Optional[float] = None) -> List[CacheEntry]:
        """
        Describe the cached clones found under the cache root.

        Only directories at ``<root>/<owner>/<name>`` are reported; lock files
        and hidden staging directories are skipped. Nothing is locked or
        modified.
        """
        entries = []
        effective = self.effective_ttl(ttl)
        now = self.clock()

        for owner_dir in sorted(self.root.iterdir()):
            if not owner_dir.is_dir() or owner_dir.name.startswith("."):
                continue
            for repo_dir in sorted(owner_dir.iterdir()):
                if not repo_dir.is_dir() or repo_dir.name.startswith("."):
                    continue
                try:
                    age = now - repo_dir.stat().st_mtime
                except FileNotFoundError:
                    # swapped out while listing
                    continue
                entries.append(
                    CacheEntry(
                        owner=owner_dir.name,
                        name=repo_dir.name,
                        path=repo_dir,
                        age=age,
                        fresh=age < effective,
                    )
                )

        return entries


def _same_device(a: Path, b: Path) -> bool:
    try:
        return os.stat(a).st_dev == os.stat(b).st_dev
    except OSError:
        return False


def _remove_entry(path: Path) -> None:
    """Remove a cache entry; a missing entry is not an error."""
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise FilesystemError(str(path), "remove the directory", e) from e
