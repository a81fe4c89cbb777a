"""
Per-path reader/writer locks for cache entries.

Every cache entry directory gets its own ReadWriteLock, created on first use
and kept for the lifetime of the registry. Commands reading an entry hold the
shared side; the swap that replaces an entry holds the exclusive side.

Optionally the exclusive side is also backed by a FileLock on ``<path>.lock``
so that swaps of the same entry are serialized across processes as well.
"""

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from filelock import FileLock, Timeout

from ghdescribe.cancel import CancelToken, raise_if_cancelled

logger = logging.getLogger(__name__)

# Wake-up interval while waiting with a cancel token
POLL_INTERVAL = 0.05

PathLike = Union[str, Path]


class ReadWriteLock:
    """
    A writer-preferring reader/writer lock.

    Any number of readers may hold the lock at once; a writer holds it alone.
    Once a writer is waiting, new readers queue behind it so that a steady
    stream of readers cannot starve a swap. The lock is not reentrant.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def _wait(self, cancel: Optional[CancelToken], what: str) -> None:
        if cancel is None:
            self._cond.wait()
            return
        raise_if_cancelled(cancel, what)
        self._cond.wait(POLL_INTERVAL)
        raise_if_cancelled(cancel, what)

    def acquire_read(self, cancel: Optional[CancelToken] = None) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._wait(cancel, "waiting for a shared lock")
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release of an unheld shared lock")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, cancel: Optional[CancelToken] = None) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._wait(cancel, "waiting for an exclusive lock")
            except BaseException:
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release of an unheld exclusive lock")
            self._writer = False
            self._cond.notify_all()


class _PathLock:
    def __init__(self, path: str, interprocess: bool):
        self.rw = ReadWriteLock()
        self.file_lock = FileLock(f"{path}.lock") if interprocess else None


class PathLockRegistry:
    """
    Maps a filesystem path to a reader/writer lock.

    Locks are created lazily and never removed, so the table holds one entry
    per distinct path ever touched. The registry mutex guards only the
    lookup-or-create; waiting on a path's lock happens outside it.

    Args:
        interprocess: Also take a FileLock next to the path for exclusive
            acquisitions. The parent directory of the path must exist.
    """

    def __init__(self, interprocess: bool = False):
        self.interprocess = interprocess
        self._mutex = threading.Lock()
        self._locks: Dict[str, _PathLock] = {}

    @staticmethod
    def _key(path: PathLike) -> str:
        return os.path.abspath(os.fspath(path))

    def _get_or_create(self, path: PathLike) -> _PathLock:
        key = self._key(path)
        with self._mutex:
            lock = self._locks.get(key)
            if lock is None:
                lock = _PathLock(key, self.interprocess)
                self._locks[key] = lock
            return lock

    def _lookup(self, path: PathLike) -> Optional[_PathLock]:
        with self._mutex:
            return self._locks.get(self._key(path))

    def __len__(self) -> int:
        with self._mutex:
            return len(self._locks)

    def __contains__(self, path: PathLike) -> bool:
        return self._lookup(path) is not None

    def acquire_shared(
        self, path: PathLike, cancel: Optional[CancelToken] = None
    ) -> None:
        self._get_or_create(path).rw.acquire_read(cancel)

    def release_shared(self, path: PathLike) -> None:
        lock = self._lookup(path)
        if lock is not None:
            lock.rw.release_read()

    def acquire_exclusive(
        self, path: PathLike, cancel: Optional[CancelToken] = None
    ) -> None:
        lock = self._get_or_create(path)
        lock.rw.acquire_write(cancel)
        if lock.file_lock is None:
            return
        try:
            _acquire_file_lock(lock.file_lock, cancel)
        except BaseException:
            lock.rw.release_write()
            raise

    def release_exclusive(self, path: PathLike) -> None:
        lock = self._lookup(path)
        if lock is None:
            return
        try:
            if lock.file_lock is not None and lock.file_lock.is_locked:
                lock.file_lock.release()
        finally:
            lock.rw.release_write()

    @contextmanager
    def shared(
        self, path: PathLike, cancel: Optional[CancelToken] = None
    ) -> Iterator[None]:
        self.acquire_shared(path, cancel)
        try:
            yield
        finally:
            self.release_shared(path)

    @contextmanager
    def exclusive(
        self, path: PathLike, cancel: Optional[CancelToken] = None
    ) -> Iterator[None]:
        self.acquire_exclusive(path, cancel)
        try:
            yield
        finally:
            self.release_exclusive(path)


def _acquire_file_lock(lock: FileLock, cancel: Optional[CancelToken]) -> None:
    if cancel is None:
        lock.acquire()
        return
    while True:
        raise_if_cancelled(cancel, f"waiting for {lock.lock_file}")
        try:
            lock.acquire(timeout=POLL_INTERVAL)
            return
        except Timeout:
            logger.debug(f"Waiting for lock file {lock.lock_file}")
