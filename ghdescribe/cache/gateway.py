"""Running git subcommands against cached clones."""

import logging
from typing import Optional, Sequence

from ghdescribe.cancel import CancelToken, raise_if_cancelled, remaining
from ghdescribe.exceptions import CommandError, InvalidInputError, RepoCacheError
from ghdescribe.git.runner import GitCommandRunner

from .manager import IdentityLike, RepoCacheManager

logger = logging.getLogger(__name__)


class CommandGateway:
    """
    Runs a git subcommand in the cached clone of a repository.

    The clone is refreshed first when it is stale. The command then runs while
    the entry's shared lock is held, so a concurrent refresh cannot swap the
    directory out from under it: the swap waits until every running command
    has finished.

    Args:
        manager: Cache manager providing the clone and the lock registry
        runner: Object with ``run(working_dir, subcommand, args, timeout=None)``
    """

    def __init__(self, manager: RepoCacheManager, runner=None):
        self.manager = manager
        self.runner = runner if runner is not None else GitCommandRunner()

    def run(
        self,
        identity: IdentityLike,
        subcommand: str,
        args: Sequence[str] = (),
        ttl: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        """
        Run ``git <subcommand> <args...>`` in the cached clone of ``identity``.

        Returns:
            The command's standard output with surrounding whitespace removed

        Raises:
            InvalidInputError: If ``subcommand`` is empty
            CommandError: If git exits non-zero or cannot be started
            RepoCacheError: Any error from obtaining the cached clone
        """
        subcommand = (subcommand or "").strip()
        if not subcommand:
            raise InvalidInputError("git subcommand must be specified")

        repo = self.manager.resolve(identity)
        cloned_dir = self.manager.ensure_fresh(repo, ttl=ttl, cancel=cancel)
        command = [subcommand, *args]

        with self.manager.locks.shared(cloned_dir, cancel):
            raise_if_cancelled(cancel, f"running git {subcommand} for {repo}")
            try:
                result = self.runner.run(
                    cloned_dir, subcommand, list(args), timeout=remaining(cancel)
                )
            except RepoCacheError:
                raise
            except Exception as e:
                raise CommandError(repo.full_name, command, stderr=str(e)) from e

        if result.returncode != 0:
            logger.debug(f"git {subcommand} exited with {result.returncode} for {repo}")
            raise CommandError(
                repo.full_name, command, result.returncode, result.stderr
            )

        return result.stdout.strip()

    def describe(
        self,
        identity: IdentityLike,
        *args: str,
        ttl: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        return self.run(identity, "describe", args, ttl=ttl, cancel=cancel)

    def rev_parse(
        self,
        identity: IdentityLike,
        *args: str,
        ttl: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        return self.run(identity, "rev-parse", args, ttl=ttl, cancel=cancel)

    def rev_list(
        self,
        identity: IdentityLike,
        *args: str,
        ttl: Optional[float] = None,
        cancel: Optional[CancelToken] = None,
    ) -> str:
        return self.run(identity, "rev-list", args, ttl=ttl, cancel=cancel)
