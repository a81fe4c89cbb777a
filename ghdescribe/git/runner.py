"""Running git subcommands inside a cached clone."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from git import Git

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Captured outcome of one git invocation."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitCommandRunner:
    """
    Runs ``git <subcommand> <args...>`` with a repository as working directory.

    A non-zero exit status is reported in the result, not raised. Failures to
    start git at all (e.g. git not installed) propagate as GitPython errors.
    """

    def __init__(self, env: Optional[dict] = None):
        self.env = env

    def run(
        self,
        working_dir: Union[str, Path],
        subcommand: str,
        args: Sequence[str] = (),
        timeout: Optional[float] = None,
    ) -> CommandResult:
        command = [Git.GIT_PYTHON_GIT_EXECUTABLE or "git", subcommand, *args]
        logger.debug(f"Running: {' '.join(command)} (cwd={working_dir})")

        status, stdout, stderr = Git(str(working_dir)).execute(
            command,
            with_extended_output=True,
            with_exceptions=False,
            kill_after_timeout=timeout,
            env=self.env,
        )
        return CommandResult(stdout=stdout, stderr=stderr, returncode=status)
