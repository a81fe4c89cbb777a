"""
Exception classes for the repository cache.
"""

from typing import Optional, Sequence


class RepoCacheError(Exception):
    """Base exception for all repository cache errors."""

    pass


class InvalidInputError(RepoCacheError, ValueError):
    """Raised for an empty or unparseable repository ID or an empty subcommand."""

    pass


class ResolutionError(RepoCacheError):
    """Raised when the repository identity cannot be determined."""

    pass


class FilesystemError(RepoCacheError):
    """Raised when a stat, mkdir, remove or rename fails."""

    def __init__(self, path: str, operation: str, reason: object = ""):
        self.path = str(path)
        self.operation = operation
        message = f"failed to {operation} {self.path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CloneError(RepoCacheError):
    """Raised when cloning the remote repository fails."""

    def __init__(self, repo: str, reason: object = ""):
        self.repo = repo
        message = f"failed to clone the repository {repo}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CommandError(RepoCacheError):
    """Raised when a git command exits non-zero or cannot be run."""

    def __init__(
        self,
        repo: str,
        command: Sequence[str],
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.repo = repo
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        message = f"failed to run git {' '.join(self.command)} for {repo}"
        if returncode is not None:
            message += f": exit status {returncode}"
        if stderr:
            message += f", stderr={stderr.strip()}"
        super().__init__(message)


class CancelledError(RepoCacheError):
    """Raised when a cancellation token fires while waiting."""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"cancelled while {what}")
