"""
Git collaborators of the repository cache: identity parsing and discovery,
bare cloning, and running git subcommands.
"""

from .clone import DEFAULT_URL_TEMPLATE, GitCloner
from .identity import IdentityResolver, RepoIdentity, parse_repo_id
from .runner import CommandResult, GitCommandRunner

__all__ = [
    "CommandResult",
    "DEFAULT_URL_TEMPLATE",
    "GitCloner",
    "GitCommandRunner",
    "IdentityResolver",
    "RepoIdentity",
    "parse_repo_id",
]
