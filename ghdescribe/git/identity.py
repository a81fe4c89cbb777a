"""
Repository identities: parsing "OWNER/NAME" style IDs and discovering the
repository of the current working directory.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

from dulwich.errors import NotGitRepository
from dulwich.repo import Repo

from ghdescribe.exceptions import InvalidInputError, ResolutionError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "github.com"

# Characters allowed in an owner or repository name
_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class RepoIdentity:
    """An (owner, name) pair on a remote host."""

    owner: str
    name: str
    host: str = DEFAULT_HOST

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


def _check_part(part: str, repo_id: str) -> str:
    if not _SAFE_NAME_RE.match(part) or part in (".", ".."):
        raise InvalidInputError(f"invalid repository ID: {repo_id!r}")
    return part


def parse_repo_id(repo_id: str, default_host: str = DEFAULT_HOST) -> RepoIdentity:
    """
    Parse a repository ID into a RepoIdentity.

    Accepted forms:
        owner/name
        host/owner/name
        https://host/owner/name(.git)
        git@host:owner/name(.git)
        ssh://git@host/owner/name(.git)

    Args:
        repo_id: Repository ID or URL
        default_host: Host used when the ID does not name one

    Returns:
        The parsed identity

    Raises:
        InvalidInputError: If the ID is empty or malformed
    """
    raw = (repo_id or "").strip()
    if not raw:
        raise InvalidInputError("repository ID must be specified")

    host = default_host
    path = raw

    ssh_match = re.match(r"^[\w.-]+@([^:/]+):(.+)$", raw)
    if ssh_match:
        host, path = ssh_match.groups()
    elif "://" in raw:
        parsed = urlparse(raw)
        if not parsed.hostname:
            raise InvalidInputError(f"invalid repository URL: {raw!r}")
        host = parsed.hostname
        path = parsed.path

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]

    parts = path.split("/")
    if len(parts) == 3 and host == default_host and path == raw.strip("/"):
        host, parts = parts[0], parts[1:]
    if len(parts) != 2:
        raise InvalidInputError(
            f"expected the \"[HOST/]OWNER/REPO\" format, got {repo_id!r}"
        )

    owner, name = parts
    return RepoIdentity(
        owner=_check_part(owner, repo_id), name=_check_part(name, repo_id), host=host
    )


class IdentityResolver:
    """
    Resolves repository identities from IDs or from the ambient repository.

    The ambient repository is taken from the GH_REPO environment variable when
    set, otherwise from the ``origin`` remote of the git repository that
    contains the working directory.
    """

    def __init__(self, default_host: str = DEFAULT_HOST, remote: str = "origin"):
        self.default_host = default_host
        self.remote = remote

    def parse(self, repo_id: str) -> RepoIdentity:
        return parse_repo_id(repo_id, self.default_host)

    def current(self, start: Optional[Union[str, Path]] = None) -> RepoIdentity:
        """
        Identify the repository for the current context.

        Args:
            start: Directory to discover the repository from (defaults to cwd)

        Raises:
            ResolutionError: If no repository or remote URL can be found
        """
        env_repo = os.environ.get("GH_REPO", "").strip()
        if env_repo:
            try:
                return self.parse(env_repo)
            except InvalidInputError as e:
                raise ResolutionError(f"invalid GH_REPO value: {e}") from e

        start_dir = str(start) if start is not None else os.getcwd()
        try:
            repo = Repo.discover(start_dir)
        except NotGitRepository as e:
            raise ResolutionError(
                f"could not determine the current repository: {start_dir} is not "
                "inside a git repository, specify the repository ID"
            ) from e

        try:
            config = repo.get_config()
            try:
                remote_url = config.get((b"remote", self.remote.encode()), b"url")
            except KeyError:
                remote_url = None
        finally:
            repo.close()

        if not remote_url:
            raise ResolutionError(
                f"could not determine the current repository: no '{self.remote}' "
                f"remote in {repo.path}"
            )

        url = remote_url.decode("utf-8")
        logger.debug(f"Discovered remote {self.remote}={url} in {repo.path}")
        try:
            return self.parse(url)
        except InvalidInputError as e:
            raise ResolutionError(
                f"could not determine the current repository from {url}: {e}"
            ) from e
