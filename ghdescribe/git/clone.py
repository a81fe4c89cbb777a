"""Bare clones of remote repositories through the git command line."""

import logging
from pathlib import Path
from typing import Optional, Union

from git import Git

from .identity import RepoIdentity

logger = logging.getLogger(__name__)

DEFAULT_URL_TEMPLATE = "https://{host}/{owner}/{name}.git"


class GitCloner:
    """
    Clones a repository as a bare repository into a destination directory.

    The remote URL is built from a template with ``{host}``, ``{owner}`` and
    ``{name}`` placeholders, so a GitHub Enterprise host or a local mirror
    directory can be used instead of github.com. Authentication is left to
    git's own credential helpers; prompts are disabled so a missing
    credential fails instead of blocking.

    Args:
        url_template: Template for the remote URL
        env: Extra environment variables for the git process
    """

    def __init__(
        self, url_template: str = DEFAULT_URL_TEMPLATE, env: Optional[dict] = None
    ):
        self.url_template = url_template
        self.env = {"GIT_TERMINAL_PROMPT": "0"}
        if env:
            self.env.update(env)

    def url_for(self, identity: RepoIdentity) -> str:
        return self.url_template.format(
            host=identity.host, owner=identity.owner, name=identity.name
        )

    def clone(
        self,
        identity: RepoIdentity,
        destination: Union[str, Path],
        timeout: Optional[float] = None,
    ) -> None:
        """
        Clone ``identity`` into ``destination`` with ``git clone --bare``.

        Args:
            identity: Repository to clone
            destination: Empty directory to clone into
            timeout: Kill the git process after this many seconds

        Raises:
            git.exc.GitCommandError: If git exits non-zero
            git.exc.GitCommandNotFound: If git is not installed
        """
        url = self.url_for(identity)
        logger.info(f"Cloning {url} to {destination}")
        Git().clone(
            "--bare",
            "--quiet",
            "--",
            url,
            str(destination),
            env=self.env,
            kill_after_timeout=timeout,
        )
