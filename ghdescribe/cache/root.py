"""Location of the directory that holds every cache entry."""

import logging
from pathlib import Path
from typing import Optional, Union

from ghdescribe.config import APP_NAME, user_cache_dir
from ghdescribe.exceptions import FilesystemError

logger = logging.getLogger(__name__)

# rwxr-x---
DEFAULT_DIR_MODE = 0o750


def resolve_cache_root(
    explicit_path: Optional[Union[str, Path]] = None, mode: int = DEFAULT_DIR_MODE
) -> Path:
    """
    Compute and create the cache root.

    Layout:
        <explicit_path or user cache dir>/gh-git-describe/

    The namespace segment is appended in both cases so the cache never mixes
    with unrelated content of a shared directory.

    Args:
        explicit_path: Base directory; blank or None selects the per-user cache dir
        mode: Permission mode for created directories

    Returns:
        Absolute path of the cache root

    Raises:
        FilesystemError: If the base directory cannot be determined or created
    """
    base = str(explicit_path).strip() if explicit_path is not None else ""

    if base:
        base_dir = Path(base).expanduser()
    else:
        base_dir = user_cache_dir()
        if base_dir is None:
            raise FilesystemError(
                "<user cache dir>", "locate", "no home or cache directory is set"
            )

    cache_root = base_dir / APP_NAME
    try:
        make_dirs(cache_root, mode)
    except OSError as e:
        raise FilesystemError(str(cache_root), "create the cache directory", e) from e

    cache_root = cache_root.resolve()
    logger.debug(f"Using cache root {cache_root}")
    return cache_root


def make_dirs(path: Path, mode: int = DEFAULT_DIR_MODE) -> None:
    """
    Create ``path`` and its missing parents, each one with ``mode``.

    ``Path.mkdir(parents=True)`` applies ``mode`` to the last directory only.
    Existing directories are left as they are.
    """
    missing = []
    current = path
    while not current.exists():
        missing.append(current)
        current = current.parent

    for directory in reversed(missing):
        directory.mkdir(mode=mode, exist_ok=True)
