import logging
import sys
from typing import Optional, Union


logger = logging.getLogger("ghdescribe")

_handler: Optional[logging.Handler] = None

LOG_LEVELS = ["debug", "info", "warning", "error"]


def configure_logging(level: Union[str, int] = logging.INFO):
    """
    Configures the ghdescribe logger to write to stderr at the given level.

    Standard output is left to command results. The handler is rebuilt on every
    call so that it always writes to the current ``sys.stderr``.
    """
    global _handler

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if _handler is not None:
        logger.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.setLevel(level)
    logger.addHandler(_handler)
