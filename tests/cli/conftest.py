import pytest

from ghdescribe.cli.utils import logging as cli_logging


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Detach the stderr handler bound to the CliRunner's stream after each test."""
    yield
    if cli_logging._handler is not None:
        cli_logging.logger.removeHandler(cli_logging._handler)
        cli_logging._handler = None
