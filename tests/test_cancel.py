import time

import pytest

from ghdescribe.cancel import CancelToken, raise_if_cancelled, remaining
from ghdescribe.exceptions import CancelledError, RepoCacheError


@pytest.mark.short
def test_explicit_cancel():
    token = CancelToken()
    assert not token.cancelled
    assert token.remaining() is None

    token.cancel()

    assert token.cancelled
    with pytest.raises(CancelledError) as excinfo:
        token.raise_if_cancelled("cloning")
    assert str(excinfo.value) == "cancelled while cloning"


@pytest.mark.short
def test_deadline():
    token = CancelToken(timeout=0.05)
    assert not token.cancelled
    assert 0 < token.remaining() <= 0.05

    time.sleep(0.1)

    assert token.cancelled
    assert token.remaining() == 0.0


@pytest.mark.short
def test_helpers_accept_no_token():
    raise_if_cancelled(None, "anything")
    assert remaining(None) is None


@pytest.mark.short
def test_cancelled_error_is_repo_cache_error():
    assert issubclass(CancelledError, RepoCacheError)
