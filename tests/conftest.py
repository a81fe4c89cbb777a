import io
import logging
import shutil

import pytest
from dulwich import porcelain

from ghdescribe.cache import RepoCacheManager

from .fakes import FakeClock, FakeCloner, FakeRunner

TAGGED_TAG = "v4.1.7"


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("ghdescribe")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cloner():
    return FakeCloner()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def manager(cache_dir, cloner, clock):
    """Cache manager with a fake cloner and a fake clock, TTL 300s."""
    return RepoCacheManager(
        cache_dir=cache_dir, ttl=300, cloner=cloner, clock=clock, interprocess=False
    )


# git fixtures

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git executable not available"
)


@pytest.fixture
def remote_root(tmp_path):
    """
    A directory of local "remote" repositories laid out as <owner>/<name>.

    Contains org/repo with two commits; the first one is tagged v4.1.7.
    Yields (remote_root, tagged_sha, head_sha).
    """
    root = tmp_path / "remote"
    repo_dir = root / "org" / "repo"
    repo_dir.mkdir(parents=True)
    porcelain.init(str(repo_dir))

    (repo_dir / "hello.txt").write_text("hello")
    porcelain.add(str(repo_dir), paths=[str(repo_dir / "hello.txt")])
    tagged_sha = porcelain.commit(
        str(repo_dir),
        message=b"initial commit",
        author=b"Test <test@test>",
        committer=b"Test <test@test>",
    ).decode("ascii")
    porcelain.tag_create(str(repo_dir), TAGGED_TAG.encode("ascii"))

    (repo_dir / "hello.txt").write_text("hello again")
    porcelain.add(str(repo_dir), paths=[str(repo_dir / "hello.txt")])
    head_sha = porcelain.commit(
        str(repo_dir),
        message=b"second commit",
        author=b"Test <test@test>",
        committer=b"Test <test@test>",
    ).decode("ascii")

    return root, tagged_sha, head_sha
