"""Tests for running git subcommands through the cache."""

import threading

import pytest

from ghdescribe.cache import CommandGateway, RepoCacheManager
from ghdescribe.cancel import CancelToken
from ghdescribe.exceptions import (
    CancelledError,
    CloneError,
    CommandError,
    InvalidInputError,
)
from ghdescribe.git.runner import CommandResult

from ..fakes import FakeCloner, FakeRunner, read_generation

SHA = "692973e3d937129bcbf40652eb9f2f61becf3332"
INVALID_SHA = "0123456789abcdef0123456789abcdef01234567"


def describe_response(args):
    if SHA in args:
        return CommandResult(stdout="v4.1.7\n", stderr="", returncode=0)
    return CommandResult(
        stdout="", stderr=f"fatal: Not a valid object name {args[-1]}", returncode=128
    )


@pytest.fixture
def gateway(manager, runner):
    runner.responses["describe"] = describe_response
    return CommandGateway(manager, runner)


class TestRun:
    def test_describe_tagged_commit(self, gateway, cloner, runner):
        assert gateway.describe("org/repo", "--tags", SHA) == "v4.1.7"
        assert gateway.describe("org/repo", "--tags", SHA) == "v4.1.7"

        assert cloner.count == 1
        working_dir, subcommand, args = runner.calls[0]
        assert working_dir == gateway.manager.root / "org" / "repo"
        assert subcommand == "describe"
        assert args == ["--tags", SHA]

    def test_describe_invalid_sha(self, gateway):
        with pytest.raises(CommandError) as excinfo:
            gateway.describe("org/repo", "--tags", INVALID_SHA)

        error = excinfo.value
        assert error.returncode == 128
        assert "Not a valid object name" in error.stderr
        assert error.repo == "org/repo"
        assert error.command == ["describe", "--tags", INVALID_SHA]

    def test_output_is_stripped(self, gateway, runner):
        runner.responses["rev-parse"] = CommandResult(
            stdout=f"  {SHA}\n\n", stderr="", returncode=0
        )

        assert gateway.rev_parse("org/repo", "v4.1.7") == SHA

    def test_rev_list(self, gateway, runner):
        runner.responses["rev-list"] = lambda args: CommandResult(
            stdout=f"{SHA}\n", stderr="", returncode=0
        )

        assert gateway.rev_list("org/repo", "-n", "1", "v4.1.7") == SHA
        assert runner.calls[-1][2] == ["-n", "1", "v4.1.7"]

    @pytest.mark.parametrize("subcommand", ["", "   ", None])
    def test_empty_subcommand(self, gateway, cloner, subcommand):
        with pytest.raises(InvalidInputError):
            gateway.run("org/repo", subcommand)
        assert cloner.count == 0

    def test_runner_failure_is_command_error(self, manager):
        class BrokenRunner:
            def run(self, working_dir, subcommand, args=(), timeout=None):
                raise OSError("git: command not found")

        gateway = CommandGateway(manager, BrokenRunner())

        with pytest.raises(CommandError) as excinfo:
            gateway.run("org/repo", "describe")
        assert "command not found" in excinfo.value.stderr

    def test_clone_error_propagates(self, manager, runner):
        manager.cloner = FakeCloner(error=RuntimeError("repository not found"))
        gateway = CommandGateway(manager, runner)

        with pytest.raises(CloneError):
            gateway.describe("org/repo", "--tags", SHA)
        assert runner.calls == []

    def test_ttl_override_is_passed_through(self, gateway, cloner, clock):
        gateway.describe("org/repo", "--tags", SHA)
        clock.advance(400)

        gateway.describe("org/repo", "--tags", SHA, ttl=1000)
        assert cloner.count == 1

        gateway.describe("org/repo", "--tags", SHA)
        assert cloner.count == 2


class TestLocking:
    def test_shared_lock_held_while_running(self, manager):
        observed = []

        def check(working_dir):
            # a swap would need the exclusive lock; it must not be available
            try:
                manager.locks.acquire_exclusive(working_dir, CancelToken(timeout=0.2))
            except CancelledError:
                observed.append("locked")
            else:
                manager.locks.release_exclusive(working_dir)
                observed.append("unlocked")

        gateway = CommandGateway(
            manager,
            FakeRunner(
                {"status": CommandResult("", "", 0)},
                check=check,
            ),
        )
        gateway.run("org/repo", "status")

        assert observed == ["locked"]

        # and released afterwards
        manager.locks.acquire_exclusive(
            manager.root / "org" / "repo", CancelToken(timeout=1)
        )
        manager.locks.release_exclusive(manager.root / "org" / "repo")

    def test_cancelled_while_waiting_for_swap(self, manager, runner):
        runner.responses["describe"] = describe_response
        gateway = CommandGateway(manager, runner)
        path = manager.ensure_fresh("org/repo")

        manager.locks.acquire_exclusive(path)
        try:
            with pytest.raises(CancelledError):
                gateway.describe("org/repo", "--tags", SHA, cancel=CancelToken(0.2))
        finally:
            manager.locks.release_exclusive(path)
        assert runner.calls == []

    def test_commands_never_see_a_partial_entry(self, cache_dir, clock):
        """Readers and refreshes interleave; every command sees a complete clone."""
        manager = RepoCacheManager(
            cache_dir=cache_dir, ttl=300, cloner=FakeCloner(), clock=clock
        )
        generations = []

        def check(working_dir):
            generations.append(read_generation(working_dir))

        runner = FakeRunner({"describe": describe_response}, check=check)
        gateway = CommandGateway(manager, runner)
        gateway.describe("org/repo", "--tags", SHA)

        errors = []
        stop = threading.Event()

        def reader():
            try:
                while not stop.is_set():
                    assert gateway.describe("org/repo", "--tags", SHA) == "v4.1.7"
            except Exception as e:
                errors.append(e)
                stop.set()

        def refresher():
            try:
                for _ in range(20):
                    # ttl <= 0 falls back to the default, so force staleness by time
                    clock.advance(1000)
                    manager.ensure_fresh("org/repo")
            except Exception as e:
                errors.append(e)
            finally:
                stop.set()

        threads = [threading.Thread(target=reader) for _ in range(4)]
        threads.append(threading.Thread(target=refresher))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        assert len(generations) > 1
        assert manager.cloner.count > 1
