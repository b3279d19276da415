"""Tests for snap control and command execution."""

from datetime import datetime

import pytest

from snaptest.config import TestConfig
from snaptest.errors import CommandError
from snaptest.executor import CommandResult, ShellExecutor
from snaptest.logs import wait_for_log_message
from snaptest.retry import RetryPolicy
from snaptest.snap import SnapClient, SnapLogSource


class RecordingExecutor:
    def __init__(self, returncode=0, stdout=""):
        self.returncode = returncode
        self.stdout = stdout
        self.commands = []

    def run(self, command, timeout=None):
        self.commands.append(command)
        return CommandResult(command, self.returncode, self.stdout, "boom" if self.returncode else "")


def test_start_and_stop():
    executor = RecordingExecutor()
    client = SnapClient(executor)

    client.start("edgexfoundry")
    client.stop("edgexfoundry")

    assert executor.commands == ["sudo snap start edgexfoundry", "sudo snap stop edgexfoundry"]


def test_failed_command_raises():
    client = SnapClient(RecordingExecutor(returncode=1))
    with pytest.raises(CommandError) as exc:
        client.start("svc")
    assert exc.value.result.returncode == 1
    assert "boom" in str(exc.value)


def test_install_from_channel():
    executor = RecordingExecutor()
    SnapClient(executor).install("svc", TestConfig(service_channel="2.0/beta"))
    assert executor.commands == ["sudo snap install svc --channel=2.0/beta"]


def test_install_local_snap_wins():
    executor = RecordingExecutor()
    config = TestConfig(service_channel="2.0/beta", local_service_snap="./svc_amd64.snap")
    SnapClient(executor).install("svc", config)
    assert executor.commands == ["sudo snap install --dangerous ./svc_amd64.snap"]


def test_remove_honours_teardown_toggle():
    executor = RecordingExecutor()
    client = SnapClient(executor, use_sudo=False)

    assert client.remove("svc", TestConfig(skip_teardown_removal=True)) is False
    assert executor.commands == []

    assert client.remove("svc", TestConfig()) is True
    assert executor.commands == ["snap remove --purge svc"]


def test_logs_query_journal_since():
    executor = RecordingExecutor(stdout="svc[1]: ready\n")
    client = SnapClient(executor)

    out = client.logs("svc", datetime(2024, 3, 1, 8, 30, 5))

    assert out == "svc[1]: ready\n"
    assert executor.commands == [
        "sudo journalctl --since '2024-03-01 08:30:05' --no-pager | grep svc || true"
    ]


def test_snap_log_source_with_wait(fake_sleep):
    executor = RecordingExecutor(stdout="svc[1]: Service started\n")
    source = SnapLogSource(SnapClient(executor), "svc")

    attempt = wait_for_log_message(
        source, "Service started", datetime.now(), RetryPolicy(max_attempts=3, sleep=fake_sleep)
    )

    assert attempt == 1
    assert repr(source) == "SnapLogSource('svc')"


def test_shell_executor_captures_output():
    result = ShellExecutor().run("echo out; echo err >&2; exit 3")
    assert result.returncode == 3
    assert result.stdout == "out\n"
    assert result.stderr == "err\n"
    assert not result.ok
    with pytest.raises(CommandError):
        result.check()


def test_shell_executor_timeout():
    result = ShellExecutor(timeout=0.2).run("sleep 5")
    assert result.returncode == -9
    assert "Timed out" in result.stderr


def test_retry_policy_validation():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    policy = RetryPolicy(max_attempts=3, interval=0.5)
    assert policy.with_attempts(7).max_attempts == 7
    assert policy.with_attempts(7).interval == 0.5
