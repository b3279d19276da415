"""Tests for socket listers."""

import pytest

from snaptest.errors import ListingError
from snaptest.executor import CommandResult
from snaptest.listing import LsofSocketLister, StaticSocketLister, listen_line


class RecordingExecutor:
    def __init__(self, result: CommandResult):
        self.result = result
        self.commands = []

    def run(self, command, timeout=None):
        self.commands.append(command)
        return CommandResult(command, self.result.returncode, self.result.stdout, self.result.stderr)


LISTING = "COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME\n" + listen_line("chip-tool", "127.0.0.1", "5550")


def test_lsof_command_with_and_without_sudo():
    assert LsofSocketLister(RecordingExecutor(CommandResult("", 0))).command("5550") == "sudo lsof -nPi :5550"
    assert LsofSocketLister(RecordingExecutor(CommandResult("", 0)), use_sudo=False).command("5550") == "lsof -nPi :5550"


def test_lsof_returns_stdout():
    executor = RecordingExecutor(CommandResult("", 0, LISTING))
    lister = LsofSocketLister(executor)

    assert lister.list_port("5550") == LISTING
    assert executor.commands == ["sudo lsof -nPi :5550"]


def test_lsof_no_match_is_empty_listing():
    lister = LsofSocketLister(RecordingExecutor(CommandResult("", 1)))
    assert lister.list_port("5550") == ""


def test_lsof_missing_binary_is_surfaced():
    executor = RecordingExecutor(CommandResult("", 127, "", "bash: lsof: command not found"))
    with pytest.raises(ListingError) as exc:
        LsofSocketLister(executor).list_port("5550")
    assert "command not found" in str(exc.value)


def test_sudo_failure_is_surfaced():
    executor = RecordingExecutor(CommandResult("", 1, "", "sudo: a password is required"))
    with pytest.raises(ListingError):
        LsofSocketLister(executor).list_port("5550")


def test_tolerate_errors_reports_empty_listing():
    executor = RecordingExecutor(CommandResult("", 127, "", "bash: lsof: command not found"))
    lister = LsofSocketLister(executor, tolerate_errors=True)
    assert lister.list_port("5550") == ""


def test_static_lister():
    lister = StaticSocketLister({"5550": LISTING})
    lister.set(8080, "x")

    assert lister.list_port("5550") == LISTING
    assert lister.list_port("8080") == "x"
    assert lister.list_port("9999") == ""
    assert lister.calls == ["5550", "8080", "9999"]


def test_listen_line_format():
    assert listen_line("svc", "*", "80", pid=7).endswith("TCP *:80 (LISTEN)")
