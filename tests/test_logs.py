"""Tests for log artifacts and log polling."""

import time
from datetime import datetime
from pathlib import Path

import pytest

from snaptest.errors import ProbeTimeoutError
from snaptest.logs import log_file_name, wait_for_log_message, write_log_file
from snaptest.retry import RetryPolicy


def test_log_file_name_with_test_name():
    assert log_file_name("T1", "foo") == Path("logs/T1-foo.log")


def test_log_file_name_replaces_slashes():
    assert log_file_name("TestNet/ports_open", "lsof") == Path("logs/TestNet-ports_open-lsof.log")


def test_log_file_name_without_test_name():
    assert log_file_name(None, "install") == Path("logs/install.log")


def test_write_log_file_creates_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    path = write_log_file("T1", "foo", "bar")

    assert path == Path("logs/T1-foo.log")
    assert (tmp_path / "logs" / "T1-foo.log").read_text() == "bar"


def test_write_log_file_custom_dir(tmp_path):
    path = write_log_file("suite/case", "config", "a=1\n", log_dir=tmp_path / "out")
    assert path == tmp_path / "out" / "suite-case-config.log"
    assert path.read_text() == "a=1\n"


def test_write_log_file_propagates_io_errors(tmp_path):
    blocker = tmp_path / "logs"
    blocker.write_text("not a directory")
    with pytest.raises(OSError):
        write_log_file("T1", "foo", "bar", log_dir=blocker)


class ScriptedLogs:
    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def __call__(self, since):
        self.calls.append(since)
        if self.outputs:
            return self.outputs.pop(0)
        return ""


def test_wait_for_log_message_matches_on_first_hit(fake_sleep):
    since = datetime(2024, 1, 1, 12, 0, 0)
    source = ScriptedLogs(["starting", "starting\nlistening on 5550", "never read"])
    policy = RetryPolicy(max_attempts=10, interval=1.0, sleep=fake_sleep)

    attempt = wait_for_log_message(source, "listening on 5550", since, policy)

    assert attempt == 2
    assert source.calls == [since, since]
    assert fake_sleep.calls == [1.0, 1.0]


def test_wait_for_log_message_fails_after_exactly_ten_attempts(fake_sleep):
    source = ScriptedLogs([])
    policy = RetryPolicy(max_attempts=10, interval=1.0, sleep=fake_sleep)

    with pytest.raises(ProbeTimeoutError) as exc:
        wait_for_log_message(source, "ready", datetime.now(), policy)

    assert len(source.calls) == 10
    assert len(fake_sleep.calls) == 10
    assert exc.value.attempts == 10
    assert exc.value.pending == ["ready"]
    assert "10 retries" in str(exc.value)


def test_wait_for_log_message_defaults_to_ten_attempts(monkeypatch):
    sleeps = []
    monkeypatch.setattr(time, "sleep", sleeps.append)
    source = ScriptedLogs([])

    with pytest.raises(ProbeTimeoutError) as exc:
        wait_for_log_message(source, "x", datetime.now())

    assert len(source.calls) == 10
    assert sleeps == [1.0] * 10
    assert exc.value.attempts == 10


def test_write_log_file_is_utf8(tmp_path):
    content = "ünïcode ✓ 日本\n"
    path = write_log_file("T1", "utf", content, log_dir=tmp_path)
    assert path.read_bytes() == content.encode("utf-8")
