"""Log artifacts and log polling for integration tests."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from .errors import ProbeTimeoutError
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = "logs"

# Returns log text written after the given time
LogSource = Callable[[datetime], str]


def log_file_name(
    test_name: Optional[str],
    label: str,
    log_dir: Union[str, Path] = DEFAULT_LOG_DIR,
) -> Path:
    """Path of the artifact for *label*: ``<log_dir>/<test-name>-<label>.log``.

    Slashes in the test name become dashes. Without a test name the file is
    just ``<label>.log``.
    """
    file_name = f"{label}.log"
    if test_name:
        file_name = f"{test_name.replace('/', '-')}-{file_name}"
    return Path(log_dir) / file_name


def write_log_file(
    test_name: Optional[str],
    label: str,
    content: str,
    log_dir: Union[str, Path] = DEFAULT_LOG_DIR,
) -> Path:
    path = log_file_name(test_name, label, log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.debug("Wrote %d chars to %s", len(content), path)
    return path


def wait_for_log_message(
    source: LogSource,
    expected: str,
    since: datetime,
    policy: Optional[RetryPolicy] = None,
) -> int:
    """Poll *source* until its output contains *expected*.

    Each round sleeps for the policy interval first, then reads the logs
    written after *since*. Returns the attempt that matched; raises
    ProbeTimeoutError after ``policy.max_attempts`` misses.
    """
    policy = policy or RetryPolicy(max_attempts=10)
    attempts = policy.max_attempts

    for i in range(1, attempts + 1):
        policy.wait()
        logger.info("Retry %d/%d: Waiting for expected content in logs: %s", i, attempts, expected)

        if expected in source(since):
            logger.info("Found expected content in logs: %s", expected)
            return i

    raise ProbeTimeoutError(
        f"Time out: reached max {attempts} retries waiting for log content: {expected!r}",
        pending=[expected],
        attempts=attempts,
    )
