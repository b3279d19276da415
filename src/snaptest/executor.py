"""Shell command execution for the system utilities snaptest drives."""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Optional

from .errors import CommandError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of a finished shell command."""
    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> "CommandResult":
        """Raise CommandError unless the command exited with 0."""
        if not self.ok:
            raise CommandError(self)
        return self


class ShellExecutor:
    """Runs commands through ``bash -c`` and captures their output."""

    def __init__(self, shell: str = "bash", timeout: Optional[float] = 300):
        self.shell = shell
        self.timeout = timeout

    def run(self, command: str, timeout: Optional[float] = None) -> CommandResult:
        limit = timeout if timeout is not None else self.timeout
        logger.debug("Running: %s (timeout=%ss)", command, limit)
        t0 = time.monotonic()

        try:
            proc = subprocess.run(
                [self.shell, "-c", command],
                capture_output=True,
                text=True,
                timeout=limit,
            )
        except subprocess.TimeoutExpired as e:
            elapsed = time.monotonic() - t0
            logger.error("Command timed out after %.1fs: %s", elapsed, command)
            stdout = e.stdout.decode() if isinstance(e.stdout, bytes) else (e.stdout or "")
            return CommandResult(command, -9, stdout, f"Timed out after {elapsed:.0f}s")

        elapsed = time.monotonic() - t0
        result = CommandResult(command, proc.returncode, proc.stdout, proc.stderr)
        if result.ok:
            logger.debug("Command succeeded in %.1fs: %s", elapsed, command)
        else:
            logger.warning(
                "Command failed (exit=%d) in %.1fs: %s\n%s",
                proc.returncode, elapsed, command, proc.stderr.strip(),
            )
        return result
