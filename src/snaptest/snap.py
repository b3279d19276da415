"""Control of the snap under test through the ``snap`` and ``journalctl`` CLIs."""

from __future__ import annotations

import logging
import shlex
from datetime import datetime
from typing import Optional

from .config import TestConfig
from .executor import CommandResult, ShellExecutor

logger = logging.getLogger(__name__)

JOURNAL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class SnapClient:
    """Thin wrapper over ``sudo snap ...`` commands."""

    def __init__(self, executor: Optional[ShellExecutor] = None, use_sudo: bool = True):
        self.executor = executor or ShellExecutor()
        self.use_sudo = use_sudo

    def _sudo(self, cmd: str) -> str:
        return f"sudo {cmd}" if self.use_sudo else cmd

    def _snap(self, *args: str) -> CommandResult:
        cmd = self._sudo("snap " + " ".join(shlex.quote(a) for a in args))
        return self.executor.run(cmd).check()

    def start(self, name: str) -> None:
        logger.info("Starting snap services: %s", name)
        self._snap("start", name)

    def stop(self, name: str) -> None:
        logger.info("Stopping snap services: %s", name)
        self._snap("stop", name)

    def install(self, name: str, config: TestConfig) -> None:
        """Install from the local snap file when configured, else from the channel."""
        if config.uses_local_snap:
            logger.info("Installing %s from local file %s", name, config.local_service_snap)
            self._snap("install", "--dangerous", config.local_service_snap)
        else:
            logger.info("Installing %s from channel %s", name, config.service_channel)
            self._snap("install", name, f"--channel={config.service_channel}")

    def remove(self, name: str, config: TestConfig) -> bool:
        """Remove the snap unless teardown removal is disabled. Returns True if removed."""
        if not config.teardown:
            logger.info("Skipping removal of %s (teardown disabled)", name)
            return False
        self._snap("remove", "--purge", name)
        return True

    def logs(self, name: str, since: datetime) -> str:
        """Journal lines mentioning *name* written since *since*.

        An empty journal match is not an error.
        """
        ts = since.strftime(JOURNAL_TIME_FORMAT)
        cmd = (
            self._sudo(f"journalctl --since {shlex.quote(ts)} --no-pager")
            + f" | grep {shlex.quote(name)} || true"
        )
        return self.executor.run(cmd).stdout


class SnapLogSource:
    """Log source reading one snap's journal lines."""

    def __init__(self, client: SnapClient, name: str):
        self.client = client
        self.name = name

    def __call__(self, since: datetime) -> str:
        return self.client.logs(self.name, since)

    def __repr__(self) -> str:
        return f"SnapLogSource({self.name!r})"
