"""Listing of sockets bound to a local port.

The prober only needs the raw listing text for one port, so the lister is
a small interface with a subprocess implementation (lsof) and an in-memory
one for tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Mapping, Optional

from .errors import ListingError
from .executor import CommandResult, ShellExecutor

logger = logging.getLogger(__name__)

# Exit codes bash uses when the command itself cannot run
_SHELL_NOT_FOUND = 127
_SHELL_NOT_EXECUTABLE = 126


class SocketLister(ABC):
    """Reports sockets bound to a port, one per line, lsof style."""

    @abstractmethod
    def list_port(self, port: str) -> str:
        """Return the listing for *port*, or an empty string when nothing is bound."""


class LsofSocketLister(SocketLister):
    """Runs ``lsof -nPi :<port>``.

    lsof exits with 1 and prints nothing when no socket matches; that is
    reported as an empty listing. Any other failure raises ListingError,
    unless tolerate_errors is set, in which case it is also reported as an
    empty listing.
    """

    def __init__(
        self,
        executor: Optional[ShellExecutor] = None,
        use_sudo: bool = True,
        tolerate_errors: bool = False,
    ):
        self.executor = executor or ShellExecutor()
        self.use_sudo = use_sudo
        self.tolerate_errors = tolerate_errors

    def command(self, port: str) -> str:
        cmd = f"lsof -nPi :{port}"
        if self.use_sudo:
            cmd = f"sudo {cmd}"
        return cmd

    def list_port(self, port: str) -> str:
        result = self.executor.run(self.command(port))
        if result.ok:
            return result.stdout

        if self._is_empty_match(result):
            return ""

        if self.tolerate_errors:
            logger.warning("Ignoring failed socket listing for port %s: %s", port, result.stderr.strip())
            return ""

        raise ListingError(
            f"Listing sockets for port {port} failed (exit={result.returncode}): "
            f"{result.stderr.strip() or result.command}"
        )

    @staticmethod
    def _is_empty_match(result: CommandResult) -> bool:
        if result.returncode in (_SHELL_NOT_FOUND, _SHELL_NOT_EXECUTABLE):
            return False
        if result.returncode != 1 or result.stdout.strip():
            return False
        # sudo reports its own failures with exit 1 as well
        return not any(line.startswith("sudo:") for line in result.stderr.splitlines())


class StaticSocketLister(SocketLister):
    """In-memory lister backed by a port -> listing text mapping."""

    def __init__(self, listings: Optional[Mapping[str, str]] = None):
        self.listings: dict[str, str] = dict(listings or {})
        self.calls: list[str] = []

    def set(self, port: str, listing: str) -> None:
        self.listings[str(port)] = listing

    def list_port(self, port: str) -> str:
        self.calls.append(port)
        return self.listings.get(str(port), "")


def listen_line(command: str, addr: str, port: str, pid: int = 1234) -> str:
    """Format one lsof-style LISTEN row, handy for building fake listings."""
    return f"{command} {pid} root 3u IPv4 12345 0t0 TCP {addr}:{port} (LISTEN)"
