"""Exception types for snaptest.

Setup errors (bad environment, bad arguments) abort immediately.
Probe errors are terminal test failures raised once a retry budget is spent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .executor import CommandResult


class SnapTestError(Exception):
    """Base class for all snaptest errors."""
    pass


class ConfigError(SnapTestError):
    """An environment override could not be parsed."""

    def __init__(self, name: str, value: str, expected: str):
        super().__init__(f"Invalid value for {name}: {value!r} (expected {expected})")
        self.name = name
        self.value = value


class ProbeError(SnapTestError):
    """Base class for failed probes."""
    pass


class ProbeTimeoutError(ProbeError):
    """Retry budget exhausted before the awaited condition became true."""

    def __init__(self, message: str, pending: Optional[list[str]] = None, attempts: int = 0):
        super().__init__(message)
        self.pending = list(pending or [])
        self.attempts = attempts


class PortNotOpenError(ProbeError):
    """No socket is listening on the port."""

    def __init__(self, port: str, reason: str = ""):
        msg = f"Port {port} is not open"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.port = port


class PortInUseError(ProbeError):
    """Something is already bound to a port that should be free."""

    def __init__(self, port: str):
        super().__init__(f"Port {port} is not available")
        self.port = port


class BindingPolicyError(ProbeError):
    """One or more ports violate the expected interface binding."""

    def __init__(self, failures: list[str]):
        super().__init__("; ".join(failures))
        self.failures = list(failures)


class CommandError(SnapTestError):
    """An external command exited with a non-zero status."""

    def __init__(self, result: "CommandResult"):
        detail = (result.stderr or result.stdout).strip()
        msg = f"Command failed (exit={result.returncode}): {result.command}"
        if detail:
            msg = f"{msg}\n{detail}"
        super().__init__(msg)
        self.result = result


class ListingError(SnapTestError):
    """The socket listing utility could not produce a usable answer."""
    pass
