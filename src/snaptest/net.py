"""Port probing for services under test.

Ports are handled as strings ("5550") the way they appear in lsof output
and in test tables.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from .errors import BindingPolicyError, PortInUseError, PortNotOpenError, ProbeTimeoutError
from .listing import LsofSocketLister, SocketLister
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

ALL_INTERFACES = "*"
LOOPBACK = "127.0.0.1"

DEFAULT_HOST = "localhost"
DEFAULT_PORT_RETRIES = 60

# Known service ports, used for lookups and nicer messages
PORT_SERVICES: dict[str, str] = {
    "5550": "chip-tool",  # matter controller
}

# Opens and closes one TCP connection, raising OSError on failure
Dialer = Callable[[str, str, float], None]


def tcp_dial(host: str, port: str, timeout: float) -> None:
    with socket.create_connection((host, int(port)), timeout=timeout):
        pass


def service_port(service_name: str) -> str:
    """Look up the port of a known service."""
    for port, name in PORT_SERVICES.items():
        if name == service_name:
            return port
    raise KeyError(f"Found no port number for service: {service_name}")


def pretty_ports(ports: Iterable[str]) -> str:
    items = []
    for p in ports:
        name = PORT_SERVICES.get(p)
        items.append(f"{p} ({name})" if name else p)
    return ", ".join(items)


def listen_token(addr: str, port: str) -> str:
    # LISTEN excludes ESTABLISHED connections to the same port
    return f"{addr}:{port} (LISTEN)"


def _require_ports(ports: Sequence[str]) -> list[str]:
    if not ports:
        raise ValueError("No ports given as input")
    return [str(p) for p in ports]


class PortProber:
    """Checks that ports accept connections and are bound the expected way."""

    def __init__(
        self,
        lister: Optional[SocketLister] = None,
        policy: Optional[RetryPolicy] = None,
        host: str = DEFAULT_HOST,
        dialer: Dialer = tcp_dial,
    ):
        self.lister = lister or LsofSocketLister()
        self.policy = policy or RetryPolicy(max_attempts=DEFAULT_PORT_RETRIES, interval=1.0, timeout=2.0)
        self.host = host
        self.dialer = dialer

    def _dial(self, port: str) -> Optional[OSError]:
        try:
            self.dialer(self.host, port, self.policy.timeout)
        except OSError as e:
            return e
        return None

    def wait_online(self, ports: Sequence[str], max_retries: Optional[int] = None) -> int:
        """Dial the ports until all of them have accepted a connection.

        A port is dialed until it succeeds once. Returns the number of
        rounds used; raises ProbeTimeoutError naming the ports still closed
        after *max_retries* rounds.
        """
        pending = _require_ports(ports)
        attempts = max_retries if max_retries is not None else self.policy.max_attempts
        if attempts < 1:
            raise ValueError(f"max_retries must be >= 1, got {attempts}")

        last_error: Optional[OSError] = None
        for i in range(1, attempts + 1):
            logger.info("Retry %d/%d: Waiting for ports: %s", i, attempts, pretty_ports(pending))

            still_closed = []
            for port in pending:
                err = self._dial(port)
                if err is not None:
                    still_closed.append(port)
                    last_error = err
            pending = still_closed

            if not pending:
                return i
            if i < attempts:
                self.policy.wait()

        msg = f"Time out: reached max {attempts} retries. Closed ports: {pretty_ports(pending)}"
        if last_error is not None:
            msg = f"{msg}. Error: {last_error}"
        raise ProbeTimeoutError(msg, pending=pending, attempts=attempts)

    def require_port_open(self, ports: Sequence[str]) -> None:
        """Single-shot dial of each port; all failures are reported together."""
        closed = []
        reasons = []
        for port in _require_ports(ports):
            err = self._dial(port)
            if err is not None:
                closed.append(port)
                reasons.append(f"{port}: {err}")
            else:
                logger.info("Port %s is open.", port)
        if closed:
            raise PortNotOpenError(", ".join(closed), "; ".join(reasons))

    def _listing(self, port: str) -> str:
        listing = self.lister.list_port(port)
        if not listing:
            raise PortNotOpenError(port)
        return listing

    def is_listen_interface(self, addr: str, port: str) -> bool:
        token = listen_token(addr, port)
        logger.debug("Looking for '%s'", token)
        return token in self._listing(port)

    def require_listen_all_interfaces(self, ports: Sequence[str], must_listen: bool) -> None:
        failures = []
        for port in _require_ports(ports):
            listening = self.is_listen_interface(ALL_INTERFACES, port)
            if must_listen and not listening:
                failures.append(f"Port {port} not listening to all interfaces")
            elif not must_listen and listening:
                failures.append(f"Port {port} is listening to all interfaces")
        if failures:
            raise BindingPolicyError(failures)

    def require_listen_loopback(self, ports: Sequence[str]) -> None:
        """Each port must listen on 127.0.0.1.

        Listening on other interfaces as well is not checked here.
        """
        failures = []
        for port in _require_ports(ports):
            if not self.is_listen_interface(LOOPBACK, port):
                failures.append(f"Port {port} is not restricted to listen on loopback interface")
        if failures:
            raise BindingPolicyError(failures)

    def check_loopback_binding(
        self,
        ports: Sequence[str],
        expect_all_interfaces: bool = False,
        max_retries: Optional[int] = None,
    ) -> None:
        ports = _require_ports(ports)
        self.wait_online(ports, max_retries)
        self.require_listen_all_interfaces(ports, expect_all_interfaces)
        self.require_listen_loopback(ports)

    def require_port_available(self, port: str) -> None:
        """Nothing may be bound to *port* yet."""
        port = str(port)
        if self.lister.list_port(port):
            raise PortInUseError(port)
        logger.info("Port %s is available.", port)


@dataclass
class NetCheck:
    """Network expectations for one snap."""
    start_snap: bool = False  # set when services aren't started by default
    open_ports: list[str] = field(default_factory=list)
    bind_loopback: list[str] = field(default_factory=list)


def run_net_checks(
    prober: PortProber,
    snap_name: str,
    check: NetCheck,
    snap_client=None,
    max_retries: Optional[int] = None,
) -> None:
    """Run the open-port and loopback-binding checks of *check*.

    With ``start_snap`` the snap is started first and always stopped again,
    also when starting it fails. Without *max_retries* the prober's own
    retry policy applies.
    """
    if check.start_snap and snap_client is None:
        raise ValueError("start_snap requires a snap client")

    try:
        if check.start_snap:
            snap_client.start(snap_name)
        if check.open_ports:
            prober.wait_online(check.open_ports, max_retries)
        if check.bind_loopback:
            prober.check_loopback_binding(check.bind_loopback, False, max_retries)
    finally:
        if check.start_snap:
            snap_client.stop(snap_name)
