"""snaptest – integration test helpers for snap packaged services"""

__version__ = "0.1.0"

from .config import TestConfig, load_config, parse_bool
from .errors import (
    BindingPolicyError,
    CommandError,
    ConfigError,
    ListingError,
    PortInUseError,
    PortNotOpenError,
    ProbeError,
    ProbeTimeoutError,
    SnapTestError,
)
from .executor import CommandResult, ShellExecutor
from .listing import LsofSocketLister, SocketLister, StaticSocketLister
from .logs import log_file_name, wait_for_log_message, write_log_file
from .net import (
    NetCheck,
    PortProber,
    pretty_ports,
    run_net_checks,
    service_port,
)
from .retry import RetryPolicy
from .snap import SnapClient, SnapLogSource

__all__ = [
    # Config
    "TestConfig",
    "load_config",
    "parse_bool",
    "RetryPolicy",
    # Errors
    "SnapTestError",
    "ConfigError",
    "ProbeError",
    "ProbeTimeoutError",
    "PortNotOpenError",
    "PortInUseError",
    "BindingPolicyError",
    "CommandError",
    "ListingError",
    # Commands
    "CommandResult",
    "ShellExecutor",
    "SnapClient",
    "SnapLogSource",
    # Logs
    "log_file_name",
    "write_log_file",
    "wait_for_log_message",
    # Network
    "SocketLister",
    "LsofSocketLister",
    "StaticSocketLister",
    "PortProber",
    "NetCheck",
    "run_net_checks",
    "service_port",
    "pretty_ports",
    "__version__",
]
