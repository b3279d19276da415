"""pytest fixtures for snap integration tests.

Registered through the ``pytest11`` entry point, so installing snaptest is
enough to make the fixtures available.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from .config import TestConfig, load_config
from .listing import LsofSocketLister, SocketLister
from .logs import write_log_file
from .net import PortProber
from .snap import SnapClient


def nodeid_to_test_name(nodeid: str) -> str:
    """Hierarchical test name, e.g. ``TestNet/test_ports_open[5550]``.

    The module path is dropped and nested scopes are joined with slashes.
    """
    _, sep, rest = nodeid.partition("::")
    if not sep:
        return nodeid
    return rest.replace("::", "/")


@pytest.fixture(scope="session")
def snaptest_config() -> TestConfig:
    return load_config()


@pytest.fixture(scope="session")
def socket_lister() -> SocketLister:
    return LsofSocketLister()


@pytest.fixture(scope="session")
def port_prober(snaptest_config: TestConfig, socket_lister: SocketLister) -> PortProber:
    return PortProber(lister=socket_lister, policy=snaptest_config.port_policy())


@pytest.fixture(scope="session")
def snap_client() -> SnapClient:
    return SnapClient()


@pytest.fixture
def artifact_writer(request: pytest.FixtureRequest, snaptest_config: TestConfig) -> Callable[[str, str], Path]:
    """Write ``content`` to ``<log_dir>/<test-name>-<label>.log`` for the running test."""
    test_name = nodeid_to_test_name(request.node.nodeid)

    def write(label: str, content: str) -> Path:
        return write_log_file(test_name, label, content, snaptest_config.log_dir)

    return write
