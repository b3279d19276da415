"""Test configuration read from environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .retry import RetryPolicy

# Environment variables used to override defaults
SERVICE_CHANNEL_ENV = "SERVICE_CHANNEL"  # channel/revision of the service snap
LOCAL_SERVICE_SNAP_ENV = "LOCAL_SERVICE_SNAP"  # path to a local snap, used instead of a channel
FULL_CONFIG_TEST_ENV = "FULL_CONFIG_TEST"  # toggle full config tests
SKIP_TEARDOWN_REMOVAL_ENV = "SKIP_TEARDOWN_REMOVAL"  # keep snaps installed after the run

# Older names, read only when the variables above are unset
SNAP_CHANNEL_ENV = "SNAP_CHANNEL"
SNAP_PATH_ENV = "SNAP_PATH"
TEARDOWN_ENV = "TEARDOWN"  # inverse of SKIP_TEARDOWN_REMOVAL

PORT_RETRIES_ENV = "SNAPTEST_PORT_RETRIES"
LOG_RETRIES_ENV = "SNAPTEST_LOG_RETRIES"
RETRY_INTERVAL_ENV = "SNAPTEST_RETRY_INTERVAL"
DIAL_TIMEOUT_ENV = "SNAPTEST_DIAL_TIMEOUT"
LOG_DIR_ENV = "SNAPTEST_LOG_DIR"

DEFAULT_CHANNEL = "latest/edge"

_TRUE_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_VALUES = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(name: str, value: str) -> bool:
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(name, value, "a boolean such as true/false/1/0")


def _parse_int(name: str, value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigError(name, value, "a positive integer") from None
    if parsed < 1:
        raise ConfigError(name, value, "a positive integer")
    return parsed


def _parse_seconds(name: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigError(name, value, "a number of seconds") from None
    if parsed < 0:
        raise ConfigError(name, value, "a non-negative number of seconds")
    return parsed


@dataclass(frozen=True)
class TestConfig:
    """Settings snapshot for one test run.

    Built once at program entry and handed to the helpers that need it.
    """

    __test__ = False  # not a pytest test class

    service_channel: str = DEFAULT_CHANNEL
    local_service_snap: str = ""
    full_config_test: bool = False
    skip_teardown_removal: bool = False
    port_retries: int = 60
    log_retries: int = 10
    retry_interval: float = 1.0
    dial_timeout: float = 2.0
    log_dir: str = "logs"

    @property
    def teardown(self) -> bool:
        return not self.skip_teardown_removal

    @property
    def uses_local_snap(self) -> bool:
        return bool(self.local_service_snap)

    def port_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.port_retries,
            interval=self.retry_interval,
            timeout=self.dial_timeout,
        )

    def log_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.log_retries,
            interval=self.retry_interval,
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "TestConfig":
        """Build a config from environment variables.

        Unset or empty variables keep their defaults. Malformed values
        raise ConfigError. SNAP_CHANNEL, SNAP_PATH and TEARDOWN are
        accepted as fallbacks for the current names.
        """
        src = os.environ if env is None else env
        kwargs: dict = {}

        def override(field_name: str, env_name: str, parse=None) -> bool:
            v = src.get(env_name)
            if v is None or v == "":
                return False
            kwargs[field_name] = parse(env_name, v) if parse else v
            return True

        def skip_from_teardown(name: str, value: str) -> bool:
            return not parse_bool(name, value)

        if not override("service_channel", SERVICE_CHANNEL_ENV):
            override("service_channel", SNAP_CHANNEL_ENV)
        if not override("local_service_snap", LOCAL_SERVICE_SNAP_ENV):
            override("local_service_snap", SNAP_PATH_ENV)
        override("full_config_test", FULL_CONFIG_TEST_ENV, parse_bool)
        if not override("skip_teardown_removal", SKIP_TEARDOWN_REMOVAL_ENV, parse_bool):
            override("skip_teardown_removal", TEARDOWN_ENV, skip_from_teardown)
        override("port_retries", PORT_RETRIES_ENV, _parse_int)
        override("log_retries", LOG_RETRIES_ENV, _parse_int)
        override("retry_interval", RETRY_INTERVAL_ENV, _parse_seconds)
        override("dial_timeout", DIAL_TIMEOUT_ENV, _parse_seconds)
        override("log_dir", LOG_DIR_ENV)

        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "service_channel": self.service_channel,
            "local_service_snap": self.local_service_snap,
            "full_config_test": self.full_config_test,
            "skip_teardown_removal": self.skip_teardown_removal,
            "port_retries": self.port_retries,
            "log_retries": self.log_retries,
            "retry_interval": self.retry_interval,
            "dial_timeout": self.dial_timeout,
            "log_dir": self.log_dir,
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)


def load_config(dotenv_path: Optional[Union[str, Path]] = None) -> TestConfig:
    """Load a .env file (without overriding the real environment), then read the config."""
    if dotenv_path is not None:
        load_dotenv(dotenv_path, override=False)
    else:
        load_dotenv(override=False)
    return TestConfig.from_env()
