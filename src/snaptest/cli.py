"""CLI for snaptest probes."""

import sys
from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax

from . import __version__
from .config import TestConfig, load_config
from .errors import SnapTestError
from .listing import LsofSocketLister
from .log_config import setup_logging
from .logs import wait_for_log_message
from .net import PortProber
from .snap import SnapClient, SnapLogSource


console = Console()


def _prober(config: TestConfig, sudo: bool, tolerate_errors: bool = False) -> PortProber:
    lister = LsofSocketLister(use_sudo=sudo, tolerate_errors=tolerate_errors)
    return PortProber(lister=lister, policy=config.port_policy())


def _fail(e: Exception) -> None:
    console.print(f"[red]Error: {escape(str(e))}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="snaptest")
@click.option("--env-file", type=click.Path(dir_okay=False), default=None, help="Load overrides from a .env file")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[str], log_level: Optional[str]):
    """snaptest – integration test helpers for snap packaged services."""
    setup_logging(log_level)
    try:
        ctx.obj = load_config(env_file)
    except SnapTestError as e:
        _fail(e)


@cli.command("config")
@click.pass_obj
def show_config(config: TestConfig):
    """Print the effective configuration."""
    console.print(Syntax(config.to_yaml(), "yaml"))


@cli.command("wait-ports")
@click.argument("ports", nargs=-1, required=True)
@click.option("--retries", "-r", type=int, default=None, help="Max rounds (default: SNAPTEST_PORT_RETRIES)")
@click.pass_obj
def wait_ports(config: TestConfig, ports: tuple[str, ...], retries: Optional[int]):
    """Wait until every PORT accepts TCP connections."""
    try:
        rounds = _prober(config, sudo=False).wait_online(list(ports), retries)
        console.print(f"[green]Ports online after {rounds} round(s): {', '.join(ports)}[/green]")
    except (SnapTestError, ValueError) as e:
        _fail(e)


@cli.command("check-binding")
@click.argument("ports", nargs=-1, required=True)
@click.option("--all-interfaces", is_flag=True, help="Expect the ports to listen on all interfaces")
@click.option("--retries", "-r", type=int, default=None, help="Max rounds to wait for the ports")
@click.option("--no-sudo", is_flag=True, help="Run lsof without sudo")
@click.option("--tolerate-listing-errors", is_flag=True, help="Treat a failing lsof as an empty listing")
@click.pass_obj
def check_binding(
    config: TestConfig,
    ports: tuple[str, ...],
    all_interfaces: bool,
    retries: Optional[int],
    no_sudo: bool,
    tolerate_listing_errors: bool,
):
    """Check which interfaces PORTS are bound to."""
    try:
        prober = _prober(config, sudo=not no_sudo, tolerate_errors=tolerate_listing_errors)
        prober.check_loopback_binding(list(ports), all_interfaces, retries)
        where = "all interfaces" if all_interfaces else "loopback only"
        console.print(f"[green]Binding OK ({where}): {', '.join(ports)}[/green]")
    except (SnapTestError, ValueError) as e:
        _fail(e)


@cli.command("port-available")
@click.argument("port")
@click.option("--no-sudo", is_flag=True, help="Run lsof without sudo")
@click.pass_obj
def port_available(config: TestConfig, port: str, no_sudo: bool):
    """Check that nothing is bound to PORT."""
    try:
        _prober(config, sudo=not no_sudo).require_port_available(port)
        console.print(f"[green]Port {port} is available[/green]")
    except SnapTestError as e:
        _fail(e)


@cli.command("wait-log")
@click.argument("snap_name")
@click.argument("expected")
@click.option("--since", type=click.DateTime(), default=None, help="Only consider logs after this time (default: now)")
@click.option("--retries", "-r", type=int, default=None, help="Max attempts (default: SNAPTEST_LOG_RETRIES)")
@click.pass_obj
def wait_log(config: TestConfig, snap_name: str, expected: str, since: Optional[datetime], retries: Optional[int]):
    """Wait for EXPECTED to show up in the journal of SNAP_NAME."""
    try:
        policy = config.log_policy()
        if retries is not None:
            policy = policy.with_attempts(retries)
        source = SnapLogSource(SnapClient(), snap_name)
        wait_for_log_message(source, expected, since or datetime.now(), policy)
        console.print(f"[green]Found: {expected}[/green]")
    except (SnapTestError, ValueError) as e:
        _fail(e)


def main():
    cli()


if __name__ == "__main__":
    main()
