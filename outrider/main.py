"""
Outrider — CLI Entry Point

Usage:
    outrider run [--health-port N]
    outrider check-config [--json]
    python -m outrider.main run
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from dotenv import load_dotenv

load_dotenv()

import json
import signal
import sys
from typing import Optional

import click

from . import __version__
from .config import ConfigValidator, OperatorConfig
from .errors import ConfigurationError
from .logging_config import setup_logging


@click.group()
@click.version_option(__version__, prog_name="outrider")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL or INFO)")
@click.option("--log-format", type=click.Choice(["text", "json"]), default=None, help="Log output format")
def cli(log_level: Optional[str], log_format: Optional[str]) -> None:
    """Outrider — copy annotated secrets to every ready Rancher cluster."""
    setup_logging(level=log_level, format_type=log_format)


@cli.command()
@click.option("--health-port", type=int, default=None, help="Override HEALTH_PORT (0 disables the probe server)")
def run(health_port: Optional[int]) -> None:
    """Run the operator until SIGINT or SIGTERM."""
    from .operator import Operator

    try:
        config = OperatorConfig.from_env()
    except ConfigurationError as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        sys.exit(1)

    ConfigValidator().log_status()

    if health_port is not None:
        config.health_port = health_port

    operator = Operator(config)

    def _shutdown_signal(signum, frame):
        operator.stop()

    signal.signal(signal.SIGINT, _shutdown_signal)
    signal.signal(signal.SIGTERM, _shutdown_signal)

    operator.run()


@cli.command("check-config")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def check_config(as_json: bool) -> None:
    """Check operator configuration from the environment."""
    validator = ConfigValidator()
    results = validator.validate_all()
    valid = validator.is_valid()

    if as_json:
        click.echo(json.dumps({
            "valid": valid,
            "variables": [s.to_dict() for s in results],
        }, indent=2))
        if not valid:
            sys.exit(1)
        return

    click.echo("\n📋 Outrider Configuration\n")

    for status in results:
        if status.ok:
            click.secho(f"  ✓ {status.variable}", fg="green", nl=False)
            source = "" if status.is_set else " (default)"
            click.echo(f" = {status.effective}{source}")
        else:
            click.secho(f"  ✗ {status.variable}", fg="red", nl=False)
            click.echo(f" — {status.guidance}")

    click.echo()
    if valid:
        click.secho("Configuration is valid", fg="green", bold=True)
    else:
        click.secho("Configuration is invalid", fg="red", bold=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
