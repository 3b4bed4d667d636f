"""gpsync: Configuration CLI Commands
---------------------------------------------------------
Implements ``gpsync config show`` (the effective ``SystemConfig`` after all
overrides, as YAML) and ``gpsync features`` (what the configured gnuplot
supports).

Public API
----------
``show`` : Print the effective system configuration
``features_command`` : Print detected gnuplot capabilities
"""

from __future__ import annotations

from pathlib import Path

import typer
import yaml

from gpsync.core.config_loader import load_system_config
from gpsync.core.errors import GPSConfigError, get_logger
from gpsync.process import detect_features

app = typer.Typer()


@app.command()
def show(
    config_path: Path | None = typer.Option(
        None, "--config", help="System configuration file"
    ),
):
    """Show the effective system configuration."""
    log = get_logger()
    try:
        cfg = load_system_config(config_path=config_path)
    except GPSConfigError as e:
        log.error(str(e))
        raise typer.Exit(code=1) from e
    typer.echo(yaml.safe_dump(cfg.model_dump(), sort_keys=False).rstrip())


def features_command(
    config_path: Path | None = typer.Option(
        None, "--config", help="System configuration file"
    ),
):
    """List the capabilities of the configured gnuplot."""
    log = get_logger()
    try:
        cfg = load_system_config(config_path=config_path)
    except GPSConfigError as e:
        log.error(str(e))
        raise typer.Exit(code=1) from e

    found = detect_features(tuple(cfg.gnuplot))
    if not found:
        log.error(f"Could not detect any features of {' '.join(cfg.gnuplot)}")
        raise typer.Exit(code=1)

    typer.echo(f"gnuplot: {' '.join(cfg.gnuplot)}")
    for name in sorted(found):
        typer.echo(f"  - {name}")
