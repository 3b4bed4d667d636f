"""gpsync: CLI Entry Point
---------------------------------------------------------
Initializes the main Typer application and registers the sub-commands. It
serves as the execution root for the ``gpsync`` console script.

Public API
----------
``app`` : The main Typer application instance.
"""

from __future__ import annotations

import typer

from .commands import config as config_cmd
from .commands.config import features_command
from .commands.plot import plot_command

app = typer.Typer(help="gpsync CLI")


@app.callback()
def main():
    """Plot data files through gnuplot."""
    pass


# Register commands
app.command("plot")(plot_command)
app.command("features")(features_command)

# Config command group
app.add_typer(config_cmd.app, name="config", help="Inspect system configuration")
