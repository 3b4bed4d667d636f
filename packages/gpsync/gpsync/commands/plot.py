"""gpsync: Plot CLI Command
---------------------------------------------------------
Implements ``gpsync plot``: loads whitespace-separated numeric columns from a
text file and plots them in one gnuplot session.

Column layout
-------------
- 2D, one column: the column is plotted against its row index.
- 2D, several columns: the first column is x, every other column is a curve.
- 3D: the first two columns are x and y, every other column is a surface.

Public API
----------
``plot_command`` : The ``gpsync plot`` command
``load_columns`` : Read a data file into plot arguments
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import typer

from gpsync.core.config_loader import load_system_config
from gpsync.core.errors import GPSError, configure_logging, get_logger
from gpsync.session import PlotSession


def load_columns(path: Path, is3d: bool = False) -> list[np.ndarray]:
    """Read ``path`` and arrange its columns as plot data arguments."""
    try:
        table = np.loadtxt(path, ndmin=2, dtype=np.float64)
    except (OSError, ValueError) as e:
        raise typer.BadParameter(f"Cannot read numeric columns from {path}: {e}") from e

    cols = table.T
    if table.size == 0:
        raise typer.BadParameter(f"{path} contains no data")

    if is3d:
        if len(cols) < 3:
            raise typer.BadParameter(
                f"3D plots need x, y and z columns; {path} has {len(cols)}"
            )
        return [cols[0], cols[1], cols[2:]]

    if len(cols) == 1:
        return [cols[0]]
    return [cols[0], cols[1:]]


def plot_command(
    data_file: Path = typer.Argument(..., help="Text file with numeric columns"),
    with_: str | None = typer.Option(None, "--with", help="Plot style, e.g. lines"),
    is3d: bool = typer.Option(False, "--3d", help="Make a 3D (splot) plot"),
    binary: bool = typer.Option(False, help="Send data to gnuplot in binary"),
    title: str | None = typer.Option(None, help="Plot title"),
    hardcopy: str | None = typer.Option(
        None, help="Write the plot to a .eps, .ps, .pdf or .png file"
    ),
    dump: bool = typer.Option(
        False, help="Print the gnuplot commands instead of running gnuplot"
    ),
    log_io: bool = typer.Option(False, "--log", help="Log all gnuplot I/O"),
    config_path: Path | None = typer.Option(
        None, "--config", help="System configuration file"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging"
    ),
    log_file: str | None = typer.Option(None, help="Write logs to file path"),
    log_json: bool = typer.Option(False, help="Log in JSON format"),
):
    """Plot the columns of DATA_FILE.

    Examples
    --------
        gpsync plot data.txt --with lines
        gpsync plot surface.txt --3d --hardcopy surface.png

    """
    configure_logging(verbose=verbose, log_file=log_file, as_json=log_json)
    log = get_logger()

    args: list[Any] = []
    if with_ is not None:
        args.append({"with": with_})
    args.extend(load_columns(data_file, is3d=is3d))

    options: dict[str, Any] = {
        "3d": is3d,
        "binary": binary,
        "dump": dump,
        "log": log_io,
        "title": title,
        "hardcopy": hardcopy,
    }

    try:
        config = load_system_config(config_path=config_path)
        with PlotSession(options, config=config) as session:
            session.plot(*args)
    except GPSError as e:
        log.error(str(e))
        raise typer.Exit(code=1) from e

    if hardcopy is not None:
        log.info(f"Wrote {hardcopy}")
