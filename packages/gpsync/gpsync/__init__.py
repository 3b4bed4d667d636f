"""
gpsync: synchronous plotting through a gnuplot subprocess
----------------------------------------------------------
Sends numpy data to a long-lived gnuplot child and checks every command
against gnuplot's own diagnostics, so that errors surface as exceptions at
the call that caused them instead of as a blank window.

Public API
----------
``PlotSession`` / ``create_session`` : An explicit gnuplot session
``plot`` / ``plot3d`` / ``plotlines`` / ``plotpoints`` : Quick plots in the default session
``PlotOptions`` / ``CurveOptions`` : Option vocabularies
``GPSError`` and subclasses : Error hierarchy
"""

from .core.errors import (
    GPSCommandRejected,
    GPSConfigError,
    GPSDataError,
    GPSError,
    GPSHangTimeout,
    GPSIOError,
    GPSProtocolError,
    GPSProtocolGuardError,
    GPSSpawnError,
    GPSWarning,
)
from .default import (
    close_default_session,
    default_session,
    plot,
    plot3d,
    plotlines,
    plotpoints,
)
from .options import CurveOptions, PlotOptions
from .session import PlotSession, create_session

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "PlotSession",
    "create_session",
    "plot",
    "plot3d",
    "plotlines",
    "plotpoints",
    "default_session",
    "close_default_session",
    "PlotOptions",
    "CurveOptions",
    "GPSError",
    "GPSConfigError",
    "GPSDataError",
    "GPSSpawnError",
    "GPSIOError",
    "GPSProtocolGuardError",
    "GPSProtocolError",
    "GPSCommandRejected",
    "GPSHangTimeout",
    "GPSWarning",
]
