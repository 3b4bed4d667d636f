"""gpsync: Default Session
----------------------

Module-level plotting without managing a ``PlotSession``. Each call builds a
fresh session from its keyword plot options, replacing (and closing) the one
before it, so every quick plot starts from a clean gnuplot.

Public API
----------
``plot`` / ``plot3d`` / ``plotlines`` / ``plotpoints`` : Plot with the default session
``default_session`` : The current default session, created on demand
``close_default_session`` : Shut the default session down
"""

from __future__ import annotations

import atexit
from typing import Any

from .core.errors import GPSDataError
from .session import PlotSession

__all__ = [
    "DefaultSessionHolder",
    "close_default_session",
    "default_session",
    "plot",
    "plot3d",
    "plotlines",
    "plotpoints",
]


class DefaultSessionHolder:
    """Holds at most one open session."""

    def __init__(self):
        self._session: PlotSession | None = None

    @property
    def current(self) -> PlotSession | None:
        return self._session

    def get(self) -> PlotSession:
        if self._session is None or self._session.closed:
            self._session = PlotSession()
        return self._session

    def replace(self, options: dict[str, Any] | None = None, **kwargs: Any) -> PlotSession:
        self.close()
        self._session = PlotSession(options, **kwargs)
        return self._session

    def close(self) -> None:
        if self._session is not None:
            session, self._session = self._session, None
            session.close()


_holder = DefaultSessionHolder()
atexit.register(_holder.close)


def default_session() -> PlotSession:
    return _holder.get()


def close_default_session() -> None:
    _holder.close()


def plot(*args: Any, **plot_options: Any) -> PlotSession:
    """Plot ``args`` in a new default session built from ``plot_options``.

    Positional arguments are curve-option mappings and arrays, as for
    ``PlotSession.plot``. Keyword arguments are plot options; pass ``3d``
    as ``**{"3d": True}`` or use ``plot3d``.

    Returns
    -------
    PlotSession
        The new default session, for further plots into the same window.

    """
    if not args:
        raise GPSDataError("plot() called with no arguments")
    session = _holder.replace(plot_options)
    session.plot(*args)
    return session


def plot3d(*args: Any, **plot_options: Any) -> PlotSession:
    return plot(*args, **{"3d": True, **plot_options})


def plotlines(*args: Any, **plot_options: Any) -> PlotSession:
    return plot(*args, **{"globalwith": "lines", **plot_options})


def plotpoints(*args: Any, **plot_options: Any) -> PlotSession:
    return plot(*args, **{"globalwith": "points", **plot_options})
