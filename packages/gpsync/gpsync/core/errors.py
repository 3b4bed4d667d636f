"""gpsync: Error Taxonomy and Logging
-----------------------------------

Independent error system for the gpsync package.

Error Hierarchy
---------------
- GPSError: Base exception for all gpsync errors
- GPSConfigError: Invalid plot/curve options or system configuration
- GPSDataError: Plot data that cannot be arranged into curves
- GPSSpawnError: The gnuplot process could not be launched
- GPSIOError: The gnuplot input pipe is closed or broken
- GPSProtocolGuardError: A command would break checkpoint synchronization
- GPSProtocolError: Gnuplot reported an error on its diagnostic stream
- GPSCommandRejected: Gnuplot rejected a plot command during the dry run
- GPSHangTimeout: Gnuplot stopped responding; the session is unusable

Warning Hierarchy
-----------------
- GPSWarning: Base warning for all gpsync warnings (gnuplot's own
  ``Warning:`` lines are re-issued with this category)

Logging
-------
The shared logger is named "gpsync" and can be configured for
console and file output with optional JSON formatting.
Python warnings are captured into logging with adjustable levels.
"""

import logging
import os

__all__ = [
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
    "get_logger",
    "configure_logging",
]


# =============================================================================
# Exception Hierarchy
# =============================================================================


class GPSError(Exception):
    """Base exception for all gpsync errors.

    Examples
    --------
    >>> try:
    ...     pass  # some plotting operation
    ... except GPSError as e:
    ...     print(f"plot failed: {e}")

    """

    pass


class GPSConfigError(GPSError):
    """Configuration-related errors.

    Raised for unknown plot or curve option keys, contradictory option
    combinations (e.g. ``hardcopy`` together with ``terminal``) and invalid
    system configuration files.
    """

    pass


class GPSDataError(GPSError):
    """Data-related errors.

    Raised when plot arguments cannot be arranged into curves: mismatched
    point counts, non-broadcastable curve dimensions, or the wrong number of
    data arrays for the requested tuple size.
    """

    pass


class GPSSpawnError(GPSError):
    """The gnuplot executable could not be started. Never retried."""

    pass


class GPSIOError(GPSError):
    """Writing to the gnuplot input pipe failed."""

    pass


class GPSProtocolGuardError(GPSError):
    """A command would interfere with the diagnostic back-channel.

    Nothing is written to gnuplot when this is raised, so the session
    remains usable.
    """

    pass


class GPSProtocolError(GPSError):
    """Gnuplot reported an error.

    Attributes
    ----------
    diagnostic : str
        The text gnuplot wrote on its diagnostic stream, verbatim apart from
        stripped warnings.
    command : str or None
        The command being sent when the error was detected.

    """

    def __init__(
        self, message: str, *, diagnostic: str = "", command: str | None = None
    ):
        super().__init__(message)
        self.diagnostic = diagnostic
        self.command = command


class GPSCommandRejected(GPSProtocolError):
    """Gnuplot refused a plot command while it was being tried out.

    Only the current draw call fails; the session remains usable.
    """

    pass


class GPSHangTimeout(GPSError):
    """Gnuplot stopped answering checkpoints.

    Once raised, the owning session is permanently stuck: every further
    operation raises this error again without talking to gnuplot, and the
    process is killed rather than asked to exit on close.
    """

    pass


# =============================================================================
# Warning Hierarchy
# =============================================================================


class GPSWarning(Warning):
    """Base warning for all gpsync warnings."""

    pass


# =============================================================================
# Logger Configuration
# =============================================================================

_logger: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Get the shared gpsync logger instance.

    Returns
    -------
    logging.Logger
        The singleton logger named "gpsync" configured at INFO level by
        default with a console handler. Handlers are created lazily on first use.

    Examples
    --------
    >>> logger = get_logger()
    >>> logger.name
    'gpsync'

    """
    global _logger
    if _logger is None:
        _logger = logging.getLogger("gpsync")
        _logger.setLevel(logging.INFO)
        if not _logger.handlers:
            h = logging.StreamHandler()
            fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            h.setFormatter(fmt)
            _logger.addHandler(h)
    return _logger


def configure_logging(
    verbose: bool = False,
    log_file: str | None = None,
    as_json: bool = False,
    suppress_warnings: bool = False,
) -> None:
    """Configure the shared logger outputs and warning capture.

    Parameters
    ----------
    verbose : bool, default False
        When True, set logger level to DEBUG; otherwise INFO.
    log_file : str or None, default None
        Optional file path to append logs. Unwritable paths are reported on
        the console handler and otherwise ignored.
    as_json : bool, default False
        Emit logs in a compact JSON line format when True; otherwise plain text.
    suppress_warnings : bool, default False
        Route Python warnings (including forwarded gnuplot warnings) into
        logging and raise their level to ERROR when True; otherwise capture
        warnings at WARNING level.

    """
    logger = get_logger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    ch = logging.StreamHandler()
    if as_json:
        fmt = logging.Formatter(
            '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","msg":"%(message)s"}'
        )
    else:
        fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        try:
            fh = logging.FileHandler(os.fspath(log_file), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cannot write log file {log_file}: {e}")
        else:
            fh.setFormatter(fmt)
            logger.addHandler(fh)

    logging.captureWarnings(True)
    if suppress_warnings:
        logging.getLogger("py.warnings").setLevel(logging.ERROR)
    else:
        logging.getLogger("py.warnings").setLevel(logging.WARNING)
