"""gpsync: Plot Session
-------------------

A ``PlotSession`` owns one gnuplot child for its whole life. Plot options are
fixed at construction; every ``plot()`` call afterwards draws into the same
gnuplot, so state set up by options or earlier plots carries over.

Each draw goes through the same sequence:

1. send any setup the plot command needs (e.g. the y2 axis), synchronized;
2. try the plot command against the ``dumb`` terminal with placeholder data
   and refuse it with ``GPSCommandRejected`` if gnuplot doesn't like it;
3. send ``terminal``/``output``, then the real command and the data;
4. synchronize once more and surface anything gnuplot still had to say.

Once a checkpoint times out the session is unusable; every further call raises
``GPSHangTimeout`` without writing to the child.

Public API
----------
``PlotSession`` : One gnuplot child and the options it was set up with
``create_session`` : Convenience constructor
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, BinaryIO

from .channel import CommandChannel
from .checkpoint import Checkpointer, WarningSink
from .chunks import Chunk, parse_args
from .command import PlotCommand, build_plot_command
from .core.config_loader import load_system_config
from .core.errors import (
    GPSCommandRejected,
    GPSDataError,
    GPSError,
    GPSHangTimeout,
    GPSProtocolError,
    get_logger,
)
from .core.system_config import SystemConfig
from .encoder import PayloadEncoder
from .eventlog import EventLog
from .options import PlotOptions, quote
from .process import ProcessSupervisor, detect_features

__all__ = ["PLOT_SUCCEEDED", "PlotSession", "create_session"]

log = get_logger()

PLOT_SUCCEEDED = "xxxxxxx Plot succeeded xxxxxxx"
_PRINT_SUCCEEDED = f'; print "{PLOT_SUCCEEDED}"'
_SUCCEEDED_RE = re.compile("^" + re.escape(PLOT_SUCCEEDED), re.MULTILINE)


class PlotSession:
    """A gnuplot child configured with a set of plot options.

    Parameters
    ----------
    options : mapping or PlotOptions, optional
        Plot options. Keyword arguments are merged on top; ``3d`` can only be
        given through the mapping.
    config : SystemConfig, optional
        Process and timeout settings. Loaded from the configuration chain
        when omitted.
    warning_sink : callable, optional
        Receives gnuplot warnings. Defaults to re-issuing them as
        ``GPSWarning``.
    dump_stream : BinaryIO, optional
        Destination in dump mode instead of stdout.

    Raises
    ------
    GPSConfigError
        For unknown or contradictory plot options.
    GPSSpawnError
        If gnuplot cannot be launched.
    GPSProtocolGuardError, GPSProtocolError
        If a setup command is refused; the child is shut down first.

    Examples
    --------
    >>> with PlotSession({"title": "parabola"}) as s:   # doctest: +SKIP
    ...     s.plot(np.arange(10) ** 2)

    """

    def __init__(
        self,
        options: Mapping[str, Any] | PlotOptions | None = None,
        *,
        config: SystemConfig | None = None,
        warning_sink: WarningSink | None = None,
        dump_stream: BinaryIO | None = None,
        **kwargs: Any,
    ):
        if kwargs:
            if isinstance(options, PlotOptions):
                # terminal/output were derived from hardcopy
                derived = {"terminal", "output"} if options.hardcopy else set()
                options = options.model_dump(
                    by_alias=True, exclude_unset=True, exclude=derived
                )
            options = {**(options or {}), **kwargs}
        self.options = PlotOptions.parse(options)
        self.config = config if config is not None else load_system_config()
        self.closed = False

        self.event_log = EventLog(self.options.log)
        self.supervisor = ProcessSupervisor(self.config, self.event_log)
        self.child = self.supervisor.start(self.options.dump, dump_stream)
        self.event_log("gnuplot started")

        self.channel = CommandChannel(self.child, self.event_log)
        self.checkpointer = Checkpointer(
            self.channel, self.config, warning_sink, self.event_log
        )

        try:
            self.channel.send_guarded(
                "\n".join(self._setup_commands()), self.checkpointer
            )
        except Exception:
            self.close()
            raise

    def _setup_commands(self) -> list[str]:
        opts = self.options
        features: frozenset[str] = frozenset()
        if opts.is3d and (opts.square or opts.square_xy):
            features = detect_features(tuple(self.config.gnuplot))
        return opts.setup_commands(features)

    # ------------------------------------------------------------------ state

    @property
    def stuck(self) -> bool:
        return self.child.stuck

    @property
    def pid(self) -> int | None:
        return self.child.pid

    def _ensure_usable(self) -> None:
        if self.closed:
            raise GPSError("This plot session has been closed")
        if self.child.stuck:
            raise GPSHangTimeout(self.child.stuck_reason)

    # ------------------------------------------------------------------ plotting

    def plot(self, *args: Any) -> None:
        """Plot curves given as curve-option mappings and array-likes.

        See ``gpsync.chunks.parse_args`` for how arguments are grouped.
        """
        self._ensure_usable()
        chunks = parse_args(args, is3d=self.options.is3d)
        self.draw(chunks)

    def draw(self, chunks: Sequence[Chunk]) -> None:
        """Issue one plot command for ``chunks`` and send their data.

        Raises
        ------
        GPSDataError
            If there is nothing to plot.
        GPSCommandRejected
            If gnuplot refused the plot command in the dry run. Nothing was
            drawn and the session remains usable.
        GPSProtocolError
            If gnuplot reported an error while reading the real data.
        GPSHangTimeout
            If gnuplot stopped answering; the session is unusable afterwards.

        """
        self._ensure_usable()
        if not chunks:
            raise GPSDataError("plot() was not given any data to plot")

        opts = self.options
        plot = build_plot_command(
            chunks, is3d=opts.is3d, binary=opts.binary, globalwith=opts.globalwith
        )
        if plot.setup:
            self.channel.send_guarded("\n".join(plot.setup), self.checkpointer)

        self._test_plot_command(plot)

        if opts.terminal is not None:
            self.channel.send_guarded(
                f"set terminal {opts.terminal}", self.checkpointer, allow=("terminal",)
            )
        if opts.output is not None:
            self.channel.send_guarded(
                f"set output {quote(opts.output)}", self.checkpointer, allow=("output",)
            )

        self.channel.send(plot.command)
        encoder = PayloadEncoder(self.channel.write, binary=opts.binary)
        nbytes = 0
        for chunk in chunks:
            for columns in chunk.iter_tuples():
                nbytes += encoder.write_tuple(columns)
        self.event_log(f"sent {nbytes} bytes of plot data")

        message = self.checkpointer.checkpoint(print_warnings=True)
        if message:
            raise GPSProtocolError(
                f'Gnuplot error: "\n{message}\n" while sending final data',
                diagnostic=message,
                command=plot.command,
            )

    def _test_plot_command(self, plot: PlotCommand) -> None:
        """Try ``plot`` on the dumb terminal, raising if gnuplot refuses it.

        The current terminal is pushed beforehand and popped afterwards
        whatever the outcome, so a refused command leaves no trace.
        """
        send = self.channel.send
        send("set terminal push")
        send("set output")
        send("set terminal dumb")

        send(plot.minimal + _PRINT_SUCCEEDED)
        self.channel.write(plot.placeholder)

        message = self.checkpointer.checkpoint(
            print_warnings=True, ignore_invalid_command=True
        )
        send("set terminal pop")

        # dump mode has nothing to check
        if message is None or _SUCCEEDED_RE.search(message):
            return

        message = message.replace(_PRINT_SUCCEEDED, "")
        log.debug(f"gnuplot refused plot command: {plot.command}")
        raise GPSCommandRejected(
            f'Gnuplot error: "\n{message}\n" while sending plot command "{plot.command}"',
            diagnostic=message,
            command=plot.command,
        )

    # ------------------------------------------------------------------ lifecycle

    def close(self) -> None:
        """Shut gnuplot down. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.supervisor.terminate(self.child)

    def __enter__(self) -> PlotSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "stuck" if self.stuck else "open"
        return f"PlotSession(pid={self.pid}, {state})"


def create_session(
    options: Mapping[str, Any] | PlotOptions | None = None, **kwargs: Any
) -> PlotSession:
    """Create a ``PlotSession``; see its documentation for the arguments."""
    return PlotSession(options, **kwargs)
