"""gpsync: Plot Command Builder
----------------------------

Assembles the ``plot``/``splot`` line for a set of chunks, together with the
minimal variant and placeholder payload used to try the command out before
any real data is sent.

In ASCII mode the plot command doesn't mention point counts, so the minimal
command is the real one. In binary mode every clause declares
``record=<points>``; the minimal command declares ``record=1``.

The placeholder payload is built so that gnuplot is never left waiting for
data, whichever way the dry run goes:

- command accepted: gnuplot reads exactly the single record each clause asks
  for; any surplus is blank lines, which gnuplot ignores;
- command refused: gnuplot reads the placeholder as commands, producing
  ``invalid command`` errors that the checkpoint filters out.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from .chunks import Chunk
from .core.errors import GPSConfigError
from .encoder import ASCII_END_MARKER, ASCII_TEST_UNIT, BYTES_PER_VALUE

__all__ = ["PlotCommand", "binary_format", "build_plot_command"]

_RECORD_RE = re.compile(r"record=\d+")


@dataclass(frozen=True)
class PlotCommand:
    """Everything needed to issue one draw.

    Attributes
    ----------
    setup : tuple[str, ...]
        Commands that must precede the plot (y2 axis setup).
    command : str
        The real ``plot``/``splot`` line.
    minimal : str
        Same clauses, one record per clause in binary mode.
    placeholder : bytes
        Dry-run data matching ``minimal``.

    """

    setup: tuple[str, ...]
    command: str
    minimal: str
    placeholder: bytes


def binary_format(chunk: Chunk) -> tuple[str, str]:
    """Return the real and the single-record binary data descriptors.

    ``using 1:2:...`` is spelled out so gnuplot's own implicit-column logic
    never kicks in (e.g. for ``with image``).
    """
    fmt = (
        f'binary record={chunk.npoints} format="{"%double" * chunk.tuplesize}"'
        f" using {':'.join(str(i) for i in range(1, chunk.tuplesize + 1))}"
    )
    return fmt, _RECORD_RE.sub("record=1", fmt)


def build_plot_command(
    chunks: Sequence[Chunk],
    *,
    is3d: bool = False,
    binary: bool = False,
    globalwith: str | None = None,
) -> PlotCommand:
    """Build the plot command, its minimal variant and placeholder data.

    Raises
    ------
    GPSConfigError
        If a curve asks for the y2 axis in a 3D plot.

    """
    setup: tuple[str, ...] = ()
    if any(opt.y2 for chunk in chunks for opt in chunk.options):
        if is3d:
            raise GPSConfigError("3d plots don't have a y2 axis")
        setup = ("set ytics nomirror", "set y2tics")

    clauses: list[str] = []
    minimal_clauses: list[str] = []
    placeholder = b""

    for chunk in chunks:
        curve_clauses = [opt.clause(globalwith) for opt in chunk.options]
        if binary:
            fmt, fmt_minimal = binary_format(chunk)
            clauses += [f"'-' {fmt} {c}" for c in curve_clauses]
            minimal_clauses += [f"'-' {fmt_minimal} {c}" for c in curve_clauses]
            # one blank line per byte of a record, at least twice what a
            # single record needs
            record_bytes = BYTES_PER_VALUE * chunk.tuplesize
            placeholder += b" \n" * (record_bytes * len(curve_clauses))
        else:
            clauses += [f"'-' {c}" for c in curve_clauses]
            row = (ASCII_TEST_UNIT * chunk.tuplesize).encode("ascii") + b"\n"
            placeholder += (row + ASCII_END_MARKER) * len(curve_clauses)

    verb = "splot" if is3d else "plot"
    command = f"{verb} {','.join(clauses)}"
    minimal = f"{verb} {','.join(minimal_clauses)}" if binary else command
    return PlotCommand(
        setup=setup, command=command, minimal=minimal, placeholder=placeholder
    )
