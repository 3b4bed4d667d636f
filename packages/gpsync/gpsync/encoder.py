"""gpsync: Payload Encoder
-----------------------

Serializes curve data for gnuplot's ``'-'`` inline data source.

A *tuple* is the group of equal-length columns describing one curve (x, y,
and whatever else the plot style consumes). Two wire formats are supported:

- ASCII: one whitespace-separated row per point, then an ``e`` line.
- Binary: native-endian float64 values in point-major order with no
  terminator; the plot command already told gnuplot the record count and
  layout (see ``gpsync.command.binary_format``).
"""

from __future__ import annotations

import io
from collections.abc import Callable, Sequence

import numpy as np

from .core.errors import GPSDataError

__all__ = [
    "ASCII_END_MARKER",
    "ASCII_TEST_UNIT",
    "BYTES_PER_VALUE",
    "PayloadEncoder",
    "encode_binary",
    "encode_text",
    "stack_columns",
]

ASCII_END_MARKER = b"e\n"

# one value of dry-run placeholder data in ASCII mode
ASCII_TEST_UNIT = "10 "

BYTES_PER_VALUE = np.dtype(np.float64).itemsize

_TEXT_FORMAT = "%.17g"


def stack_columns(columns: Sequence[np.ndarray]) -> np.ndarray:
    """Stack 1-D columns into a (points, width) float64 array."""
    if not columns:
        raise GPSDataError("A data tuple needs at least one column")
    arrays = [np.asarray(c, dtype=np.float64).reshape(-1) for c in columns]
    n = arrays[0].shape[0]
    for a in arrays[1:]:
        if a.shape[0] != n:
            raise GPSDataError(
                f"plot() was given mismatched tuples to plot. {a.shape[0]} vs {n}"
            )
    return np.column_stack(arrays)


def encode_text(columns: Sequence[np.ndarray]) -> bytes:
    """Encode one tuple as ASCII rows followed by the end-of-data marker."""
    buf = io.BytesIO()
    np.savetxt(buf, stack_columns(columns), fmt=_TEXT_FORMAT, delimiter=" ")
    buf.write(ASCII_END_MARKER)
    return buf.getvalue()


def encode_binary(columns: Sequence[np.ndarray]) -> bytes:
    """Encode one tuple as packed float64 records, point-major."""
    return np.ascontiguousarray(stack_columns(columns)).tobytes()


class PayloadEncoder:
    """Writes tuples through a byte sink.

    Payloads are not logged here; ``CommandChannel.write`` mirrors every byte
    it sends to the session event log.

    Parameters
    ----------
    write : callable
        Receives each encoded payload (normally ``CommandChannel.write``).
    binary : bool
        Use the packed binary format instead of ASCII rows.

    """

    def __init__(
        self,
        write: Callable[[bytes], None],
        binary: bool = False,
    ):
        self._write = write
        self.binary = binary

    def encode(self, columns: Sequence[np.ndarray]) -> bytes:
        return encode_binary(columns) if self.binary else encode_text(columns)

    def write_tuple(self, columns: Sequence[np.ndarray]) -> int:
        """Encode and send one tuple; return the number of bytes written."""
        payload = self.encode(columns)
        self._write(payload)
        return len(payload)
