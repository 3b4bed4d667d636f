"""gpsync: Chunks and Argument Parsing
-----------------------------------

Turns a plot call's positional arguments into ``Chunk`` objects: runs of
curves that share one tuple size and one set of accumulated curve options.

A plot call looks like ``options, options, ..., data, data, ...`` repeated.
Options are mappings of curve options; data are array-likes. The last axis of
every array indexes points; any leading axes broadcast against each other
(numpy rules) and each broadcast index is a separate curve::

    x = np.arange(10)
    parse_args([x, np.stack([x**2, x**3])])   # one chunk, two curves

Public API
----------
``Chunk`` : Normalized curve group handed to the protocol engine
``parse_args`` : Build chunks from plot-call arguments
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from .core.errors import GPSDataError
from .options import CurveOptions

__all__ = ["Chunk", "parse_args", "tuple_size"]


@dataclass
class Chunk:
    """A group of curves with one tuple size.

    Attributes
    ----------
    options : list[CurveOptions]
        One entry per curve, in curve order.
    data : list[np.ndarray]
        One float64 array of shape ``(ncurves, npoints)`` per tuple element.
    tuplesize : int
        Number of tuple elements (columns) per point.

    """

    options: list[CurveOptions]
    data: list[np.ndarray]
    tuplesize: int

    def __post_init__(self):
        if len(self.data) != self.tuplesize:
            raise GPSDataError(
                f"Chunk has {len(self.data)} data arrays for tuple size {self.tuplesize}"
            )
        shapes = {a.shape for a in self.data}
        if len(shapes) != 1 or self.data[0].ndim != 2:
            raise GPSDataError(f"Chunk data arrays must share one 2-D shape, got {shapes}")
        if len(self.options) != self.ncurves:
            raise GPSDataError(
                f"Chunk has {len(self.options)} option sets for {self.ncurves} curves"
            )

    @property
    def ncurves(self) -> int:
        return self.data[0].shape[0]

    @property
    def npoints(self) -> int:
        return self.data[0].shape[1]

    def iter_tuples(self) -> Iterator[list[np.ndarray]]:
        """Yield the columns of each curve in turn."""
        for k in range(self.ncurves):
            yield [a[k] for a in self.data]

    @classmethod
    def from_arrays(
        cls,
        options: Sequence[CurveOptions],
        arrays: Sequence[Any],
        tuplesize: int,
    ) -> Chunk:
        """Broadcast ``arrays`` into curves and pair them with ``options``.

        Missing trailing options are filled with the last one (minus its
        legend); surplus options are an error.
        """
        data = [np.asarray(a, dtype=np.float64) for a in arrays]
        data = [a.reshape(1) if a.ndim == 0 else a for a in data]

        for prev, cur in zip(data, data[1:]):
            if cur.shape[-1] != prev.shape[-1]:
                raise GPSDataError(
                    "plot() was given mismatched tuples to plot. "
                    f"{cur.shape[-1]} vs {prev.shape[-1]}"
                )
        npoints = data[0].shape[-1]

        try:
            curve_shape = np.broadcast_shapes(*(a.shape[:-1] for a in data))
        except ValueError as e:
            raise GPSDataError(
                "plot() was given non-threadable arguments: "
                f"{[a.shape for a in data]}"
            ) from e
        ncurves = math.prod(curve_shape)

        options = list(options)
        if len(options) > ncurves:
            raise GPSDataError(
                f"plot() got {len(options)} options but only {ncurves} curves. "
                "Not enough curves"
            )
        if len(options) < ncurves:
            filler = options[-1].carried()
            options.extend([filler] * (ncurves - len(options)))

        flat = [
            np.broadcast_to(a, curve_shape + (npoints,)).reshape(ncurves, npoints)
            for a in data
        ]
        return cls(options=options, data=flat, tuplesize=tuplesize)


def _is_options(arg: Any) -> bool:
    return isinstance(arg, (Mapping, CurveOptions))


def tuple_size(is3d: bool, options: Sequence[CurveOptions]) -> int:
    """Tuple size shared by ``options``; mixing sizes in a chunk is an error."""
    size: int | None = None
    for opt in options:
        here = opt.tuplesize or (3 if is3d else 2)
        if size is not None and size != here:
            raise GPSDataError(f"plot() tried to change tuplesize in a chunk: {size} vs {here}")
        size = here
    assert size is not None
    return size


def _implicit_domain(is3d: bool, tuplesize: int, data: list[np.ndarray]) -> list[np.ndarray]:
    n = len(data)
    if not is3d and n + 1 == tuplesize:
        # 0, 1, 2, ... along the points axis
        return [np.arange(data[0].shape[-1], dtype=np.float64), *data]

    if is3d and n + 2 == tuplesize:
        if any(a.ndim < 2 for a in data):
            raise GPSDataError(
                "plot() tried to build a 2D implicit domain, but the data arrays "
                "need at least 2 dimensions"
            )
        ny, nx = data[0].shape[-2:]
        yy, xx = np.indices((ny, nx), dtype=np.float64)
        gridded = []
        for a in data:
            if a.shape[-2:] != (ny, nx):
                raise GPSDataError(
                    f"plot() was given mismatched grids: {a.shape[-2:]} vs {(ny, nx)}"
                )
            gridded.append(a.reshape(a.shape[:-2] + (ny * nx,)))
        return [xx.reshape(-1), yy.reshape(-1), *gridded]

    raise GPSDataError(f"plot() needed {tuplesize} data arrays, but only got {n}")


def _accumulate(
    base: CurveOptions, args: Sequence[Any]
) -> tuple[list[CurveOptions], CurveOptions]:
    curves = []
    for arg in args:
        if isinstance(arg, CurveOptions):
            current = base.merged(arg.model_dump(by_alias=True, exclude_unset=True))
        else:
            current = base.merged(arg)
        curves.append(current)
        base = current.carried()
    return curves, base


def parse_args(args: Sequence[Any], *, is3d: bool = False) -> list[Chunk]:
    """Split plot-call arguments into chunks.

    Parameters
    ----------
    args : sequence
        Curve-option mappings and array-likes, in plot-call order.
    is3d : bool
        Whether this is a 3D (``splot``) plot; changes the default tuple size
        and the implicit domain.

    Returns
    -------
    list[Chunk]
        Empty when ``args`` holds no data.

    Raises
    ------
    GPSConfigError
        For unknown or invalid curve options.
    GPSDataError
        For data that cannot be arranged into curves.

    """
    for arg in args:
        if isinstance(arg, (str, bytes)):
            raise GPSDataError(
                f"plot() got a string argument {arg!r}; pass curve options as a dict"
            )

    last = CurveOptions()
    chunks: list[Chunk] = []
    i, n = 0, len(args)

    while i < n:
        data_idx = next((j for j in range(i, n) if not _is_options(args[j])), None)
        if data_idx is None:
            break

        last = last.carried()
        if data_idx > i:
            options, last = _accumulate(last, args[i:data_idx])
        else:
            options = [last]

        end = next((j for j in range(data_idx, n) if _is_options(args[j])), n)
        size = tuple_size(is3d, options)
        # extra arrays start the next chunk with the same options
        end = min(end, data_idx + size)

        data = [np.asarray(a, dtype=np.float64) for a in args[data_idx:end]]
        data = [a.reshape(1) if a.ndim == 0 else a for a in data]
        if len(data) < size:
            data = _implicit_domain(is3d, size, data)

        chunks.append(Chunk.from_arrays(options, data, size))
        i = end

    return chunks
