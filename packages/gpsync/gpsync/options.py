"""gpsync: Plot and Curve Options
------------------------------

Closed vocabularies for the two kinds of options a plot call accepts.

Plot options configure a whole session and are fixed when it is created.
Curve options describe individual curves; they accumulate from one curve to
the next, except ``legend``, which is cleared whenever options are carried
over so that two curves never share a title.

Public API
----------
``PlotOptions`` : Session-level options and their gnuplot setup commands
``CurveOptions`` : Per-curve options and their ``plot`` clause
``PLOT_OPTION_KEYS`` / ``CURVE_OPTION_KEYS`` : The accepted key names
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import PurePath
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .core.errors import GPSConfigError, get_logger

__all__ = [
    "CURVE_OPTION_KEYS",
    "HARDCOPY_TERMINALS",
    "PLOT_OPTION_KEYS",
    "CurveOptions",
    "PlotOptions",
    "quote",
]

log = get_logger()

Bound = int | float | str | None

HARDCOPY_TERMINALS = {
    ".eps": "postscript solid color enhanced eps",
    ".ps": "postscript solid color landscape 10",
    ".pdf": 'pdf solid color font ",10" size 11in,8.5in',
    ".png": "png size 1280,1024",
}


def quote(text: str) -> str:
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    # commands must stay on one line
    return f'"{escaped}"'


def _keys(model: type[BaseModel]) -> frozenset[str]:
    return frozenset(f.alias or name for name, f in model.model_fields.items())


def _validation_message(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


class CurveOptions(BaseModel):
    """Options for one curve.

    Attributes
    ----------
    legend : str or None
        Curve title in the key; ``notitle`` when None.
    y2 : bool
        Plot against the right-hand y axis.
    with_ : str or None
        Plot style (``with`` on input). Falls back to the session's
        ``globalwith`` when empty.
    tuplesize : int or None
        Number of data columns per point. Defaults to 2 (3 for 3D plots).

    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    legend: str | None = None
    y2: bool = False
    with_: str | None = Field(default=None, alias="with")
    tuplesize: int | None = Field(default=None, ge=1)

    @classmethod
    def parse(cls, options: Mapping[str, Any] | None = None) -> CurveOptions:
        """Validate a mapping of curve options, raising ``GPSConfigError``."""
        return cls().merged(options or {})

    def merged(self, overrides: Mapping[str, Any]) -> CurveOptions:
        """Return these options with ``overrides`` applied on top."""
        unknown = sorted(set(overrides) - CURVE_OPTION_KEYS)
        if unknown:
            raise GPSConfigError(f"plot() got some unknown curve options: {unknown}")
        data = self.model_dump(by_alias=True)
        for key, value in overrides.items():
            data["with" if key == "with_" else key] = value
        try:
            return CurveOptions.model_validate(data)
        except ValidationError as e:
            raise GPSConfigError(f"Invalid curve options: {_validation_message(e)}") from e

    def carried(self) -> CurveOptions:
        """Copy used for the next curve: everything but the legend."""
        return self.model_copy(update={"legend": None})

    def clause(self, globalwith: str | None = None) -> str:
        """Render the part of a ``plot`` clause that follows the data source."""
        parts = [f"title {quote(self.legend)}" if self.legend is not None else "notitle"]
        style = self.with_ or globalwith
        if style:
            parts.append(f"with {style}")
        if self.y2:
            parts.append("axes x1y2")
        return " ".join(parts)


class PlotOptions(BaseModel):
    """Session-wide plot options.

    ``3d`` is accepted under its plot-call name; the attribute is ``is3d``.
    Validation expands ``hardcopy`` into ``terminal`` and ``output``, so a
    validated instance is not re-validated from its own dump.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    is3d: bool = Field(default=False, alias="3d")
    dump: bool = Field(default=False, description="Write to stdout instead of gnuplot.")
    binary: bool = Field(default=False, description="Send data as packed doubles.")
    log: bool = Field(default=False, description="Trace all gnuplot I/O.")
    extracmds: list[str] = Field(default_factory=list)
    nogrid: bool = False
    square: bool = False
    square_xy: bool = False
    title: str | None = None
    hardcopy: str | None = None
    terminal: str | None = None
    output: str | None = None
    globalwith: str = "linespoints"

    xlabel: str | None = None
    xmin: Bound = None
    xmax: Bound = None
    ylabel: str | None = None
    ymin: Bound = None
    ymax: Bound = None
    y2label: str | None = None
    y2min: Bound = None
    y2max: Bound = None
    zlabel: str | None = None
    zmin: Bound = None
    zmax: Bound = None
    cbmin: Bound = None
    cbmax: Bound = None

    @field_validator("extracmds", mode="before")
    @classmethod
    def wrap_single_command(cls, v: Any) -> Any:
        """Accept a single command string as a one-element list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @model_validator(mode="after")
    def check_combinations(self) -> PlotOptions:
        """Reject contradictory options and expand ``hardcopy``."""
        if self.is3d:
            if self.y2min is not None or self.y2max is not None:
                raise ValueError("'3d' does not make sense with 'y2'")
        elif self.square_xy:
            raise ValueError("'square_xy' only makes sense with '3d'")

        if self.hardcopy is not None:
            if self.terminal is not None or self.output is not None:
                raise ValueError(
                    "The 'hardcopy' option can't coexist with either 'terminal' "
                    "or 'output'. If the defaults are acceptable, use 'hardcopy' "
                    "only, otherwise use 'terminal' and 'output' to get more control."
                )
            suffix = PurePath(self.hardcopy).suffix.lower()
            if suffix not in HARDCOPY_TERMINALS:
                raise ValueError("Only .eps, .ps, .pdf and .png hardcopy output supported")
            self.terminal = HARDCOPY_TERMINALS[suffix]
            self.output = self.hardcopy
        return self

    @classmethod
    def parse(cls, options: Mapping[str, Any] | PlotOptions | None = None) -> PlotOptions:
        """Validate plot options, raising ``GPSConfigError`` on bad input."""
        if isinstance(options, PlotOptions):
            return options
        options = dict(options or {})
        unknown = sorted(set(options) - PLOT_OPTION_KEYS)
        if unknown:
            raise GPSConfigError(f"Got option(s) that were NOT a plot option: {unknown}")
        try:
            return cls.model_validate(options)
        except ValidationError as e:
            raise GPSConfigError(f"Invalid plot options: {_validation_message(e)}") from e

    def setup_commands(self, features: frozenset[str] = frozenset()) -> list[str]:
        """Gnuplot commands establishing these options in a fresh session.

        ``terminal`` and ``output`` are not included; the session sends them
        before each plot, after the plot command has been tried out.

        Parameters
        ----------
        features : frozenset of str
            Capabilities of the target gnuplot (see ``detect_features``).

        """
        cmds: list[str] = []

        if not self.nogrid:
            cmds.append("set grid")

        for axis in ("x", "y", "z", "cb", "y2"):
            lo = getattr(self, f"{axis}min")
            hi = getattr(self, f"{axis}max")
            if lo is None and hi is None:
                continue
            lo = "" if lo is None else lo
            hi = "" if hi is None else hi
            cmds.append(f"set {axis}range [{lo}:{hi}]")

        for axis in ("x", "y", "z", "y2"):
            label = getattr(self, f"{axis}label")
            if label is not None:
                cmds.append(f"set {axis}label {quote(label)}")
        if self.title is not None:
            cmds.append(f"set title {quote(self.title)}")

        if self.is3d:
            if (self.square or self.square_xy) and "equal_3d" not in features:
                log.warning(
                    "Your gnuplot doesn't support square aspect ratios for 3D "
                    "plots, so I'm ignoring that"
                )
            elif self.square:
                cmds.append("set view equal xyz")
            elif self.square_xy:
                cmds.append("set view equal xy")
        elif self.square:
            cmds.append("set size ratio -1")

        if self.terminal is not None and self.output is None:
            log.warning(
                "Defined gnuplot terminal, but NOT an output file. "
                "Is this REALLY what you want?"
            )

        cmds.extend(self.extracmds)
        return cmds


PLOT_OPTION_KEYS = _keys(PlotOptions) | frozenset(PlotOptions.model_fields)
CURVE_OPTION_KEYS = _keys(CurveOptions) | frozenset(CurveOptions.model_fields)
