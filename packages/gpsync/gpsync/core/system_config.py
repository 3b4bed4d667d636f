"""gpsync: System Configuration Model
---------------------------------------------------------
Defines the Pydantic model for process-level settings (``system.yaml``): which
gnuplot to launch and how long to wait for it. These settings are independent of
any individual plot and apply to every session created in the interpreter.

Public API
----------
``SystemConfig`` : Root configuration model

Notes
-----
- Supports multi-level override: package defaults → system → user → environment
  (see ``gpsync.core.config_loader.load_system_config``)

"""

import shlex
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["SystemConfig"]


class SystemConfig(BaseModel):
    """System-wide gnuplot process settings.

    Attributes
    ----------
    gnuplot : list[str]
        Command used to launch gnuplot. Extra arguments are allowed, so a
        wrapper script or interpreter plus script path works too.
    checkpoint_timeout : float
        Seconds to wait for *any* diagnostic output while synchronizing before
        declaring the process hung.
    checkpoint_deadline : float or None
        Optional upper bound, in seconds, on one whole synchronization. None
        means a checkpoint may take as long as gnuplot keeps talking.
    exit_timeout : float or None
        Seconds to wait for gnuplot to exit on close before killing it.
        None waits indefinitely.
    persist : bool
        Ask gnuplot to keep its windows open after we exit, when supported.
    read_size : int
        Bytes requested per read of the diagnostic stream.

    """

    model_config = ConfigDict(extra="forbid")

    gnuplot: list[str] = Field(
        default_factory=lambda: ["gnuplot"],
        description="Command (argv prefix) used to launch gnuplot.",
    )
    checkpoint_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds without diagnostic output before gnuplot is "
        "considered hung.",
    )
    checkpoint_deadline: float | None = Field(
        default=None,
        gt=0,
        description="Overall limit on a single checkpoint, in seconds.",
    )
    exit_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for gnuplot to exit before killing it.",
    )
    persist: bool = Field(
        default=True,
        description="Pass --persist to gnuplot when it supports the flag.",
    )
    read_size: int = Field(
        default=4096,
        ge=1,
        description="Bytes per read from gnuplot's diagnostic stream.",
    )

    @field_validator("gnuplot", mode="before")
    @classmethod
    def split_command_string(cls, v: Any) -> Any:
        """Accept a shell-style command string as well as a list."""
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @field_validator("gnuplot")
    @classmethod
    def validate_command_not_empty(cls, v: list[str]) -> list[str]:
        """Validate that the gnuplot command has an executable."""
        if not v or not v[0].strip():
            raise ValueError("gnuplot command cannot be empty")
        return v
