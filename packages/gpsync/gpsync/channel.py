"""gpsync: Command Channel
-----------------------

Line-oriented writes to gnuplot's input, plus a guarded path for commands that
originate outside gpsync (plot options, ``extracmds``).

Gnuplot's stderr doubles as gpsync's error-detection channel, so any command
that could silence it, print onto it, or change where output goes behind our
back is refused on the guarded path. Terminal and output changes are allowed
only when the caller names them in ``allow``; the session does that for its
own ``terminal``/``output`` options.
"""

from __future__ import annotations

import re
from collections.abc import Collection
from typing import TYPE_CHECKING

from .core.errors import GPSHangTimeout, GPSProtocolError, GPSProtocolGuardError
from .eventlog import EventLog
from .process import ChildProcess

if TYPE_CHECKING:
    from .checkpoint import Checkpointer

__all__ = ["CommandChannel", "check_allowed", "split_lines"]

# optionally preceded by earlier commands on the same line, or guarded by an
# 'if (...)' condition
_PREFIX = r"^(?:.*[;{])?\s*(?:if\s*\(.*\)\s*\{?\s*)?"


def _abbrev(word: str, shortest: int) -> str:
    """Regex for ``word`` and every abbreviation gnuplot accepts for it."""
    pattern = ""
    for ch in reversed(word[shortest:]):
        pattern = f"(?:{re.escape(ch)}{pattern})?"
    return re.escape(word[:shortest]) + pattern


_DISALLOWED: list[tuple[re.Pattern[str], str | None, str]] = [
    (
        re.compile(_PREFIX + r"set\s+" + _abbrev("print", 2) + r"\b"),
        None,
        "Please don't 'set print' since gnuplot's stderr is used for error detection",
    ),
    (
        re.compile(_PREFIX + _abbrev("print", 2) + r"(?:err)?\b"),
        None,
        "Please don't ask gnuplot to 'print' anything since this can confuse "
        "error detection",
    ),
    (
        re.compile(_PREFIX + _abbrev("evaluate", 2) + r"\b"),
        None,
        "Please don't 'eval' commands since they can't be checked before sending",
    ),
    (
        re.compile(_PREFIX + r"set\s+" + _abbrev("terminal", 1) + r"\b"),
        "terminal",
        "Please do not 'set terminal' manually. Use the 'terminal' plot option instead",
    ),
    (
        re.compile(_PREFIX + r"set\s+" + _abbrev("output", 1) + r"\b"),
        "output",
        "Please do not 'set output' manually. Use the 'output' plot option instead",
    ),
]

_LINE_SPLIT = re.compile(r"\s*?\n+\s*?")


def split_lines(text: str) -> list[str]:
    """Split ``text`` into the non-empty lines that would be sent."""
    return [line for line in _LINE_SPLIT.split(text) if line.strip()]


def check_allowed(line: str, allow: Collection[str] = ()) -> None:
    """Raise ``GPSProtocolGuardError`` if ``line`` may not be sent.

    Parameters
    ----------
    line : str
        A single command line.
    allow : collection of str
        Overrides for specific guards: ``"terminal"`` and/or ``"output"``.

    """
    for pattern, override, message in _DISALLOWED:
        if pattern.match(line) and (override is None or override not in allow):
            raise GPSProtocolGuardError(f"{message} (got {line!r})")


class CommandChannel:
    """Writes commands and raw payload bytes to a gnuplot child.

    Parameters
    ----------
    child : ChildProcess
        The process whose input is written.
    event_log : EventLog, optional
        Receives every write when session logging is on.

    """

    def __init__(self, child: ChildProcess, event_log: EventLog | None = None):
        self.child = child
        self.event_log = event_log if event_log is not None else EventLog()

    def write(self, data: bytes) -> None:
        """Write raw bytes (payloads) with no framing."""
        if self.child.stuck:
            raise GPSHangTimeout(self.child.stuck_reason)
        self.event_log.mirror(data)
        self.child.write(data)

    def send(self, line: str) -> None:
        """Write exactly one command line, unconditionally."""
        self.write(line.rstrip("\n").encode("utf-8") + b"\n")

    def send_guarded(
        self,
        text: str,
        checkpointer: Checkpointer,
        *,
        allow: Collection[str] = (),
    ) -> None:
        """Send each line of ``text``, synchronizing after every one.

        All lines are checked before anything is written, so a rejected
        command leaves gnuplot untouched.

        Raises
        ------
        GPSProtocolGuardError
            If a line would interfere with error detection.
        GPSProtocolError
            If gnuplot reports an error for a line; the message names the
            line and carries gnuplot's text.

        """
        lines = split_lines(text)
        for line in lines:
            check_allowed(line, allow)

        for line in lines:
            self.send(line)
            message = checkpointer.checkpoint(print_warnings=True)
            if message:
                raise GPSProtocolError(
                    f'Gnuplot error: "\n{message}\n" while sending line "{line}"',
                    diagnostic=message,
                    command=line,
                )
