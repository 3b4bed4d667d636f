"""gpsync: Checkpoint Protocol
---------------------------

Synchronizes gpsync with the gnuplot child. Gnuplot gives no acknowledgement
for a command, and an error message may not have arrived yet when we look for
it. So after a write, gnuplot is asked to print a sentinel on its stderr, and
everything read before that sentinel is what gnuplot had to say about the
preceding input.

States: IDLE → AWAITING_TOKEN → TOKEN_FOUND, or → TIMED_OUT. TIMED_OUT is
terminal: the child is marked stuck and never spoken to again.

Public API
----------
``Checkpointer`` : Runs checkpoints against one child
``CheckpointState`` : State of the last checkpoint
``scrub_diagnostics`` : Warning/placeholder filtering of captured text
``forward_warning`` : Default warning sink
"""

from __future__ import annotations

import re
import time
import warnings
from collections.abc import Callable
from enum import Enum
from typing import NoReturn

from .channel import CommandChannel
from .core.errors import GPSHangTimeout, GPSWarning
from .core.system_config import SystemConfig
from .encoder import ASCII_END_MARKER, ASCII_TEST_UNIT
from .eventlog import EventLog
from .process import ChildProcess

__all__ = [
    "SYNC_SENTINEL",
    "CheckpointState",
    "Checkpointer",
    "WarningSink",
    "forward_warning",
    "scrub_diagnostics",
]

SYNC_SENTINEL = "xxxxxxx Synchronizing gnuplot i/o xxxxxxx"

WARNING_RE = re.compile(r"^(?:Warning:\s*(.*?)\s*$)\n?", re.MULTILINE)

# Gnuplot's complaint about one line of dry-run placeholder data that was read
# as a command because the plot command itself was refused:
#
#   gnuplot> 10 10
#            ^
#            line 0: invalid command
_END = ASCII_END_MARKER.decode("ascii").strip()
INVALID_PLACEHOLDER_RE = re.compile(
    r"^gnuplot>\s*(?:" + re.escape(ASCII_TEST_UNIT) + "|" + re.escape(_END) + r"\b).*$"
    r"\n^\s+\^\s*$"
    r"\n^.*invalid\s+command.*$\n?",
    re.MULTILINE,
)

WarningSink = Callable[[str], None]


def forward_warning(text: str) -> None:
    """Re-issue a gnuplot warning as a ``GPSWarning``."""
    warnings.warn(f"Gnuplot warning: {text}", GPSWarning, stacklevel=2)


def scrub_diagnostics(
    text: str,
    *,
    warning_sink: WarningSink | None = None,
    ignore_invalid_command: bool = False,
) -> str:
    """Strip warnings (forwarding them if a sink is given) and surrounding blanks.

    With ``ignore_invalid_command`` the errors caused by dry-run placeholder
    data are removed as well. The plot command itself never produces an
    ``invalid command`` report, so no real error is masked.
    """
    if warning_sink is not None:
        for m in WARNING_RE.finditer(text):
            warning_sink(m.group(1))
    text = WARNING_RE.sub("", text)

    if ignore_invalid_command:
        text = INVALID_PLACEHOLDER_RE.sub("", text)

    return text.strip()


class CheckpointState(Enum):
    IDLE = "idle"
    AWAITING_TOKEN = "awaiting_token"
    TOKEN_FOUND = "token_found"
    TIMED_OUT = "timed_out"


class Checkpointer:
    """Runs checkpoints over a command channel.

    Parameters
    ----------
    channel : CommandChannel
        Channel to the child; the sentinel request is written through it.
    config : SystemConfig
        Supplies ``checkpoint_timeout``, ``checkpoint_deadline`` and
        ``read_size``.
    warning_sink : callable, optional
        Receives the text of each gnuplot ``Warning:`` line when warnings are
        forwarded. Defaults to ``forward_warning``.
    event_log : EventLog, optional
        Session event log.

    """

    def __init__(
        self,
        channel: CommandChannel,
        config: SystemConfig,
        warning_sink: WarningSink | None = None,
        event_log: EventLog | None = None,
    ):
        self.channel = channel
        self.config = config
        self.warning_sink = warning_sink if warning_sink is not None else forward_warning
        self.event_log = event_log if event_log is not None else channel.event_log
        self.state = CheckpointState.IDLE

    @property
    def child(self) -> ChildProcess:
        return self.channel.child

    def checkpoint(
        self,
        *,
        print_warnings: bool = False,
        ignore_invalid_command: bool = False,
    ) -> str | None:
        """Wait until gnuplot has processed everything written so far.

        Parameters
        ----------
        print_warnings : bool
            Forward gnuplot warnings to the warning sink; otherwise they are
            dropped.
        ignore_invalid_command : bool
            Drop the errors produced by dry-run placeholder data.

        Returns
        -------
        str or None
            Gnuplot's remaining diagnostic text (empty when all is well), or
            None when there is no diagnostic stream (dump mode).

        Raises
        ------
        GPSHangTimeout
            If gnuplot produced nothing for ``checkpoint_timeout`` seconds,
            exited, or overran ``checkpoint_deadline``. The child is marked
            stuck; so is every later call.

        """
        child = self.child
        if child.stuck:
            raise GPSHangTimeout(child.stuck_reason)

        self.channel.send(f'print "{SYNC_SENTINEL}"')
        if not child.has_diagnostics:
            return None

        self.state = CheckpointState.AWAITING_TOKEN
        raw = self._read_until_sentinel(child)
        self.state = CheckpointState.TOKEN_FOUND

        return scrub_diagnostics(
            raw.decode("utf-8", errors="replace"),
            warning_sink=self.warning_sink if print_warnings else None,
            ignore_invalid_command=ignore_invalid_command,
        )

    def _read_until_sentinel(self, child: ChildProcess) -> bytes:
        token = SYNC_SENTINEL.encode("ascii")
        buf = child.pending
        child.pending = b""
        scan_from = 0

        deadline = None
        if self.config.checkpoint_deadline is not None:
            deadline = time.monotonic() + self.config.checkpoint_deadline

        while True:
            idx = buf.find(token, scan_from)
            if idx >= 0:
                break
            scan_from = max(0, len(buf) - len(token) + 1)

            wait = self.config.checkpoint_timeout
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._hang(
                        child,
                        "Gnuplot did not finish synchronizing within "
                        f"{self.config.checkpoint_deadline}s.",
                    )
                wait = min(wait, remaining)

            self.event_log("Trying to read from gnuplot")
            if not child.wait_readable(wait):
                self.event_log("Gnuplot read timed out")
                self._hang(
                    child,
                    "Gnuplot process no longer responding (no output for "
                    f"{wait:g}s). This is likely a bug in gpsync and/or gnuplot "
                    "itself.",
                )

            chunk = child.read_available(self.config.read_size)
            if not chunk:
                self._hang(child, "Gnuplot process exited while synchronizing.")
            self.event_log(f"Read {len(chunk)} bytes from gnuplot child process: {chunk!r}")
            buf += chunk

        # the rest of the sentinel's line is dropped; anything after it is
        # kept for the next checkpoint
        end = buf.find(b"\n", idx + len(token))
        child.pending = b"" if end < 0 else buf[end + 1 :]
        return buf[:idx]

    def _hang(self, child: ChildProcess, reason: str) -> NoReturn:
        self.state = CheckpointState.TIMED_OUT
        child.mark_stuck(reason)
        raise GPSHangTimeout(reason)
