"""gpsync: Session Event Log
-------------------------

Timestamped trace of everything a session sends to and reads from gnuplot.
Enabled per session with the ``log`` plot option; silent otherwise.
"""

import time

from .core.errors import get_logger

__all__ = ["EventLog"]

log = get_logger()


class EventLog:
    """Callable that records protocol events relative to a session start.

    Parameters
    ----------
    enabled : bool
        When False every call is a no-op.

    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self.t0 = time.monotonic()
        self.pid: int | None = None

    def __call__(self, event: str) -> None:
        if not self.enabled:
            return
        t1 = time.monotonic() - self.t0
        log.info(f"==== gpsync PID {self.pid} at t={t1:.4f}: {event}")

    def mirror(self, payload: bytes) -> None:
        """Record payload bytes exactly as written to gnuplot."""
        if not self.enabled:
            return
        text = payload.decode("utf-8", errors="backslashreplace")
        self(
            f"Sent to child process {len(payload)} bytes ==========\n"
            f"{text}\n========================="
        )
