"""gpsync: Process Supervisor
--------------------------

Owns the gnuplot child process: launching it with the right flags, exposing
its input pipe and a pollable diagnostic (stderr) stream, and tearing it down
so that no zombie is left behind.

Public API
----------
``ChildProcess`` : Handles and state for one running gnuplot
``ProcessSupervisor`` : Starts and terminates ``ChildProcess`` instances
``detect_features`` : Cached capability probe of a gnuplot executable

Notes
-----
- A child that stopped answering checkpoints is marked *stuck*. A stuck
  gnuplot is no longer reading commands, so it is terminated with a signal
  instead of being sent ``exit``.
- In dump mode nothing is spawned; commands go to the caller's stdout and
  there is no diagnostic stream.

"""

from __future__ import annotations

import os
import re
import selectors
import subprocess
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from typing import BinaryIO

from .core.config_loader import load_system_config
from .core.errors import GPSIOError, GPSSpawnError, get_logger
from .core.system_config import SystemConfig
from .eventlog import EventLog

__all__ = ["ChildProcess", "ProcessSupervisor", "detect_features"]

log = get_logger()

_FEATURE_RE = re.compile(rb"--([a-zA-Z0-9_]+)")
_PROBE_TIMEOUT_S = 10.0


@lru_cache(maxsize=None)
def detect_features(command: tuple[str, ...]) -> frozenset[str]:
    """Return the capabilities of the gnuplot launched by ``command``.

    Every ``--flag`` mentioned in ``gnuplot --help`` becomes a feature
    (``persist`` is the one that matters), and ``equal_3d`` is added when
    gnuplot accepts ``set view equal`` silently. The result is cached per
    command for the lifetime of the interpreter.

    A gnuplot that cannot be run yields an empty set; launching it for real
    will raise ``GPSSpawnError`` later.
    """
    features: set[str] = set()

    try:
        helped = subprocess.run(
            [*command, "--help"],
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=_PROBE_TIMEOUT_S,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.warning(f"Could not query features of {command[0]!r}: {e}")
        return frozenset()
    text = helped.stdout + b"\n" + helped.stderr
    features.update(m.decode("ascii") for m in _FEATURE_RE.findall(text))

    try:
        probe = subprocess.run(
            list(command),
            input=b"set view equal\nexit\n",
            capture_output=True,
            timeout=_PROBE_TIMEOUT_S,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        log.warning(f"Could not probe 'set view equal' support: {e}")
    else:
        # silent when the command is understood
        if not probe.stdout and not probe.stderr:
            features.add("equal_3d")

    log.debug(f"gnuplot features: {sorted(features)}")
    return frozenset(features)


@dataclass(eq=False)
class ChildProcess:
    """A running gnuplot, or the caller's stdout in dump mode.

    Attributes
    ----------
    stdin : BinaryIO
        Where commands and payloads are written.
    stderr : BinaryIO or None
        Gnuplot's diagnostic stream; None in dump mode.
    popen : subprocess.Popen or None
        The process handle; None in dump mode or for wrapped streams.
    stuck : bool
        Set permanently once a checkpoint timed out.
    pending : bytes
        Diagnostic bytes read past the last sentinel, kept for the next
        checkpoint.

    """

    stdin: BinaryIO
    stderr: BinaryIO | None = None
    popen: subprocess.Popen | None = None
    owns_stdin: bool = True
    stuck: bool = False
    stuck_reason: str = ""
    pending: bytes = b""
    selector: selectors.BaseSelector | None = field(default=None, repr=False)

    def __post_init__(self):
        if self.stderr is not None and self.selector is None:
            self.selector = selectors.DefaultSelector()
            self.selector.register(self.stderr, selectors.EVENT_READ)

    @property
    def pid(self) -> int | None:
        return self.popen.pid if self.popen is not None else None

    @property
    def has_diagnostics(self) -> bool:
        return self.stderr is not None

    def write(self, data: bytes) -> None:
        """Write and flush ``data`` to gnuplot's input."""
        try:
            self.stdin.write(data)
            self.stdin.flush()
        except (OSError, ValueError) as e:
            raise GPSIOError(f"Cannot write to gnuplot: {e}") from e

    def wait_readable(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds for diagnostic output."""
        if self.selector is None:
            return False
        return bool(self.selector.select(timeout))

    def read_available(self, size: int) -> bytes:
        """Read whatever is available, up to ``size`` bytes; b"" means EOF."""
        if self.stderr is None:
            return b""
        return os.read(self.stderr.fileno(), size)

    def mark_stuck(self, reason: str) -> None:
        self.stuck = True
        self.stuck_reason = reason

    def close_input(self) -> None:
        if self.owns_stdin and not self.stdin.closed:
            try:
                self.stdin.close()
            except OSError as e:
                log.debug(f"Closing gnuplot input failed: {e}")

    def close(self) -> None:
        """Release the streams and the selector."""
        self.close_input()
        if self.selector is not None:
            self.selector.close()
            self.selector = None
        if self.stderr is not None and not self.stderr.closed:
            self.stderr.close()


class ProcessSupervisor:
    """Launches and terminates gnuplot child processes.

    Parameters
    ----------
    config : SystemConfig, optional
        Process settings. Loaded from the configuration chain when omitted.
    event_log : EventLog, optional
        Session event log; receives the child's pid once started.

    """

    def __init__(
        self,
        config: SystemConfig | None = None,
        event_log: EventLog | None = None,
    ):
        self.config = config if config is not None else load_system_config()
        self.event_log = event_log if event_log is not None else EventLog()

    def command(self) -> list[str]:
        """Build the argv used to launch gnuplot."""
        argv = list(self.config.gnuplot)
        if self.config.persist and "persist" in detect_features(tuple(argv)):
            argv.append("--persist")
        return argv

    def start(self, dump: bool = False, stream: BinaryIO | None = None) -> ChildProcess:
        """Start gnuplot, or wrap stdout when ``dump`` is set.

        Parameters
        ----------
        dump : bool
            Do not spawn anything; write everything to ``stream``.
        stream : BinaryIO, optional
            Destination in dump mode. Defaults to ``sys.stdout.buffer``.

        Raises
        ------
        GPSSpawnError
            If the gnuplot executable cannot be launched.

        """
        if dump:
            out = stream if stream is not None else sys.stdout.buffer
            return ChildProcess(stdin=out, owns_stdin=False)

        argv = self.command()
        try:
            popen = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise GPSSpawnError(f"Couldn't run the gnuplot backend {argv!r}: {e}") from e

        self.event_log.pid = popen.pid
        self.event_log(f"started {' '.join(argv)}")
        assert popen.stdin is not None and popen.stderr is not None
        return ChildProcess(stdin=popen.stdin, stderr=popen.stderr, popen=popen)

    def terminate(self, child: ChildProcess) -> None:
        """Shut ``child`` down and reap it.

        A stuck child is sent SIGTERM; otherwise ``exit`` is written and the
        input closed. Either way the process is waited for.
        """
        if child.popen is None:
            child.close()
            return

        popen = child.popen
        if child.stuck:
            self.event_log("terminating stuck gnuplot")
            popen.terminate()
        else:
            try:
                child.write(b"exit\n")
            except GPSIOError as e:
                log.debug(f"gnuplot already gone: {e}")
        child.close_input()

        try:
            popen.wait(timeout=self.config.exit_timeout)
        except subprocess.TimeoutExpired:
            log.warning(
                f"gnuplot (pid {popen.pid}) did not exit within "
                f"{self.config.exit_timeout}s; killing it"
            )
            popen.kill()
            popen.wait()
        self.event_log(f"gnuplot exited with status {popen.returncode}")
        child.close()
