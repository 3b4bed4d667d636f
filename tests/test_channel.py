"""Command channel framing and the guard on externally supplied commands."""

import io

import pytest

from gpsync.channel import CommandChannel, check_allowed, split_lines
from gpsync.core.errors import GPSHangTimeout, GPSProtocolError, GPSProtocolGuardError
from gpsync.process import ChildProcess


class ScriptedCheckpointer:
    """Returns canned diagnostics, one per checkpoint."""

    def __init__(self, replies=()):
        self.replies = list(replies)
        self.calls = 0

    def checkpoint(self, *, print_warnings=False, ignore_invalid_command=False):
        self.calls += 1
        return self.replies.pop(0) if self.replies else ""


@pytest.fixture
def channel():
    return CommandChannel(ChildProcess(stdin=io.BytesIO(), owns_stdin=False))


def written(channel):
    return channel.child.stdin.getvalue()


@pytest.mark.parametrize(
    "line",
    [
        "set print 'out.txt'",
        "print 1+1",
        "set xrange [0:1]; print 'x'",
        "set terminal png",
        "set term png",
        "set output 'a.png'",
        "set out 'a.png'",
        "  set   terminal   x11",
        "set pr 'out.txt'",
        "set pri 'out.txt'",
        "pr 1",
        "printerr 'x'",
        "set t png",
        "set te png",
        "set o 'a.png'",
        "if (1) print 'x'",
        "if (1) { set print 'x' }",
        "eval 'print 1'",
    ],
)
def test_guard_rejects(line):
    with pytest.raises(GPSProtocolGuardError):
        check_allowed(line)


@pytest.mark.parametrize(
    "line",
    ["set grid", "set xlabel 'print'", "set key left", "set title 'output'",
     "set tics out", "set origin 0,0", "set offsets 0,0,0,0", "set parametric"],
)
def test_guard_allows(line):
    check_allowed(line)


def test_guard_overrides():
    check_allowed("set terminal png", allow=("terminal",))
    check_allowed("set t png", allow=("terminal",))
    check_allowed("set o 'a.png'", allow=("output",))
    check_allowed('set output "a.png"', allow=("output",))
    with pytest.raises(GPSProtocolGuardError):
        check_allowed("set terminal png", allow=("output",))
    with pytest.raises(GPSProtocolGuardError):
        check_allowed("print 1", allow=("terminal", "output"))


def test_split_lines_drops_blanks():
    assert split_lines("set grid\n\n  \nset key left\n") == ["set grid", "set key left"]


def test_send_writes_exactly_one_newline(channel):
    channel.send("set grid")
    channel.send("set key left\n")
    assert written(channel) == b"set grid\nset key left\n"


def test_send_guarded_checks_everything_first(channel):
    checkpointer = ScriptedCheckpointer()
    with pytest.raises(GPSProtocolGuardError):
        channel.send_guarded("set grid\nset print 'x'", checkpointer)
    assert written(channel) == b""
    assert checkpointer.calls == 0


def test_send_guarded_synchronizes_each_line(channel):
    checkpointer = ScriptedCheckpointer()
    channel.send_guarded("set grid\nset key left", checkpointer)
    assert written(channel) == b"set grid\nset key left\n"
    assert checkpointer.calls == 2


def test_send_guarded_reports_gnuplot_errors(channel):
    checkpointer = ScriptedCheckpointer(["", "line 0: unrecognized option"])
    with pytest.raises(GPSProtocolError) as info:
        channel.send_guarded("set grid\nset bogus\nset key left", checkpointer)

    err = info.value
    assert err.command == "set bogus"
    assert err.diagnostic == "line 0: unrecognized option"
    assert 'while sending line "set bogus"' in str(err)
    # the line after the failing one was never sent
    assert written(channel) == b"set grid\nset bogus\n"


def test_stuck_child_is_never_written(channel):
    channel.child.mark_stuck("no answer")
    with pytest.raises(GPSHangTimeout, match="no answer"):
        channel.send("set grid")
    assert written(channel) == b""
