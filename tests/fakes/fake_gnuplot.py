"""A stand-in for gnuplot used by the integration tests.

Implements just enough of the command language to exercise gpsync's protocol:
``print`` to stderr, a subset of ``set``, ``pause``, ``plot``/``splot`` with
``'-'`` ASCII or binary data, error reports in gnuplot's layout, ``--help``
and ``exit``.

When ``FAKE_GNUPLOT_LOG`` names a file, every executed statement is appended
as ``CMD <statement>`` and every data block read as ``DATA <json rows>``.
"""

import json
import os
import re
import shlex
import struct
import sys
import time

SET_OPTIONS = {
    "grid", "xrange", "yrange", "zrange", "cbrange", "y2range",
    "xlabel", "ylabel", "zlabel", "y2label", "title", "size", "view",
    "terminal", "term", "output", "out", "ytics", "y2tics", "key", "style",
    "logscale", "print", "autoscale",
}
TERMINALS = {
    "dumb", "png", "pngcairo", "pdf", "pdfcairo", "postscript", "svg",
    "x11", "qt", "wxt", "unknown", "push", "pop",
}
STYLES = {
    "lines", "points", "linespoints", "dots", "impulses", "steps", "boxes",
    "image", "pm3d", "labels", "yerrorbars", "xerrorbars", "vectors",
    "filledcurves", "errorbars",
}
RANGE_RE = re.compile(r"^set\s+(x|y|z|cb|y2)range\s*\[\s*([^:\]]*)\s*:\s*([^\]]*)\s*\]")


class GnuplotError(Exception):
    pass


class Fake:
    def __init__(self, inp, err, log_path=None):
        self.inp = inp
        self.err = err
        self.log = open(log_path, "a", encoding="utf-8") if log_path else None

    def record(self, kind, text):
        if self.log is not None:
            self.log.write(f"{kind} {text}\n")
            self.log.flush()

    def emit(self, text):
        self.err.write(text)
        self.err.flush()

    def run(self):
        while True:
            raw = self.inp.readline()
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\n")
            if not self.handle_line(line):
                return

    def handle_line(self, line):
        for offset, stmt in split_statements(line):
            stmt = stmt.strip()
            if not stmt:
                continue
            self.record("CMD", stmt)
            if stmt in ("exit", "quit"):
                return False
            try:
                self.execute(stmt)
            except GnuplotError as e:
                self.emit(f"\ngnuplot> {line}\n{' ' * (9 + offset)}^\n         line 0: {e}\n\n")
                break
        return True

    def execute(self, stmt):
        word = stmt.split()[0]
        if word == "print":
            self.emit(unquote(stmt[len("print"):].strip()) + "\n")
        elif word == "set":
            self.do_set(stmt)
        elif word in ("unset", "reset", "show", "replot"):
            pass
        elif word == "pause":
            time.sleep(float(stmt.split()[1]))
        elif word in ("plot", "splot"):
            self.do_plot(stmt[len(word):])
        else:
            raise GnuplotError("invalid command")

    def do_set(self, stmt):
        parts = stmt.split()
        if len(parts) < 2 or parts[1] not in SET_OPTIONS:
            raise GnuplotError("unrecognized option - see 'help set'.")
        if parts[1] in ("terminal", "term") and len(parts) > 2 and parts[2] not in TERMINALS:
            raise GnuplotError("unknown or ambiguous terminal type; type just 'set terminal' for a list")
        m = RANGE_RE.match(stmt)
        if m and m.group(2) and m.group(2) == m.group(3):
            v = float(m.group(2))
            self.emit(
                f"Warning: empty {m.group(1)} range [{m.group(2)}:{m.group(3)}], "
                f"adjusting to [{v * 0.99:g}:{v * 1.01:g}]\n"
            )

    def do_plot(self, rest):
        clauses = [parse_clause(c) for c in split_top_level(rest, ",")]
        for clause in clauses:
            if clause["binary"]:
                rows = self.read_binary(clause["records"], clause["columns"])
            else:
                rows = self.read_ascii()
            self.record("DATA", json.dumps(rows))

    def read_ascii(self):
        rows = []
        while True:
            raw = self.inp.readline()
            if not raw:
                return rows
            text = raw.decode("ascii").strip()
            if text == "e":
                return rows
            if text:
                rows.append([float(v) for v in text.split()])

    def read_binary(self, records, columns):
        size = 8 * records * columns
        data = self.inp.read(size)
        values = struct.unpack(f"={records * columns}d", data)
        return [list(values[i * columns:(i + 1) * columns]) for i in range(records)]


def split_top_level(text, sep):
    parts, buf, quote = [], [], None
    for ch in text:
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch == sep:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    parts.append("".join(buf))
    return parts


def split_statements(line):
    out, pos = [], 0
    for part in split_top_level(line, ";"):
        out.append((pos, part))
        pos += len(part) + 1
    return out


def unquote(text):
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        return text[1:-1]
    return text


def parse_clause(clause):
    tokens = shlex.split(clause)
    if not tokens or tokens[0] != "-":
        raise GnuplotError("only inline '-' data is supported here")
    info = {"binary": False, "records": 0, "columns": 0}
    i = 1
    while i < len(tokens):
        tok = tokens[i]
        if tok == "binary":
            info["binary"] = True
        elif tok.startswith("record="):
            info["records"] = int(tok.split("=", 1)[1])
        elif tok.startswith("format="):
            info["columns"] = tok.count("%double")
        elif tok in ("using", "title", "axes"):
            i += 1
        elif tok == "notitle":
            pass
        elif tok == "with":
            i += 1
            if i >= len(tokens) or tokens[i] not in STYLES:
                raise GnuplotError("unrecognized plot type")
            # style modifiers (lw 2, pt 7, ...) run to the end of the clause
            break
        else:
            raise GnuplotError(f"unexpected or unrecognized token: {tok}")
        i += 1
    if info["binary"] and (info["records"] < 1 or info["columns"] < 1):
        raise GnuplotError("binary data needs record= and format=")
    return info


def main(argv):
    if "--help" in argv:
        print("Usage: gnuplot [OPTION] ... [FILE]")
        print("  -p  --persist  lets plot windows survive after gnuplot exits")
        print("  -V, --version")
        print("  -h  --help")
        return 0
    Fake(sys.stdin.buffer, sys.stderr, os.environ.get("FAKE_GNUPLOT_LOG")).run()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
