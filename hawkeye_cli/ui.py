"""Terminal output for hawkeye: ANSI table, notices, debug channel, recap, spinner."""

from __future__ import annotations

import re
import sys
import threading
import time

from rich.console import Console
from rich.markdown import Markdown
from rich.padding import Padding
from rich.rule import Rule
from rich.theme import Theme

from hawkeye_cli.state import config


# ── ANSI Colors ─────────────────────────────────────────────────────────────

class C:
    CYAN      = "\033[1;36m"
    DIM       = "\033[2m"
    ITALIC    = "\033[3m"
    UNDERLINE = "\033[4m"
    YELLOW    = "\033[1;33m"
    GREEN     = "\033[1;32m"
    RED       = "\033[1;31m"
    BOLD      = "\033[1m"
    BLUE      = "\033[1;34m"
    CODE      = "\033[36m"
    RESET     = "\033[0m"


_ANSI_RE = re.compile(r"\033\[[0-9;?]*[A-Za-z]")


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


# ── Notices ─────────────────────────────────────────────────────────────────

def notice(msg: str, color: str = C.DIM):
    """One indented status line on stdout (session id, saved settings)."""
    print(f"  {color}{msg}{C.RESET}", flush=True)


def error(msg: str):
    print(f"  {C.RED}[Error] {msg}{C.RESET}", file=sys.stderr, flush=True)


def dbg(msg: str, limit: int = 0):
    """Debug line on stderr, only with --debug. `limit` truncates long payloads."""
    if not config.debug:
        return
    if limit and len(msg) > limit:
        msg = msg[:limit] + "..."
    print(f"{C.YELLOW}[DEBUG] {msg}{C.RESET}", file=sys.stderr, flush=True)


# ── Recap ───────────────────────────────────────────────────────────────────

_theme = Theme({"markdown.heading": "bold cyan", "rule.line": "dim"})
console = Console(theme=_theme, highlight=False)


def print_recap(answer: str):
    """Re-render a finished answer as formatted markdown under a titled rule."""
    if not answer:
        return
    width = min(console.width, 100)
    console.print()
    console.print(Rule("Answer", align="left"), width=width)
    console.print(Padding(Markdown(answer), (1, 0, 1, 2)), width=width)


# ── Spinner ─────────────────────────────────────────────────────────────────

SPINNER = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


class ConnectSpinner:
    """Spinner with elapsed seconds, shown until the server starts streaming."""

    FRAME_SECONDS = 0.08

    def __init__(self, msg: str, out=None):
        self.msg = msg
        self.out = out or sys.stdout
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._started = 0.0

    def __enter__(self):
        self._started = time.monotonic()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        return self

    def __exit__(self, *exc):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=1)
        self.out.write("\r\033[2K")
        self.out.flush()

    def label(self, frame: int) -> str:
        elapsed = int(time.monotonic() - self._started)
        suffix = f" {elapsed}s" if elapsed else ""
        return f"{SPINNER[frame % len(SPINNER)]} {self.msg}{suffix}"

    def _run(self):
        frame = 0
        while not self._stop.is_set():
            self.out.write(f"\r  {C.DIM}{self.label(frame)}{C.RESET}\033[K")
            self.out.flush()
            frame += 1
            self._stop.wait(self.FRAME_SECONDS)
