"""Progress and source notifications: dedup plus the ephemeral activity line."""

from __future__ import annotations

import sys

from hawkeye_cli.events import Source, parse_source
from hawkeye_cli.ui import C, SPINNER


ACTIVITY_MAX_CHARS = 70


class ActivityLine:
    """Single terminal line overwritten in place via carriage return.

    Must be cleared before any permanent line is printed.
    """

    def __init__(self):
        self.active: bool = False
        self.text: str = ""
        self.frame_idx: int = 0

    def show(self, text: str):
        display = extract_progress_description(text)
        if len(display) > ACTIVITY_MAX_CHARS:
            display = display[:ACTIVITY_MAX_CHARS - 3] + "..."
        frame = SPINNER[self.frame_idx % len(SPINNER)]
        self.frame_idx += 1
        sys.stdout.write(f"\r  {C.DIM}{frame} {display}{C.RESET}\033[K")
        sys.stdout.flush()
        self.text = display
        self.active = True

    def clear(self):
        if not self.active:
            return
        sys.stdout.write("\r\033[2K")
        sys.stdout.flush()
        self.active = False
        self.text = ""


# ── Progress ────────────────────────────────────────────────────────────────

def normalize_progress(text: str) -> str:
    """Collapse count-bearing status templates to one key."""
    if text.startswith("(Found ") and text.endswith(" results)"):
        return "(Found N results)"
    if "result streams" in text:
        return "(Analyzing N result streams)"
    if "datas" in text and "ources" in text:
        return "(Selected N data sources)"
    return text


def is_activity_only(text: str) -> bool:
    """Parenthesised status = background work, not a new milestone."""
    return text.startswith("(")


def extract_progress_description(text: str) -> str:
    """
    "(Found 9 results)"                → "Found 9 results"
    "SplitAnswer (Analyzing Telemetry)" → "Analyzing Telemetry"
    "Analyzing Telemetry"              → "Analyzing Telemetry"
    """
    if text.startswith("(") and text.endswith(")"):
        return text[1:-1]
    idx = text.find(" (")
    if idx >= 0:
        rest = text[idx + 2:]
        end = rest.rfind(")")
        if end >= 0:
            return rest[:end]
    return text


class ProgressTracker:
    def __init__(self, activity: ActivityLine):
        self.activity = activity
        self.seen: set[str] = set()
        self.last: str = ""

    def handle(self, parts: list[str]) -> bool:
        """Print first-seen status lines. Returns True if a line was printed."""
        if not parts:
            return False
        text = parts[0]
        key = normalize_progress(text)

        if key in self.seen:
            # The server resends "thinking" text many times per second
            if is_activity_only(text):
                self.activity.show(text)
            return False

        self.seen.add(key)
        self.activity.clear()
        self.last = text
        print(f"  {C.DIM}●{C.RESET} {extract_progress_description(text)}", flush=True)
        return True


# ── Sources ─────────────────────────────────────────────────────────────────

NOISY_SOURCE_PREFIX = "containerinsights_"


def format_source_label(source: Source) -> str:
    """
    {"category": "logs", "title": "db.containerinsights_nodes"} → "[logs] nodes"
    """
    name = source.title or source.id or source.raw
    idx = name.rfind(".")
    if idx >= 0:
        name = name[idx + 1:]
    if name.startswith(NOISY_SOURCE_PREFIX):
        name = name[len(NOISY_SOURCE_PREFIX):]
    if source.category:
        return f"[{source.category}] {name}"
    return name


class SourceTracker:
    def __init__(self, activity: ActivityLine):
        self.activity = activity
        self.seen: set[str] = set()
        self.header_printed: bool = False

    def handle(self, parts: list[str]) -> list[Source]:
        """Print sources not seen before in this stream. Returns the new ones."""
        fresh: list[Source] = []
        for raw in parts:
            source = parse_source(raw)
            if source.key in self.seen:
                continue
            self.seen.add(source.key)
            fresh.append(source)

        if not fresh:
            return fresh

        self.activity.clear()
        if not self.header_printed:
            print(flush=True)
            print(f"  📎 {C.DIM}Sources:{C.RESET}", flush=True)
            self.header_printed = True
        for source in fresh:
            print(f"     {C.DIM}·{C.RESET} {format_source_label(source)}", flush=True)
        return fresh
