"""Chain-of-thought rounds: one append-only text block per investigation step.

Three server generations describe the same steps differently:

  - explicit framing: `cot_start` / `cot_delta` / `cot_end` SSE events,
    `investigation` in a delta is a fragment;
  - metadata deltas: plain `message` events flagged `is_delta`,
    also fragments;
  - legacy full text: plain `message` events whose `investigation` is the
    whole text accumulated so far.

All three are reduced to the same round model, so each character of a
step is printed exactly once.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from hawkeye_cli.events import CotStep, parse_cot_step
from hawkeye_cli.markdown import MarkdownStream
from hawkeye_cli.trackers import ActivityLine
from hawkeye_cli.ui import C, dbg


class CotFrame(enum.Enum):
    START = "start"
    DELTA = "delta"
    END = "end"
    METADATA_DELTA = "metadata_delta"
    FULL_TEXT = "full_text"


_FRAMED = {
    "cot_start": CotFrame.START,
    "cot_delta": CotFrame.DELTA,
    "cot_end": CotFrame.END,
}


def classify_frame(event_type: str, is_delta: bool) -> CotFrame:
    """Resolve the producer format from the SSE event type and is_delta flag."""
    frame = _FRAMED.get(event_type)
    if frame is not None:
        return frame
    return CotFrame.METADATA_DELTA if is_delta else CotFrame.FULL_TEXT


# ── Formatting ──────────────────────────────────────────────────────────────

_STATUS_LABELS = {
    "IN_PROGRESS": "⟳ In progress",
    "DONE":        "✓ Done",
    "ERROR":       "✗ Error",
    "CANCELLED":   "⊘ Cancelled",
}
_STATUS_PREFIX = "CHAIN_OF_THOUGHT_STATUS_"


def format_category(category: str) -> str:
    """CATEGORY_LOG_ANALYSIS → Log analysis"""
    if not category:
        return ""
    cat = category.removeprefix("CATEGORY_").replace("_", " ").lower()
    return cat[:1].upper() + cat[1:]


def format_status(status: str) -> str:
    if not status:
        return ""
    return _STATUS_LABELS.get(status.removeprefix(_STATUS_PREFIX), status)


def is_in_progress(status: str) -> bool:
    return status.removeprefix(_STATUS_PREFIX) == "IN_PROGRESS"


_PLACEHOLDERS = ("in progress...", "investigating...", "analyzing...", "thinking...")


def is_placeholder(text: str) -> bool:
    """Exact placeholder strings sent before a step has real content."""
    trimmed = text.strip()
    return not trimmed or trimmed.lower() in _PLACEHOLDERS


# ── Round state ─────────────────────────────────────────────────────────────

@dataclass
class Round:
    number: int
    accumulated_text: str = ""
    printed_length: int = 0
    header_emitted: bool = False
    done: bool = False

    # Last non-empty value seen within this round
    id: str = ""
    description: str = ""
    explanation: str = ""
    category: str = ""
    status: str = ""
    sources_involved: list[str] = field(default_factory=list)

    def merge_metadata(self, step: CotStep):
        if step.id:
            self.id = step.id
        if step.description:
            self.description = step.description
        if step.explanation:
            self.explanation = step.explanation
        if step.category:
            self.category = step.category
        if step.status:
            self.status = step.status
        if step.sources_involved:
            self.sources_involved = list(step.sources_involved)


def _changed(old: str, new: str) -> bool:
    return bool(old) and bool(new) and old != new


def starts_new_round(current: Round, step: CotStep) -> bool:
    """Guess whether a legacy full-text step belongs to a new round.

    The legacy format has no boundary marker, so this is best effort:
    a closed round, text that shrank below what was already printed, or
    identifying metadata switching between two non-empty values.
    """
    if current.done:
        return True
    full = step.investigation
    if full and len(full) < current.printed_length:
        return True
    if _changed(current.id, step.id):
        return True
    return _changed(current.description, step.description) or _changed(
        current.explanation, step.explanation
    )


# ── State machine ───────────────────────────────────────────────────────────

class ChainOfThought:
    """Holds at most one open round; opening a round closes the previous one."""

    RULE = "─" * 60
    SEPARATOR = "─" * 74

    def __init__(self, md: MarkdownStream, activity: ActivityLine):
        self.md = md
        self.activity = activity
        self.round: Round | None = None
        self.step_count: int = 0
        self.separator_due: bool = False

    @property
    def is_open(self) -> bool:
        return self.round is not None

    def handle(self, parts: list[str], event_type: str, is_delta: bool):
        if not parts:
            return
        frame = classify_frame(event_type, is_delta)
        step = self._pick_step(parts, frame)
        if step is None:
            dbg(f"unparseable COT part: {parts[0][:80]}")
            return

        if frame is CotFrame.START:
            self._open(step)
            self._ensure_header()
        elif frame in (CotFrame.DELTA, CotFrame.METADATA_DELTA):
            self._on_delta(step)
        elif frame is CotFrame.END:
            self._on_end(step)
        else:
            self._on_full_text(step)

    def close(self):
        """Print the footer (if anything was printed) and drop the round."""
        r = self.round
        if r is None:
            return
        self.round = None
        if r.printed_length == 0:
            return
        self.md.flush()
        labels = []
        status = format_status(r.status)
        if status:
            labels.append(status)
        if r.sources_involved:
            labels.append(f"{len(r.sources_involved)} sources consulted")
        if labels:
            print(flush=True)
            print(f"     {C.DIM}{' · '.join(labels)}{C.RESET}", flush=True)
        print(flush=True)

    def end_section(self):
        """Close the round and rule off the COT output once other content takes over."""
        self.close()
        if not self.separator_due:
            return
        self.separator_due = False
        print(f" {C.DIM}{self.SEPARATOR}{C.RESET}", flush=True)

    # ── transitions ──

    @staticmethod
    def _pick_step(parts: list[str], frame: CotFrame) -> CotStep | None:
        if frame in (CotFrame.START, CotFrame.DELTA, CotFrame.END) or len(parts) == 1:
            return parse_cot_step(parts[0])
        # Unframed events may carry every step: follow the one in progress,
        # else the latest
        steps = [s for s in (parse_cot_step(p) for p in parts) if s is not None]
        if not steps:
            return None
        for s in steps:
            if is_in_progress(s.status):
                return s
        return steps[-1]

    def _open(self, step: CotStep):
        self.close()
        self.step_count += 1
        self.round = Round(number=self.step_count)
        self.round.merge_metadata(step)

    def _on_delta(self, step: CotStep):
        if self.round is None or self.round.done:
            self._open(step)
        else:
            self.round.merge_metadata(step)
        if step.investigation:
            self._emit(step.investigation)

    def _on_end(self, step: CotStep):
        if self.round is None:
            return
        self.round.merge_metadata(step)
        # Footer waits for the next different content type or stream end
        self.round.done = True

    def _on_full_text(self, step: CotStep):
        if self.round is None or starts_new_round(self.round, step):
            self._open(step)
        else:
            self.round.merge_metadata(step)
        r = self.round

        if r.description or r.explanation:
            self._ensure_header()

        full = step.investigation
        if is_placeholder(full) or len(full) <= r.printed_length:
            return
        self._emit(full[r.printed_length:])

    def _emit(self, fragment: str):
        r = self.round
        self._ensure_header()
        self.activity.clear()
        self.md.feed(fragment)
        r.accumulated_text += fragment
        r.printed_length = len(r.accumulated_text)
        self.separator_due = True

    def _ensure_header(self):
        r = self.round
        if r is None or r.header_emitted:
            return
        self.activity.clear()

        print(flush=True)
        cat = format_category(r.category)
        title = f"Step {r.number} · {cat}" if cat else f"Step {r.number}"
        print(f" {C.BOLD}{C.BLUE}── {title} {self.RULE[:max(4, 56 - len(title))]}{C.RESET}", flush=True)
        if r.explanation:
            print(f"    {r.explanation}", flush=True)
        if r.description and r.description != r.explanation:
            if r.explanation:
                print(f"    {C.DIM}↳ {r.description}{C.RESET}", flush=True)
            else:
                print(f"    {r.description}", flush=True)
        print(flush=True)
        r.header_emitted = True
