"""Stream display: routes decoded events to the trackers that print them."""

from __future__ import annotations

import json

from hawkeye_cli.chat import ChatPrinter
from hawkeye_cli.cot import ChainOfThought
from hawkeye_cli.events import ContentType, Event
from hawkeye_cli.markdown import MarkdownStream
from hawkeye_cli.trackers import ActivityLine, ProgressTracker, SourceTracker
from hawkeye_cli.ui import C, dbg


# Content types that can arrive in the middle of a COT round or the chat
# answer without ending it.
INTERLEAVED = {
    ContentType.PROGRESS_STATUS,
    ContentType.SOURCES,
    ContentType.ERROR_MESSAGE,
    ContentType.SESSION_NAME,
}


def format_exec_time(ms: str) -> str:
    """"301213" → "5m 1s", "2300" → "2.3s", "150" → "150ms". Non-numbers pass through."""
    try:
        millis = int(ms.strip())
    except ValueError:
        return ms

    if millis < 1000:
        return f"{millis}ms"
    seconds, rem_ms = divmod(millis, 1000)
    if seconds < 60:
        return f"{seconds}.{rem_ms // 100}s" if rem_ms else f"{seconds}s"
    minutes, rem_s = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {rem_s}s" if rem_s else f"{minutes}m"
    hours, rem_m = divmod(minutes, 60)
    return f"{hours}h {rem_m}m" if rem_m else f"{hours}h"


def _question_text(raw: str) -> str:
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if isinstance(obj, dict) and isinstance(obj.get("question"), str) and obj["question"]:
        return obj["question"]
    return raw


class StreamDisplay:
    """
    Per-stream renderer. Call handle_event() for each decoded event and
    flush() once the stream has ended (end_turn or connection closed).

    Output example:
          ● Preparing Telemetry Sources

         ── Step 1 · Log analysis ─────────────────────────
            Checking error rates
            ↳ Query error logs for the checkout service

            Error rate rose at **14:02** ...

             ✓ Done · 3 sources consulted

         ━━ 💬 Response ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    """

    def __init__(self, md: MarkdownStream | None = None):
        self.activity = ActivityLine()
        self.md = md if md is not None else MarkdownStream()
        self.progress = ProgressTracker(self.activity)
        self.sources = SourceTracker(self.activity)
        self.cot = ChainOfThought(self.md, self.activity)
        self.chat = ChatPrinter(self.md, self.activity)

        self.session_uuid: str = ""
        self.session_name: str = ""
        self.follow_up_suggestions: list[str] = []
        self.event_count: int = 0

    @property
    def final_answer(self) -> str:
        return self.chat.final_answer

    # ── Event handling ──

    def handle_event(self, event: Event):
        self.event_count += 1
        if event.session_uuid:
            self.session_uuid = event.session_uuid

        ct = event.content_type
        if not ct:
            return
        parts = event.parts

        if ct not in INTERLEAVED:
            if ct != ContentType.CHAIN_OF_THOUGHT:
                self.cot.end_section()
            if ct != ContentType.CHAT_RESPONSE:
                self.chat.close()
        if ct != ContentType.PROGRESS_STATUS:
            self.activity.clear()

        if ct == ContentType.PROGRESS_STATUS:
            self.progress.handle(parts)
        elif ct == ContentType.SOURCES:
            self.sources.handle(parts)
        elif ct == ContentType.CHAIN_OF_THOUGHT:
            self.cot.handle(parts, event.event_type, event.is_delta)
        elif ct == ContentType.CHAT_RESPONSE:
            self.chat.handle(parts, event.is_delta)
        elif ct == ContentType.SESSION_NAME:
            self._on_session_name(parts)
        elif ct == ContentType.FOLLOW_UP_SUGGESTIONS:
            self._on_follow_ups(parts)
        elif ct == ContentType.EXECUTION_TIME:
            if parts:
                print(f"  ⏱  {format_exec_time(parts[0])}", flush=True)
        elif ct == ContentType.ALTERNATE_QUESTIONS:
            self._on_alternate_questions(parts)
        elif ct == ContentType.ERROR_MESSAGE:
            # Internal query retry/fix messages; the web UI ignores them too
            if parts:
                dbg(f"server error message: {parts[0][:120]}")
        elif ct == ContentType.SHIFT_FOCUS_TO_SUMMARY:
            pass  # COT round already closed above
        else:
            dbg(f"ignored content type {ct}")

    def flush(self):
        """Finalize open blocks. Safe to call more than once."""
        self.activity.clear()
        self.cot.close()
        self.chat.close()
        self.md.flush()

    # ── Simple content types ──

    def _on_session_name(self, parts: list[str]):
        if not parts or parts[0] == self.session_name:
            return
        self.session_name = parts[0]
        print(flush=True)
        print(f" {C.DIM}━━ 📛 {self.session_name} {'━' * 40}{C.RESET}", flush=True)

    def _on_follow_ups(self, parts: list[str]):
        self.follow_up_suggestions = [p for p in parts if p.strip()]
        if not self.follow_up_suggestions:
            return
        print(flush=True)
        print("  💡 Follow-up suggestions:", flush=True)
        for i, p in enumerate(self.follow_up_suggestions, 1):
            print(f"     {i}. {p}", flush=True)

    def _on_alternate_questions(self, parts: list[str]):
        if not parts:
            return
        print(flush=True)
        print("  ❓ Related questions:", flush=True)
        for i, p in enumerate(parts, 1):
            print(f"     {i}. {_question_text(p)}", flush=True)
