"""Chat response printer: the final answer, streamed once per stream."""

from __future__ import annotations

from hawkeye_cli.markdown import MarkdownStream, strip_html
from hawkeye_cli.trackers import ActivityLine
from hawkeye_cli.ui import C


class ChatPrinter:
    """Same fragment/full-text duality as chain-of-thought, single round.

    HTML is stripped before any length is measured, so the printed_length
    cursor is always in post-cleanup characters.
    """

    RULE = "━" * 60

    def __init__(self, md: MarkdownStream, activity: ActivityLine):
        self.md = md
        self.activity = activity
        self.accumulated_text: str = ""
        self.printed_length: int = 0
        self.header_emitted: bool = False
        self.answer: str = ""

    @property
    def final_answer(self) -> str:
        return self.answer

    @property
    def is_open(self) -> bool:
        return self.header_emitted

    def handle(self, parts: list[str], is_delta: bool):
        if not parts:
            return
        if is_delta:
            fragment = strip_html(parts[0])
            if fragment:
                self._emit(fragment)
                self.answer = self.accumulated_text.strip()
            return

        text = strip_html("\n".join(parts))
        if not text:
            return
        if len(text) > self.printed_length:
            self._emit(text[self.printed_length:])
        # A full text is the whole answer so far, even when nothing new printed
        self.answer = text.strip()

    def close(self):
        """Finish the visible block. The cursor is kept: one answer per stream."""
        if not self.header_emitted:
            return
        self.md.flush()
        print(flush=True)
        print(f" {C.DIM}{self.RULE}{C.RESET}", flush=True)
        self.header_emitted = False

    def _emit(self, fragment: str):
        self.activity.clear()
        if not self.header_emitted:
            self._print_header()
        self.md.feed(fragment)
        self.accumulated_text += fragment
        self.printed_length = len(self.accumulated_text)

    def _print_header(self):
        print(flush=True)
        print(f" {C.DIM}━━ 💬 Response {self.RULE[:48]}{C.RESET}", flush=True)
        print(flush=True)
        self.header_emitted = True
