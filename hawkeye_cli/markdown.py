"""Incremental markdown rendering for streamed investigation text.

Only the markdown the server actually emits is handled: headers, lists,
bold/italic/code spans, fenced code blocks, block quotes, tables, links
and horizontal rules. Text arrives in arbitrary chunks; only complete
lines are rendered, so an inline marker is never split across chunks.
"""

from __future__ import annotations

import re
from typing import IO

from hawkeye_cli.ui import C


INDENT = "    "
RULE_WIDTH = 60

_BR_RE = re.compile(r"<br\s*/?>")
_HTML_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    """Convert <br> variants to newlines and drop every other tag."""
    return _HTML_TAG_RE.sub("", _BR_RE.sub("\n", text))


# ── Inline ──────────────────────────────────────────────────────────────────

_CODE_SPAN_RE = re.compile(r"(`[^`]+`)")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"(?<![*\w])\*(?!\s)(.+?)(?<!\s)\*(?![*\w])")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")


def _render_spans(text: str) -> str:
    text = _LINK_RE.sub(
        lambda m: f"{C.UNDERLINE}{m.group(1)}{C.RESET} {C.DIM}({m.group(2)}){C.RESET}",
        text,
    )
    text = _BOLD_RE.sub(lambda m: f"{C.BOLD}{m.group(1)}{C.RESET}", text)
    text = _ITALIC_RE.sub(lambda m: f"{C.ITALIC}{m.group(1)}{C.RESET}", text)
    return text


def render_inline(text: str) -> str:
    """Colorize bold, italic, inline code and links. Code spans are literal."""
    out = []
    for piece in _CODE_SPAN_RE.split(text):
        if len(piece) > 2 and piece.startswith("`") and piece.endswith("`"):
            out.append(f"{C.CODE}{piece[1:-1]}{C.RESET}")
        else:
            out.append(_render_spans(piece))
    return "".join(out)


# ── Line level ──────────────────────────────────────────────────────────────

_HEADER_RE = re.compile(r"^(#{1,4})\s+(.*)$")
_HR_RE = re.compile(r"^([-*_])(\s*\1){2,}$")
_BULLET_RE = re.compile(r"^(\s*)[-*+]\s+(.*)$")
_NUMBERED_RE = re.compile(r"^(\s*)(\d+)[.)]\s+(.*)$")
_TABLE_SEP_RE = re.compile(r"^\|?(\s*:?-+:?\s*\|)+\s*:?-*:?\s*\|?$")

_HEADER_STYLES = {1: C.BOLD + C.CYAN, 2: C.BOLD + C.BLUE, 3: C.BOLD, 4: C.BOLD}


def _render_table_row(stripped: str) -> str:
    if _TABLE_SEP_RE.match(stripped):
        cells = stripped.strip("|").split("|")
        return f"{C.DIM}{'┼'.join('─' * max(len(c), 3) for c in cells)}{C.RESET}"
    cells = [c.strip() for c in stripped.strip("|").split("|")]
    sep = f" {C.DIM}│{C.RESET} "
    return sep.join(render_inline(c) for c in cells)


def render_line(line: str, in_code: bool = False) -> tuple[str, bool]:
    """Render one complete line. Returns (rendered, in_code_after)."""
    stripped = line.strip()

    if stripped.startswith("```"):
        return f"{INDENT}{C.DIM}{stripped}{C.RESET}", not in_code
    if in_code:
        return f"{INDENT}{C.GREEN}{line}{C.RESET}", True

    if not stripped:
        return "", False

    m = _HEADER_RE.match(stripped)
    if m:
        level = len(m.group(1))
        return f"{INDENT}{_HEADER_STYLES[level]}{render_inline(m.group(2))}{C.RESET}", False

    if _HR_RE.match(stripped):
        return f"{INDENT}{C.DIM}{'─' * RULE_WIDTH}{C.RESET}", False

    if stripped.startswith(">"):
        quoted = stripped.lstrip(">").strip()
        return f"{INDENT}{C.DIM}│{C.RESET} {C.ITALIC}{render_inline(quoted)}{C.RESET}", False

    if stripped.startswith("|"):
        return f"{INDENT}{_render_table_row(stripped)}", False

    m = _BULLET_RE.match(line)
    if m:
        nest = " " * len(m.group(1).expandtabs(2))
        return f"{INDENT}{nest}{C.CYAN}•{C.RESET} {render_inline(m.group(2))}", False

    m = _NUMBERED_RE.match(line)
    if m:
        nest = " " * len(m.group(1).expandtabs(2))
        return f"{INDENT}{nest}{C.CYAN}{m.group(2)}.{C.RESET} {render_inline(m.group(3))}", False

    return f"{INDENT}{render_inline(line.rstrip())}", False


# ── Streaming ───────────────────────────────────────────────────────────────

class MarkdownStream:
    """Renders text chunks line by line, buffering the trailing partial line.

    The partial line and the code-fence flag are the only state kept
    between calls.
    """

    def __init__(self, out: IO | None = None):
        self.out = out             # None → sys.stdout at print time
        self.line_buffer: str = ""
        self.in_code_block: bool = False

    def feed(self, text: str):
        if not text:
            return
        lines = (self.line_buffer + text).split("\n")
        self.line_buffer = lines.pop()
        for line in lines:
            self._emit(line)

    def flush(self):
        """Render and emit the buffered partial line, if any."""
        if not self.line_buffer:
            return
        line, self.line_buffer = self.line_buffer, ""
        self._emit(line)

    def reset(self):
        self.line_buffer = ""
        self.in_code_block = False

    def _emit(self, line: str):
        rendered, self.in_code_block = render_line(line.rstrip("\r"), self.in_code_block)
        print(rendered, file=self.out, flush=True)
