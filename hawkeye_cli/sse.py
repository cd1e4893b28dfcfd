"""SSE frame parser for the investigation stream."""

from __future__ import annotations

from typing import IO, Iterator

# Investigation text segments can be large; one SSE line may carry a
# whole chain-of-thought step.
MAX_LINE_BYTES = 1024 * 1024

DEFAULT_EVENT_TYPE = "message"

# Payloads that are keep-alive sentinels, not JSON
SENTINELS = ("[DONE]", ":keepalive")

_IGNORED_FIELDS = (":", "id:", "retry:")


class StreamError(Exception):
    """Fatal error while reading the event stream."""


class LineTooLongError(StreamError):
    def __init__(self, limit: int = MAX_LINE_BYTES):
        super().__init__(f"SSE line exceeds {limit} bytes")
        self.limit = limit


def read_lines(stream: IO, limit: int = MAX_LINE_BYTES) -> Iterator[str]:
    """Yield decoded lines (without terminator) from a binary or text stream.

    Raises LineTooLongError for a line longer than `limit`.
    """
    while True:
        raw = stream.readline(limit + 1)
        if not raw:
            return
        if isinstance(raw, bytes):
            ends = raw.endswith(b"\n")
            if not ends and len(raw) > limit:
                raise LineTooLongError(limit)
            line = raw.decode("utf-8", errors="replace")
        else:
            ends = raw.endswith("\n")
            if not ends and len(raw) > limit:
                raise LineTooLongError(limit)
            line = raw
        yield line.rstrip("\r\n")


def _data_payload(line: str) -> str:
    """Strip the `data:` prefix (with or without one following space)."""
    if line.startswith("data: "):
        return line[6:]
    return line[5:]


def parse_sse_lines(lines) -> Iterator[tuple[str, str]]:
    """Turn SSE lines into (event_type, data) pairs.

    SSE format: "event: xxx" and "data: yyy" lines, block ended by a blank
    line. The event type falls back to "message" after every block.
    """
    event_type = DEFAULT_EVENT_TYPE
    data_buf: list[str] = []

    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            if data_buf:
                yield (event_type, "\n".join(data_buf))
            event_type = DEFAULT_EVENT_TYPE
            data_buf = []
            continue
        if trimmed.startswith("event:"):
            event_type = trimmed[6:].strip()
            continue
        if trimmed.startswith(_IGNORED_FIELDS):
            continue
        if not trimmed.startswith("data:"):
            continue

        payload = _data_payload(trimmed).strip()
        if not payload or payload in SENTINELS:
            continue
        data_buf.append(payload)

    # Stream closed mid-block
    if data_buf:
        yield (event_type, "\n".join(data_buf))


def iter_frames(stream: IO, limit: int = MAX_LINE_BYTES) -> Iterator[tuple[str, str]]:
    """Consume a response body (or any file object) and yield SSE frames."""
    return parse_sse_lines(read_lines(stream, limit))
