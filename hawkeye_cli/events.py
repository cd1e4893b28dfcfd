"""Event model and envelope decoding for streamed investigation payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from hawkeye_cli.sse import DEFAULT_EVENT_TYPE
from hawkeye_cli.ui import dbg


# ── Content types ───────────────────────────────────────────────────────────

class ContentType:
    PROGRESS_STATUS        = "CONTENT_TYPE_PROGRESS_STATUS"
    SOURCES                = "CONTENT_TYPE_SOURCES"
    CHAIN_OF_THOUGHT       = "CONTENT_TYPE_CHAIN_OF_THOUGHT"
    CHAT_RESPONSE          = "CONTENT_TYPE_CHAT_RESPONSE"
    SESSION_NAME           = "CONTENT_TYPE_SESSION_NAME"
    FOLLOW_UP_SUGGESTIONS  = "CONTENT_TYPE_FOLLOW_UP_SUGGESTIONS"
    EXECUTION_TIME         = "CONTENT_TYPE_EXECUTION_TIME"
    ERROR_MESSAGE          = "CONTENT_TYPE_ERROR_MESSAGE"
    ALTERNATE_QUESTIONS    = "CONTENT_TYPE_ALTERNATE_QUESTIONS"
    SHIFT_FOCUS_TO_SUMMARY = "CONTENT_TYPE_SHIFT_FOCUS_TO_SUMMARY"


class EnvelopeError(ValueError):
    """Payload does not have the expected event shape."""


@dataclass
class Event:
    event_type: str = DEFAULT_EVENT_TYPE
    content_type: str = ""
    parts: list[str] = field(default_factory=list)
    is_delta: bool = False
    end_turn: bool = False
    session_uuid: str = ""


def coerce_is_delta(value) -> bool:
    """is_delta arrives as a bool, a legacy "true"/"false" string, or not at all."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value == "true"
    return False


# ── Decoding ────────────────────────────────────────────────────────────────

_PRIMARY_KEYS = ("message", "session_uuid", "response", "error")


def _expect(value, typ, name: str):
    if not isinstance(value, typ):
        raise EnvelopeError(f"{name}: expected {typ.__name__}, got {type(value).__name__}")
    return value


def _optional(obj: dict, key: str, typ, default):
    value = obj.get(key)
    if value is None:
        return default
    return _expect(value, typ, key)


def event_from_dict(data, event_type: str = DEFAULT_EVENT_TYPE) -> Event:
    """Decode the primary envelope shape. Raises EnvelopeError on mismatch."""
    _expect(data, dict, "payload")
    if "result" in data and not any(k in data for k in _PRIMARY_KEYS):
        raise EnvelopeError("payload is a result envelope")

    event = Event(event_type=event_type)
    event.session_uuid = _optional(data, "session_uuid", str, "")

    message = _optional(data, "message", dict, None)
    if message is None:
        return event
    event.end_turn = _optional(message, "end_turn", bool, False)

    metadata = _optional(message, "metadata", dict, {})
    event.is_delta = coerce_is_delta(metadata.get("is_delta"))

    content = _optional(message, "content", dict, None)
    if content is not None:
        event.content_type = _optional(content, "content_type", str, "")
        parts = _optional(content, "parts", list, [])
        event.parts = [_expect(p, str, "parts[]") for p in parts]
    return event


def decode_event(payload: str, event_type: str = DEFAULT_EVENT_TYPE) -> Event | None:
    """Decode one SSE data payload, falling back to the {"result": ...} envelope.

    Returns None when neither shape fits; the caller drops the line.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        dbg(f"unparseable: {payload[:80]}")
        return None

    try:
        return event_from_dict(data, event_type)
    except EnvelopeError as primary_err:
        if isinstance(data, dict) and isinstance(data.get("result"), dict):
            try:
                return event_from_dict(data["result"], event_type)
            except EnvelopeError as e:
                dbg(f"bad result envelope ({e}): {payload[:80]}")
                return None
        dbg(f"bad payload ({primary_err}): {payload[:80]}")
        return None


def iter_events(frames: Iterable[tuple[str, str]]) -> Iterator[Event]:
    """Decode (event_type, data) frames, skipping undecodable ones."""
    for event_type, data in frames:
        event = decode_event(data, event_type)
        if event is not None:
            yield event


# ── Part payloads ───────────────────────────────────────────────────────────

def _str_field(obj: dict, key: str) -> str:
    value = obj.get(key)
    return value if isinstance(value, str) else ""


@dataclass
class CotStep:
    """One chain-of-thought step as carried in a COT part."""
    id: str = ""
    category: str = ""
    description: str = ""
    explanation: str = ""
    investigation: str = ""
    status: str = ""
    sources_involved: list[str] = field(default_factory=list)


def parse_cot_step(raw: str) -> CotStep | None:
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(obj, dict):
        return None
    sources = obj.get("sources_involved")
    if not isinstance(sources, list):
        sources = []
    return CotStep(
        id=_str_field(obj, "id"),
        category=_str_field(obj, "category"),
        description=_str_field(obj, "description"),
        explanation=_str_field(obj, "explanation"),
        investigation=_str_field(obj, "investigation"),
        status=_str_field(obj, "status"),
        sources_involved=[s for s in sources if isinstance(s, str)],
    )


@dataclass
class Source:
    raw: str
    id: str = ""
    category: str = ""
    title: str = ""

    @property
    def key(self) -> str:
        return self.id or self.title or self.raw


def parse_source(raw: str) -> Source:
    try:
        obj = json.loads(raw)
    except json.JSONDecodeError:
        return Source(raw=raw)
    if not isinstance(obj, dict):
        return Source(raw=raw)
    return Source(
        raw=raw,
        id=_str_field(obj, "id"),
        category=_str_field(obj, "category"),
        title=_str_field(obj, "title"),
    )
