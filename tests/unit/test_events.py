"""Unit tests for envelope decoding and part payloads."""

from __future__ import annotations

import json

import pytest

from hawkeye_cli.events import (
    ContentType, coerce_is_delta, decode_event, iter_events, parse_cot_step, parse_source,
)


@pytest.mark.parametrize("value,expected", [
    (True, True),
    (False, False),
    ("true", True),
    ("false", False),
    (None, False),
    (1, False),
    (0, False),
    ("TRUE", False),
    ({"x": 1}, False),
])
def test_coerce_is_delta(value, expected):
    assert coerce_is_delta(value) is expected


def test_primary_envelope():
    body = {
        "session_uuid": "s-1",
        "message": {
            "content": {"content_type": ContentType.CHAT_RESPONSE, "parts": ["Hello"]},
            "metadata": {"is_delta": "true"},
            "end_turn": True,
        },
    }
    event = decode_event(json.dumps(body), "message")
    assert event.content_type == ContentType.CHAT_RESPONSE
    assert event.parts == ["Hello"]
    assert event.is_delta is True
    assert event.end_turn is True
    assert event.session_uuid == "s-1"
    assert event.event_type == "message"


def test_absent_metadata_is_not_delta():
    body = {"message": {"content": {"content_type": ContentType.PROGRESS_STATUS, "parts": ["x"]}}}
    event = decode_event(json.dumps(body))
    assert event.is_delta is False
    assert event.end_turn is False


def test_result_envelope_keeps_frame_event_type():
    inner = {"message": {"content": {"content_type": ContentType.CHAIN_OF_THOUGHT, "parts": ["{}"]}}}
    event = decode_event(json.dumps({"result": inner}), "cot_delta")
    assert event is not None
    assert event.content_type == ContentType.CHAIN_OF_THOUGHT
    assert event.event_type == "cot_delta"


def test_fallback_used_when_primary_has_type_mismatch():
    # Primary shape fails (message is a string), result carries the real event
    body = {
        "message": "oops",
        "result": {"message": {"content": {"content_type": ContentType.SOURCES, "parts": ["a"]}}},
    }
    event = decode_event(json.dumps(body), "message")
    assert event.content_type == ContentType.SOURCES
    assert event.parts == ["a"]


def test_non_string_part_fails_both_shapes():
    body = {"message": {"content": {"content_type": ContentType.SOURCES, "parts": [{"id": 1}]}}}
    assert decode_event(json.dumps(body)) is None


def test_invalid_json_is_dropped():
    assert decode_event("{not json") is None


def test_non_object_payload_is_dropped():
    assert decode_event("[1, 2, 3]") is None


def test_iter_events_skips_bad_frames():
    good = json.dumps({"message": {"content": {"content_type": ContentType.SESSION_NAME, "parts": ["n"]}}})
    events = list(iter_events([("message", "{bad"), ("message", good)]))
    assert len(events) == 1
    assert events[0].parts == ["n"]


def test_parse_cot_step_reads_known_fields():
    raw = json.dumps({
        "id": "c1", "category": "CATEGORY_LOGS", "description": "d", "explanation": "e",
        "investigation": "text", "status": "DONE", "sources_involved": ["a", 3, "b"],
    })
    step = parse_cot_step(raw)
    assert step.id == "c1"
    assert step.investigation == "text"
    assert step.sources_involved == ["a", "b"]


def test_parse_cot_step_rejects_non_objects():
    assert parse_cot_step("plain text") is None
    assert parse_cot_step("[]") is None


def test_parse_cot_step_ignores_wrong_field_types():
    step = parse_cot_step(json.dumps({"investigation": 5, "description": None}))
    assert step.investigation == ""
    assert step.description == ""


def test_source_key_prefers_id_then_title_then_raw():
    assert parse_source(json.dumps({"id": "i", "title": "t"})).key == "i"
    assert parse_source(json.dumps({"id": "", "title": "t"})).key == "t"
    assert parse_source("bare-source").key == "bare-source"
    raw = json.dumps({"category": "logs"})
    assert parse_source(raw).key == raw
