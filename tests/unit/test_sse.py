"""Unit tests for the SSE frame parser."""

from __future__ import annotations

import io

import pytest

from hawkeye_cli.sse import LineTooLongError, StreamError, iter_frames, parse_sse_lines


def frames_of(text: str) -> list[tuple[str, str]]:
    return list(iter_frames(io.BytesIO(text.encode("utf-8"))))


def test_event_type_and_data_emitted_on_blank_line():
    frames = frames_of('event: cot_delta\ndata: {"a":1}\n\n')
    assert frames == [("cot_delta", '{"a":1}')]


def test_event_type_resets_to_message_after_block():
    frames = frames_of('event: cot_start\ndata: {"a":1}\n\ndata: {"b":2}\n\n')
    assert frames == [("cot_start", '{"a":1}'), ("message", '{"b":2}')]


def test_data_prefix_with_or_without_space():
    frames = frames_of('data:{"x":1}\n\ndata: {"y":2}\n\n')
    assert [d for _, d in frames] == ['{"x":1}', '{"y":2}']


def test_comments_id_and_retry_are_ignored():
    text = ': ping\nid: 7\nretry: 1000\nevent: message\ndata: {"z":3}\n\n'
    assert frames_of(text) == [("message", '{"z":3}')]


def test_sentinels_are_not_data():
    text = (
        "data: [DONE]\n\n"
        "data: :keepalive\n\n"
        'data: {"real":true}\n\n'
        "data:  [DONE]  \n\n"
    )
    assert frames_of(text) == [("message", '{"real":true}')]


def test_blank_line_without_data_emits_nothing():
    assert frames_of("event: cot_end\n\n\n\n") == []


def test_pending_block_emitted_at_end_of_input():
    assert frames_of('event: cot_delta\ndata: {"tail":1}') == [("cot_delta", '{"tail":1}')]


def test_crlf_line_endings():
    assert frames_of('event: cot_start\r\ndata: {"a":1}\r\n\r\n') == [("cot_start", '{"a":1}')]


def test_text_streams_are_accepted():
    stream = io.StringIO('data: {"t":1}\n\n')
    assert list(iter_frames(stream)) == [("message", '{"t":1}')]


def test_oversized_line_is_fatal():
    big = "data: " + "x" * 64 + "\n\n"
    with pytest.raises(LineTooLongError) as exc:
        list(iter_frames(io.BytesIO(big.encode()), limit=32))
    assert isinstance(exc.value, StreamError)


def test_line_at_limit_is_accepted():
    line = "data: " + "y" * 26          # 32 chars
    frames = list(iter_frames(io.BytesIO((line + "\n\n").encode()), limit=32))
    assert frames == [("message", "y" * 26)]


def test_parse_sse_lines_accepts_plain_iterables():
    lines = ["event: cot_end", 'data: {"e":1}', ""]
    assert list(parse_sse_lines(lines)) == [("cot_end", '{"e":1}')]
