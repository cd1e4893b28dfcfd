"""Shared test fixtures."""

from __future__ import annotations

import io
import json

import pytest

from hawkeye_cli.state import config
from hawkeye_cli.ui import strip_ansi


@pytest.fixture(autouse=True)
def _reset_config(monkeypatch, tmp_path):
    """Keep tests away from the real ~/.hawkeye and debug output."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("SNAP_USER_COMMON", raising=False)
    monkeypatch.delenv("HAWKEYE_SERVER", raising=False)
    monkeypatch.delenv("HAWKEYE_TOKEN", raising=False)
    for key in ("server", "token", "org_uuid", "project_uuid", "last_session", "profile"):
        monkeypatch.setattr(config, key, "")
    monkeypatch.setattr(config, "debug", False)


class RecordingMarkdown:
    """Stands in for MarkdownStream and records every chunk it is fed."""

    def __init__(self):
        self.chunks: list[str] = []
        self.flushes: int = 0

    def feed(self, text: str):
        if text:
            self.chunks.append(text)

    def flush(self):
        self.flushes += 1

    @property
    def text(self) -> str:
        return "".join(self.chunks)


@pytest.fixture
def recorder():
    return RecordingMarkdown()


def payload(content_type: str, parts: list, is_delta=None, end_turn: bool = False,
            session_uuid: str = "") -> dict:
    message = {"content": {"content_type": content_type, "parts": parts}}
    if is_delta is not None:
        message["metadata"] = {"is_delta": is_delta}
    if end_turn:
        message["end_turn"] = True
    body = {"message": message}
    if session_uuid:
        body["session_uuid"] = session_uuid
    return body


def cot_part(investigation: str = "", **fields) -> str:
    return json.dumps({"investigation": investigation, **fields})


def sse(*blocks: tuple[str, dict | str]) -> io.BytesIO:
    """Build an SSE byte stream from (event_type, payload) pairs."""
    out = []
    for event_type, body in blocks:
        data = body if isinstance(body, str) else json.dumps(body)
        out.append(f"event: {event_type}\ndata: {data}\n\n")
    return io.BytesIO("".join(out).encode("utf-8"))


@pytest.fixture
def plain_out(capsys):
    """Return captured stdout with ANSI codes removed."""
    def _read() -> str:
        return strip_ansi(capsys.readouterr().out)
    return _read
