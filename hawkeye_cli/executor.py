"""Stream execution: byte stream → SSE frames → events → display."""

from __future__ import annotations

import http.client
from typing import IO

from hawkeye_cli.client import TransportError, open_prompt_stream
from hawkeye_cli.display import StreamDisplay
from hawkeye_cli.events import Event, iter_events
from hawkeye_cli.sse import StreamError, iter_frames
from hawkeye_cli.state import SessionState
from hawkeye_cli.ui import C, ConnectSpinner, dbg, error


def _debug_event(event: Event):
    delta = " [delta]" if event.is_delta else ""
    n_parts = f" [{len(event.parts)} parts]" if len(event.parts) > 1 else ""
    snippet = event.parts[0][:120] if event.parts else ""
    dbg(f"evt={event.event_type:<16} ct={event.content_type:<40}{delta}{n_parts} | {snippet}")


def consume_stream(stream: IO, display: StreamDisplay) -> StreamDisplay:
    """
    Feed every event of `stream` to `display` in arrival order.
    Stops after an end_turn event or at end of input; the display is
    flushed on every exit path. Read failures propagate as StreamError.
    """
    try:
        for event in iter_events(iter_frames(stream)):
            _debug_event(event)
            display.handle_event(event)
            if event.end_turn:
                break
        else:
            dbg("stream closed without end_turn")
    except (OSError, http.client.HTTPException) as e:
        raise TransportError(f"stream read failed: {e}") from e
    finally:
        display.flush()
    return display


def execute_streaming(prompt: str, state: SessionState) -> str | None:
    """
    Send `prompt` and render the investigation as it streams.
    Updates state. Returns the final answer, or None on failure.
    """
    display = StreamDisplay()
    try:
        with ConnectSpinner("Connecting..."):
            resp = open_prompt_stream(prompt, state.session_uuid)
    except TransportError as e:
        error(str(e))
        return None

    try:
        with resp:
            consume_stream(resp, display)
    except StreamError as e:
        error(str(e))
        return None
    except KeyboardInterrupt:
        print(f"\n  {C.DIM}Investigation interrupted{C.RESET}")
        return None
    finally:
        if display.session_uuid:
            state.session_uuid = display.session_uuid

    state.turn_count += 1
    state.last_answer = display.final_answer
    state.follow_up_suggestions = list(display.follow_up_suggestions)
    return display.final_answer


def render_capture(stream: IO) -> StreamDisplay:
    """Render a recorded SSE stream (file or stdin). Errors propagate."""
    return consume_stream(stream, StreamDisplay())
