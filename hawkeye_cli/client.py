"""HTTP transport for the streaming prompt endpoint."""

from __future__ import annotations

import json
import urllib.error
import urllib.request

from hawkeye_cli.sse import StreamError
from hawkeye_cli.state import config
from hawkeye_cli.ui import dbg

CLIENT_IDENTIFIER = "hawkeye-cli"
PROMPT_PATH = "/v1/inference/session"


class TransportError(StreamError):
    """Non-2xx response or connection failure."""

    def __init__(self, msg: str, status: int | None = None):
        super().__init__(msg)
        self.status = status


def build_prompt_request(prompt: str, session_uuid: str = "") -> dict:
    body = {
        "request": {"client_identifier": CLIENT_IDENTIFIER},
        "action": "ACTION_NEXT",
        "project_uuid": config.project_uuid,
        "messages": [
            {
                "content": {
                    "content_type": "CONTENT_TYPE_CHAT_PROMPT",
                    "parts": [prompt],
                },
            },
        ],
    }
    if config.org_uuid:
        body["request"]["uuid"] = config.org_uuid
    if session_uuid:
        body["session_uuid"] = session_uuid
    return body


def open_prompt_stream(prompt: str, session_uuid: str = ""):
    """POST the prompt and return the open SSE response body.

    No timeout: investigations can run for tens of minutes and end when
    the server closes the stream. Caller must close the response.
    """
    payload = json.dumps(build_prompt_request(prompt, session_uuid)).encode("utf-8")
    req = urllib.request.Request(
        config.server.rstrip("/") + PROMPT_PATH,
        data=payload,
        headers={
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "Authorization": f"Bearer {config.token}",
        },
        method="POST",
    )

    dbg(f"POST {req.full_url} session={session_uuid or '(new)'}")
    dbg(f"request body: {payload.decode('utf-8')}", limit=500)
    try:
        resp = urllib.request.urlopen(req)
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace")
        raise TransportError(f"server returned {e.code}: {body[:300]}", status=e.code) from e
    except urllib.error.URLError as e:
        raise TransportError(f"connection failed: {e.reason}") from e

    dbg(f"Content-Type: {resp.headers.get('Content-Type', '')}")
    return resp
