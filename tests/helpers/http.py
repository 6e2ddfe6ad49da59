from __future__ import annotations

import json
from typing import Any

import requests


def make_response(
    status: int = 200,
    payload: Any = None,
    *,
    text: str | None = None,
    url: str = "https://example.test/",
    reason: str = "",
) -> requests.Response:
    """Build a real ``requests.Response`` for monkeypatched transports."""

    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp.url = url
    if text is not None:
        resp._content = text.encode("utf-8")
    elif payload is not None:
        resp._content = json.dumps(payload).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = b""
    return resp
