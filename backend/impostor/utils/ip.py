from __future__ import annotations

from flask import Request

# Checked in order; the first one present wins.
_FORWARDED_HEADERS = ("CF-Connecting-IP", "X-Real-IP")


def get_client_ip(request: Request) -> str | None:
    for header in _FORWARDED_HEADERS:
        value = request.headers.get(header)
        if value:
            return value.strip()

    # Left-most X-Forwarded-For entry is the original client.
    xff = request.headers.get("X-Forwarded-For", "")
    for part in xff.split(","):
        if part.strip():
            return part.strip()

    return request.remote_addr or None
