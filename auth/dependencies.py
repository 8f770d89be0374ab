"""
auth/dependencies.py -- Pulls the access token off an incoming request.

Two token sources are checked in priority order:
  1. Authorization: Bearer <token> header -- API clients and fetch() callers.
  2. ?token=<token> query parameter -- iframes and <img> tags, which cannot
     set headers.

Extraction never validates anything: a missing token comes back as None and
TokenCodec.verify() turns that into TokenMalformed, so every failure goes
through the same collapse-to-401 path.

Layer rule: no imports from storage/ or access/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request


def get_request_token(request: Request) -> str | None:
    """Return the raw token from the Bearer header or the token query parameter."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.query_params.get("token") or None
