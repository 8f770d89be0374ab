"""
api/routes/assets.py -- Token-gated asset streaming.

Routes:
  GET /asset/{name}  -- primary or derivative, chosen by the name's extension
  GET /pdf/{name}    -- primary only (path used by the first viewer release)
  GET /png/{name}    -- derivative only (same)

Token: Authorization: Bearer <token>, or ?token= for iframes and <img> tags.

The name is captured with the `path` convertor. Starlette percent-decodes the
path before routing, so "..%2f..%2fsecret.pdf" arrives as "../../secret.pdf";
with the default convertor it would miss the route entirely and come back as
a generic 404. Capturing it lets the resolver reject it as an invalid name
(400), after the token check, without a storage call.

Failures are raised by AccessGate as AccessError subclasses and turned into
responses by the handler in api/main.py.
"""

from __future__ import annotations

import mimetypes

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from access.gate import AccessGate, AssetHandle
from api.limiter import client_identity
from auth.dependencies import get_request_token
from core.models import AssetKind
from storage.store import iter_chunks

router = APIRouter()

_NO_INDEX = "noindex, nofollow, noarchive, nosnippet"


def _headers(handle: AssetHandle, derivative_cache_seconds: int) -> dict[str, str]:
    if handle.kind is AssetKind.derivative:
        return {
            "Cache-Control": f"private, max-age={derivative_cache_seconds}",
            "X-Robots-Tag": _NO_INDEX,
        }
    return {
        "Content-Disposition": f'inline; filename="{handle.name}"',
        "Cache-Control": "no-cache, no-store, must-revalidate",
        "Pragma": "no-cache",
        "Expires": "0",
        "X-Robots-Tag": _NO_INDEX,
    }


def _serve(request: Request, name: str, kind: AssetKind | None) -> StreamingResponse:
    gate: AccessGate = request.app.state.gate
    handle = gate.fetch(client_identity(request), name, get_request_token(request), kind)
    media_type = mimetypes.guess_type(handle.name)[0] or "application/octet-stream"
    return StreamingResponse(
        iter_chunks(handle.stream),
        media_type=media_type,
        headers=_headers(handle, request.app.state.settings.derivative_cache_seconds),
        # Closes the file even when the body is never iterated.
        background=BackgroundTask(handle.stream.close),
    )


@router.get("/asset/{name:path}")
def get_asset(request: Request, name: str) -> StreamingResponse:
    """Stream a primary asset, or a derivative when the name has the derivative extension."""
    return _serve(request, name, None)


@router.get("/pdf/{name:path}")
def get_primary(request: Request, name: str) -> StreamingResponse:
    return _serve(request, name, AssetKind.primary)


@router.get("/png/{name:path}")
def get_derivative(request: Request, name: str) -> StreamingResponse:
    return _serve(request, name, AssetKind.derivative)
