"""
api/limiter.py -- HTTP glue for the kernel RateLimiter.

Two route classes share one RateLimiter instance (app.state.limiter):
  general -- every route except /health, enforced by general_rate_limit below.
  asset   -- asset fetches, enforced inside AccessGate.fetch() so that it runs
             before the token check.

A single shared instance matters: if each module built its own limiter, each
would keep an isolated counter table and limits would never trigger.

Client identity is the remote address, as slowapi's get_remote_address
reports it. Behind a proxy, run uvicorn with --proxy-headers so that address
is the real client's.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi.util import get_remote_address

from api.models import ErrorDetail, ErrorResponse
from core.models import RouteClass
from core.ratelimit import RateLimiter

# Liveness probes from load balancers must never be throttled.
_EXEMPT_PATHS = frozenset({"/health"})


def client_identity(request: Request) -> str:
    return get_remote_address(request) or "unknown"


def rate_limited_response(retry_after: int, message: str = "Too many requests, please try again later.") -> JSONResponse:
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(error=ErrorDetail(code="rate_limited", message=message)).model_dump(exclude_none=True),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


async def general_rate_limit(request: Request, call_next):
    """Count every non-exempt request against the general route class."""
    if request.url.path not in _EXEMPT_PATHS and request.method != "OPTIONS":
        limiter: RateLimiter = request.app.state.limiter
        identity = client_identity(request)
        if not limiter.allow(identity, RouteClass.general):
            return rate_limited_response(limiter.retry_after(identity, RouteClass.general))
    return await call_next(request)
