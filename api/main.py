"""
api/main.py -- FastAPI application factory for AssetGate.

Run with:      uvicorn asgi:app
               python main.py serve

create_app() builds every kernel component from an explicit Settings
instance, so tests (and embedders) can run several isolated apps side by
side. Nothing here reads the environment except through get_settings().

Middleware stack (outermost to innermost):
  1. CORSMiddleware       -- allowed browser origins from ALLOWED_ORIGINS
  2. security_headers     -- nosniff, referrer policy, CSP frame-ancestors
  3. log_requests         -- one line per request with latency
  4. general_rate_limit   -- general route-class limit (api/limiter.py)

Lifespan logs startup, with a warning when an asset directory is missing.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from access.gate import AccessGate
from api.limiter import general_rate_limit, rate_limited_response
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.assets import router as assets_router
from api.routes.auth import router as auth_router
from auth.credentials import CredentialVerifier
from auth.tokens import TokenCodec
from core.config import Settings, get_settings
from core.errors import AccessError, AssetNotFound, CredentialError, InvalidAssetName, RateExceeded, TokenError
from core.models import Namespace, RouteClass
from core.ratelimit import RateLimiter
from storage.resolver import AssetResolver
from storage.store import AssetStore, LocalAssetStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("assetgate.api")

# ---------------------------------------------------------------------------
# Public error mapping
#
# Order matters: the first matching class wins. Every TokenError and
# CredentialError shares one body, so a client cannot tell a forged token
# from an expired one.
# ---------------------------------------------------------------------------

_UNAUTHORIZED = (401, "unauthorized", "Unauthorized")

_PUBLIC_ERRORS: list[tuple[type[AccessError], tuple[int, str, str]]] = [
    (InvalidAssetName, (400, "invalid_name", "Invalid filename")),
    (AssetNotFound, (404, "not_found", "Asset not found")),
    (TokenError, _UNAUTHORIZED),
    (CredentialError, _UNAUTHORIZED),
]


def public_error(exc: AccessError) -> tuple[int, str, str]:
    for cls, outcome in _PUBLIC_ERRORS:
        if isinstance(exc, cls):
            return outcome
    return _UNAUTHORIZED


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(exclude_none=True),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("AssetGate starting up")
    store = app.state.store
    if isinstance(store, LocalAssetStore):
        for path in store.missing_roots():
            logger.warning("Asset directory %s does not exist -- it will list as empty", path)
    if app.state.settings.serve_derivatives:
        logger.info("Derivative manifests enabled (.%s)", app.state.settings.derivative_ext)

    yield

    logger.info("AssetGate shutdown complete")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_gate(
    settings: Settings,
    store: AssetStore,
    clock: Callable[[], float] = time.time,
) -> AccessGate:
    """Wire the kernel components together from settings."""
    limiter = RateLimiter({RouteClass.general: settings.general_policy, RouteClass.asset: settings.asset_policy})
    return AccessGate(
        CredentialVerifier(settings.access_password, rounds=settings.bcrypt_rounds),
        TokenCodec(settings.jwt_secret, ttl_seconds=settings.token_ttl_seconds, clock=clock),
        limiter,
        AssetResolver(store),
        primary_ext=settings.primary_ext,
        derivative_ext=settings.derivative_ext,
        serve_derivatives=settings.serve_derivatives,
    )


def create_app(
    settings: Settings | None = None,
    store: AssetStore | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Build the ASGI app.

    Args:
        settings:  Defaults to get_settings().
        store:     Defaults to a LocalAssetStore over the configured directories.
        clock:     Wall clock for token issue/expiry (epoch seconds).
    """
    settings = settings or get_settings()
    if store is None:
        store = LocalAssetStore(
            {Namespace.primary: settings.primary_dir, Namespace.derivative: settings.derivative_dir}
        )
    gate = build_gate(settings, store, clock=clock)

    app = FastAPI(
        title="AssetGate",
        description="Password-gated, time-limited access to documents and their page renders.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.gate = gate
    app.state.limiter = gate.limiter

    # -----------------------------------------------------------------------
    # Middleware -- @app.middleware wraps outward, so the last one registered
    # runs first. CORS is added last so preflight requests are answered
    # before anything else sees them.
    # -----------------------------------------------------------------------

    app.middleware("http")(general_rate_limit)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    csp = f"default-src 'self'; frame-ancestors {settings.frame_ancestors}"

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Content-Security-Policy", csp)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------

    app.include_router(auth_router, tags=["Auth"])
    app.include_router(assets_router, tags=["Assets"])

    @app.get("/health", tags=["Health"])
    async def health() -> HealthResponse:
        """Liveness probe. Not rate limited."""
        return HealthResponse()

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # Internal reasons (token_expired, token_bad_signature, ...) were already
    # logged by AccessGate; only the public outcome leaves the process.
    # -----------------------------------------------------------------------

    @app.exception_handler(RateExceeded)
    async def rate_exceeded_handler(request: Request, exc: RateExceeded) -> JSONResponse:
        return rate_limited_response(exc.retry_after, "Too many asset requests, please try again later.")

    @app.exception_handler(AccessError)
    async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
        return _error_response(*public_error(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "validation_error", "Request validation failed.")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error_response(404, "not_found", "Endpoint not found")
        return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected faults (storage I/O, signing).

        The traceback goes to the log only; the client gets a generic body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "internal_error", "Something went wrong!")

    return app
