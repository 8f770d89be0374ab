"""
api/routes/auth.py -- Password login.

Routes:
  POST /auth -- exchange the shared password for a one-hour token, optionally
                with the ordered list of page renders for a document.

Security:
  [C1] CredentialVerifier runs one bcrypt check per attempt regardless of how
       close the guess was -- never compare the password inline.
  [H2] Brute force is bounded by the general route-class rate limit
       (api/limiter.py), which counts login attempts like any other request.
  [M5] Cache-Control: no-store on every login response.

The handler is a plain `def`: bcrypt is CPU-bound and FastAPI runs sync
handlers in its threadpool, keeping the event loop free.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from access.gate import AccessGate
from api.models import LoginFailure, LoginRequest, LoginResponse
from core.errors import CredentialError

router = APIRouter()


@router.post("/auth", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with the shared password and return a bearer token.

    The manifest (usePngMode/pngFiles) is attached only when derivative
    serving is enabled, the client asked for it, and at least one page
    render exists for primaryName.
    """
    gate: AccessGate = request.app.state.gate
    try:
        result = gate.login(body.password, body.wants_derivatives, body.primary_name)
    except CredentialError:
        resp = JSONResponse(status_code=401, content=LoginFailure().to_wire())
        resp.headers["Cache-Control"] = "no-store"  # [M5]
        return resp

    payload = LoginResponse(token=result.token, expires_in=result.expires_in)
    if result.derivatives is not None:
        payload.use_png_mode = True
        payload.png_files = result.derivatives
    resp = JSONResponse(status_code=200, content=payload.to_wire())
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp
