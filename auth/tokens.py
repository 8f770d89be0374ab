"""
auth/tokens.py -- Stateless, signed, expiring access tokens.

Security design decisions:
  JWT: python-jose with HS256. A token carries `authenticated`, `iat` (issue
       time, epoch seconds) and `exp` (iat + TTL, for the benefit of clients
       and other JWT tooling). Nothing is stored server-side: validity is
       recomputed from the token on every request.

  Expiry is decided by this codec from `iat` and its own clock, not by
       jose's `exp` check, so the TTL in Settings is authoritative and tests
       can move time with a fake clock. A token is accepted iff
           signature verifies AND authenticated is True AND now - iat <= TTL.

  Failure classification (checked in this order):
       TokenMalformed        -- not a three-segment compact JWS, or a validly
                                signed token whose claims have the wrong shape
       TokenBadSignature     -- any failure of jose's signature verification,
                                including a tampered header or payload
       TokenNotAuthenticated -- signed, but authenticated is not True
       TokenExpired          -- signed and authenticated, but too old
  The HTTP layer collapses all four into one 401; the distinction is for logs.

  Signing key compromise invalidates every outstanding token. Rotating
  JWT_SECRET is the only revocation mechanism.

Layer rule: no imports from api/, storage/, or access/. Import from core/
is allowed.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError

from core.errors import TokenBadSignature, TokenExpired, TokenMalformed, TokenNotAuthenticated
from core.models import AccessClaims


_ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 3600


class TokenCodec:
    def __init__(
        self,
        signing_key: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not signing_key:
            raise ValueError("TokenCodec requires a non-empty signing key.")
        self._key = signing_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    def issue(self, claims: AccessClaims) -> str:
        """Serialize and sign claims. Same claims + same key -> same token."""
        payload = {
            "authenticated": claims.authenticated,
            "iat": claims.issued_at,
            "exp": claims.issued_at + self.ttl_seconds,
        }
        return jwt.encode(payload, self._key, algorithm=_ALGORITHM)

    def verify(self, token: str | None) -> AccessClaims:
        """Return the token's claims, or raise a TokenError subclass."""
        if not token or not isinstance(token, str):
            raise TokenMalformed("No token supplied")
        segments = token.split(".")
        if len(segments) != 3 or not all(segments):
            raise TokenMalformed("Token is not a compact JWS")

        try:
            # exp is checked below against our own clock.
            payload = jwt.decode(token, self._key, algorithms=[_ALGORITHM], options={"verify_exp": False})
        except JWTClaimsError as e:
            raise TokenMalformed(f"Token claims invalid: {e}") from e
        except JWTError as e:
            raise TokenBadSignature(f"Token verification failed: {e}") from e

        issued_at = payload.get("iat")
        if not isinstance(issued_at, int) or isinstance(issued_at, bool):
            raise TokenMalformed("Token has no integer iat claim")
        authenticated = payload.get("authenticated")
        if authenticated is not True:
            raise TokenNotAuthenticated("Token is not marked authenticated")

        age = self.now() - issued_at
        if age > self.ttl_seconds:
            raise TokenExpired(f"Token is {age}s old (ttl {self.ttl_seconds}s)")
        return AccessClaims(authenticated=True, issued_at=issued_at)
