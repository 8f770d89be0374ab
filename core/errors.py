"""
core/errors.py -- Error taxonomy for the access-control kernel.

Every error carries a stable machine `code`. The codes are for logs only:
the HTTP layer maps whole families onto a small set of public responses
(every TokenError and CredentialError becomes the same 401), so nothing
here ever reaches a client verbatim.

Layer rule: no imports from api/, auth/, storage/, or access/.
"""

from __future__ import annotations


class AccessError(Exception):
    """Base class for every denial raised by the kernel."""

    code: str = "access_denied"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class CredentialError(AccessError):
    code = "bad_credentials"


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


class TokenError(AccessError):
    code = "invalid_token"


class TokenMalformed(TokenError):
    code = "token_malformed"


class TokenBadSignature(TokenError):
    code = "token_bad_signature"


class TokenNotAuthenticated(TokenError):
    code = "token_not_authenticated"


class TokenExpired(TokenError):
    code = "token_expired"


# ---------------------------------------------------------------------------
# Asset resolution
# ---------------------------------------------------------------------------


class ResolveError(AccessError):
    code = "resolve_error"


class InvalidAssetName(ResolveError):
    code = "invalid_name"


class AssetNotFound(ResolveError):
    code = "not_found"


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


class RateError(AccessError):
    code = "rate_error"


class RateExceeded(RateError):
    code = "rate_limited"

    def __init__(self, message: str = "", retry_after: int = 60) -> None:
        super().__init__(message)
        self.retry_after = retry_after
