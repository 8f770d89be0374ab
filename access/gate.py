"""
access/gate.py -- AccessGate: the login and fetch pipelines.

Login:
    ReceivedCredential
      -> CredentialVerifier.verify
           fail -> CredentialError                      (401)
           ok   -> TokenCodec.issue -> TokenIssued
                     [-> manifest attached when enabled, requested and non-empty]

Fetch:
    ReceivedRequest
      -> RateLimiter.allow(identity, asset)   fail -> RateExceeded      (429)
      -> TokenCodec.verify(token)             fail -> TokenError        (401)
      -> AssetResolver.resolve(name)          fail -> InvalidAssetName  (400)
                                                      AssetNotFound     (404)
      -> store.open_stream(key)               -> AssetHandle

The order is fixed and short-circuits: storage is never touched for a request
that is rate limited or unauthenticated, and existence is never checked for a
name that failed the grammar. A denied request's rate counter increment stands.

Every denial is logged here with its internal code. The exceptions propagate
unchanged; api/main.py decides what the client sees.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO

from auth.credentials import CredentialVerifier
from auth.tokens import TokenCodec
from core.errors import CredentialError, RateExceeded, ResolveError, TokenError
from core.models import AccessClaims, AssetKind, RouteClass, StorageKey
from core.ratelimit import RateLimiter
from storage.resolver import AssetResolver, is_valid_name

logger = logging.getLogger("assetgate.gate")


@dataclass
class LoginResult:
    token: str
    expires_in: int
    derivatives: list[str] | None = None  # None = manifest not attached


@dataclass
class AssetHandle:
    key: StorageKey
    kind: AssetKind
    stream: BinaryIO

    @property
    def name(self) -> str:
        return self.key.name


class AccessGate:
    def __init__(
        self,
        verifier: CredentialVerifier,
        codec: TokenCodec,
        limiter: RateLimiter,
        resolver: AssetResolver,
        *,
        primary_ext: str = "pdf",
        derivative_ext: str = "png",
        serve_derivatives: bool = False,
    ) -> None:
        self.verifier = verifier
        self.codec = codec
        self.limiter = limiter
        self.resolver = resolver
        self.primary_ext = primary_ext
        self.derivative_ext = derivative_ext
        self.serve_derivatives = serve_derivatives

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, password: str, wants_derivatives: bool = False, primary_name: str | None = None) -> LoginResult:
        """Exchange the shared password for a token. Raises CredentialError."""
        if not self.verifier.verify(password):
            logger.warning("Login rejected: %s", CredentialError.code)
            raise CredentialError("Invalid password")

        token = self.codec.issue(AccessClaims(authenticated=True, issued_at=self.codec.now()))
        result = LoginResult(token=token, expires_in=self.codec.ttl_seconds)

        if self.serve_derivatives and wants_derivatives and primary_name:
            manifest = self.manifest(primary_name)
            if manifest:
                result.derivatives = manifest
        logger.info(
            "Token issued (manifest=%s)",
            len(result.derivatives) if result.derivatives is not None else "none",
        )
        return result

    def manifest(self, primary_name: str) -> list[str]:
        """Ordered derivative names for a primary name; [] for an invalid name."""
        if not is_valid_name(primary_name, self.primary_ext):
            logger.info("Manifest skipped for invalid primary name %r", primary_name)
            return []
        return self.resolver.list_derivatives(primary_name, self.derivative_ext)

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    def kind_for(self, name: str) -> AssetKind:
        if isinstance(name, str) and name.endswith(f".{self.derivative_ext}"):
            return AssetKind.derivative
        return AssetKind.primary

    def fetch(self, identity: str, name: str, token: str | None, kind: AssetKind | None = None) -> AssetHandle:
        """Run rate -> token -> name checks and open the asset.

        kind=None infers the kind from the name's extension. Raises
        RateExceeded, a TokenError subclass or a ResolveError subclass.
        """
        if not self.limiter.allow(identity, RouteClass.asset):
            raise RateExceeded(
                "Too many asset requests", retry_after=self.limiter.retry_after(identity, RouteClass.asset)
            )

        try:
            self.codec.verify(token)
        except TokenError as e:
            logger.warning("Fetch denied for %s: %s (%s)", identity, e.code, e)
            raise

        kind = kind or self.kind_for(name)
        try:
            if kind is AssetKind.derivative:
                key = self.resolver.resolve_derivative(name, self.derivative_ext)
            else:
                key = self.resolver.resolve_primary(name, self.primary_ext)
        except ResolveError as e:
            logger.warning("Fetch denied for %s: %s", identity, e.code)
            raise

        return AssetHandle(key=key, kind=kind, stream=self.resolver.store.open_stream(key))
