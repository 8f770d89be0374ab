"""
core/models.py -- Domain dataclasses and enums shared by every layer.

Pattern: Data class (pure data container, zero logic). Components own the
behaviour; these types only describe shape.

Layer rule: no imports from api/, auth/, storage/, or access/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

# Characters allowed in a client-supplied asset name, before the extension.
# The full pattern is built per extension by storage.resolver.
ASSET_NAME_CHARS = r"[A-Za-z0-9._-]+"


class RouteClass(str, Enum):
    """Rate-limiting category. Each class has its own window and ceiling."""

    general = "general"
    asset = "asset"


class AssetKind(str, Enum):
    primary = "primary"  # the document itself, e.g. a PDF
    derivative = "derivative"  # a per-page rendering, e.g. report-3.png


class Namespace(str, Enum):
    """Storage namespace. One per asset kind."""

    primary = "primary"
    derivative = "derivative"


@dataclass(frozen=True)
class StorageKey:
    namespace: Namespace
    name: str


@dataclass(frozen=True)
class AccessClaims:
    """The claims carried by an access token.

    issued_at is epoch seconds. The token is dead once
    now - issued_at > TTL, whatever the signature says.
    """

    authenticated: bool
    issued_at: int


@dataclass(frozen=True)
class RatePolicy:
    """Ceiling and window width for one route class."""

    max_requests: int
    window_seconds: int
