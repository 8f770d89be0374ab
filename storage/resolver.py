"""
storage/resolver.py -- Maps client-supplied names to storage keys.

Traversal defense: a name is accepted only if the WHOLE string matches

    [A-Za-z0-9._-]+\\.<ext>

(re.fullmatch, so a trailing newline or anything after the extension fails
too). No character that can separate path components survives the check, so
no separate ".." or normalization step exists or is needed. Existence is
checked only after the grammar passes: an invalid name never causes a
storage call.

Derivative discovery is a storage listing followed by order_derivatives(),
a pure function over that listing. Nothing is cached, so a manifest always
reflects what is in storage right now.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from core.errors import AssetNotFound, InvalidAssetName
from core.models import ASSET_NAME_CHARS, Namespace, StorageKey
from storage.store import AssetStore

logger = logging.getLogger("assetgate.storage")


@lru_cache(maxsize=16)
def name_pattern(ext: str) -> re.Pattern[str]:
    return re.compile(rf"{ASSET_NAME_CHARS}\.{re.escape(ext)}")


def is_valid_name(name: str, ext: str) -> bool:
    return isinstance(name, str) and name_pattern(ext).fullmatch(name) is not None


def _page_number(name: str, page_re: re.Pattern[str]) -> int:
    match = page_re.search(name)
    return int(match.group(1)) if match else 0


def order_derivatives(names: list[str], base: str, ext: str) -> list[str]:
    """Select `<base>-<n>.<ext>` entries from names, sorted by n.

    An entry that has the right prefix and extension but no parseable page
    number sorts as page 0 and is kept. Ties keep their listing order.
    """
    prefix = f"{base}-"
    suffix = f".{ext}"
    page_re = re.compile(rf"-(\d+){re.escape(suffix)}$")
    selected = [n for n in names if n.startswith(prefix) and n.endswith(suffix)]
    return sorted(selected, key=lambda n: _page_number(n, page_re))


class AssetResolver:
    def __init__(self, store: AssetStore) -> None:
        self.store = store

    def resolve(self, name: str, expected_ext: str, namespace: Namespace) -> StorageKey:
        """Return the storage key for name, or raise InvalidAssetName / AssetNotFound."""
        if not is_valid_name(name, expected_ext):
            logger.info("Rejected asset name %r (expected .%s)", name, expected_ext)
            raise InvalidAssetName(f"Invalid asset name for .{expected_ext}")
        key = StorageKey(namespace=namespace, name=name)
        if not self.store.exists(key):
            raise AssetNotFound(f"{namespace.value}/{name} not found")
        return key

    def resolve_primary(self, name: str, expected_ext: str) -> StorageKey:
        return self.resolve(name, expected_ext, Namespace.primary)

    def resolve_derivative(self, name: str, expected_ext: str) -> StorageKey:
        return self.resolve(name, expected_ext, Namespace.derivative)

    def list_derivatives(self, primary_name: str, derivative_ext: str) -> list[str]:
        """Return the ordered derivative manifest for primary_name (possibly empty)."""
        base = primary_name.rpartition(".")[0] or primary_name
        return order_derivatives(self.store.list(Namespace.derivative), base, derivative_ext)
