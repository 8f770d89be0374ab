"""
storage/store.py -- Byte-stream lookups for primary and derivative assets.

The kernel only needs three operations from a backend:

    store.exists(key)          -> bool
    store.list(namespace)      -> list[str]   (names, no paths)
    store.open_stream(key)     -> BinaryIO    (caller closes)

Keys are StorageKey(namespace, name). Names reaching a store have already
passed storage.resolver's grammar check; stores do not re-validate them.

Usage:
    store = LocalAssetStore({Namespace.primary: Path("pdfs"), Namespace.derivative: Path("pngs")})
    if store.exists(key):
        with store.open_stream(key) as fh:
            data = fh.read()
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO, Protocol

from core.models import Namespace, StorageKey


CHUNK_SIZE = 64 * 1024


class AssetStore(Protocol):
    def exists(self, key: StorageKey) -> bool: ...

    def list(self, namespace: Namespace) -> list[str]: ...

    def open_stream(self, key: StorageKey) -> BinaryIO: ...


class LocalAssetStore:
    """One directory per namespace. A missing directory lists as empty."""

    def __init__(self, roots: dict[Namespace, Path]) -> None:
        self.roots = {ns: Path(p) for ns, p in roots.items()}

    def _path(self, key: StorageKey) -> Path:
        return self.roots[key.namespace] / key.name

    def exists(self, key: StorageKey) -> bool:
        return self._path(key).is_file()

    def list(self, namespace: Namespace) -> list[str]:
        root = self.roots[namespace]
        if not root.is_dir():
            return []
        return sorted(p.name for p in root.iterdir() if p.is_file())

    def open_stream(self, key: StorageKey) -> BinaryIO:
        return self._path(key).open("rb")

    def missing_roots(self) -> list[Path]:
        return [p for p in self.roots.values() if not p.is_dir()]


class InMemoryAssetStore:
    """Dict-backed store for tests and embedding. Listing keeps insertion order."""

    def __init__(self, objects: dict[StorageKey, bytes] | None = None) -> None:
        self._objects: dict[StorageKey, bytes] = dict(objects or {})

    def put(self, key: StorageKey, data: bytes) -> None:
        self._objects[key] = data

    def exists(self, key: StorageKey) -> bool:
        return key in self._objects

    def list(self, namespace: Namespace) -> list[str]:
        return [k.name for k in self._objects if k.namespace == namespace]

    def open_stream(self, key: StorageKey) -> BinaryIO:
        try:
            return io.BytesIO(self._objects[key])
        except KeyError:
            raise FileNotFoundError(key.name) from None


def iter_chunks(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the stream in chunks and close it, even if the consumer stops early."""
    with stream:
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            yield chunk
