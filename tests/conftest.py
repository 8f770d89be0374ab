"""
tests/conftest.py -- Shared test fixtures for AssetGate.

This module provides:
  - clock:          a frozen wall clock the tests move by hand. It drives token
                    expiry (passed to create_app) and rate windows (patched into
                    the limits memory storage, which reads time.time()).
  - make_settings:  factory for isolated Settings that never read .env
  - make_store:     factory for an in-memory store that records exists() calls
  - asset_dirs:     a temporary pdfs/ + pngs/ tree with known content
  - make_harness:   factory for a TestClient over create_app(), one app per call
  - harness:        make_harness() with default settings

Design: every harness builds its own app from an explicit Settings instance,
so no test shares rate windows or signing keys with another. bcrypt rounds
are dropped to the minimum (4) to keep login tests fast; the cost factor
does not change what verify() returns.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from limits.storage import memory as limits_memory

import core.ratelimit
from api.main import create_app
from core.config import Settings
from core.models import Namespace, StorageKey
from storage.store import InMemoryAssetStore, LocalAssetStore

TEST_PASSWORD = "correct horse battery staple"
TEST_SECRET = "test-signing-key-" + "x" * 32
START_TIME = 1_700_000_000

PDF_BYTES = b"%PDF-1.7\n" + bytes(range(256)) * 300 + b"\n%%EOF\n"


class FakeClock:
    """Clock starting at `now`. advance() moves it forward (or back)."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore(InMemoryAssetStore):
    """InMemoryAssetStore that remembers every exists() call."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.exists_calls: list[StorageKey] = []

    def exists(self, key: StorageKey) -> bool:
        self.exists_calls.append(key)
        return super().exists(key)


def _make_settings(**overrides) -> Settings:
    values = {
        "access_password": TEST_PASSWORD,
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "general_rate_limit": "1000/15minutes",
        "asset_rate_limit": "100/5minutes",
        "serve_derivatives": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clock(monkeypatch) -> FakeClock:
    fake = FakeClock()
    frozen_time = SimpleNamespace(time=fake)
    monkeypatch.setattr(limits_memory, "time", frozen_time)
    monkeypatch.setattr(core.ratelimit, "time", frozen_time)
    return fake


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    return _make_settings


@pytest.fixture
def make_store() -> Callable[..., RecordingStore]:
    return RecordingStore


@pytest.fixture
def access_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def asset_dirs(tmp_path: Path) -> tuple[Path, Path]:
    pdfs = tmp_path / "pdfs"
    pngs = tmp_path / "pngs"
    pdfs.mkdir()
    pngs.mkdir()
    (pdfs / "valid.pdf").write_bytes(PDF_BYTES)
    (pdfs / "report.pdf").write_bytes(b"%PDF-report")
    for page in (2, 1, 10):
        (pngs / f"report-{page}.png").write_bytes(f"png page {page}".encode())
    (pngs / "other-1.png").write_bytes(b"not ours")
    # A file outside both roots, used by traversal tests.
    (tmp_path / "secret.pdf").write_bytes(b"top secret")
    return pdfs, pngs


@dataclass
class AppHarness:
    client: TestClient
    clock: FakeClock
    settings: Settings

    @property
    def password(self) -> str:
        return self.settings.access_password

    def login(self, **body) -> str:
        resp = self.client.post("/auth", json={"password": self.password, **body})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]


@pytest.fixture
def make_harness(asset_dirs, clock) -> Generator[Callable[..., AppHarness], None, None]:
    """Factory: make_harness(**settings_overrides) -> AppHarness over asset_dirs.

    Pass store= to replace the LocalAssetStore, and raise_server_exceptions=False
    to see 500 responses instead of the re-raised exception.
    """
    pdfs, pngs = asset_dirs

    with ExitStack() as stack:

        def _build(store=None, raise_server_exceptions: bool = True, **overrides) -> AppHarness:
            settings = _make_settings(primary_dir=pdfs, derivative_dir=pngs, **overrides)
            if store is None:
                store = LocalAssetStore({Namespace.primary: pdfs, Namespace.derivative: pngs})
            app = create_app(settings, store=store, clock=clock)
            client = stack.enter_context(TestClient(app, raise_server_exceptions=raise_server_exceptions))
            return AppHarness(client=client, clock=clock, settings=settings)

        yield _build


@pytest.fixture
def harness(make_harness) -> AppHarness:
    return make_harness()
