# tests/conftest.py
from __future__ import annotations

import os
from pathlib import Path

import pytest

from src.core.store import JsonFileStore, MemoryStore


# -------- Environment isolation --------
@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Settings overrides must never leak in from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("FEEDSYNC_"):
            monkeypatch.delenv(key, raising=False)
    yield


# -------- Store fixtures --------
@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def json_store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "data")


# -------- Feed fixtures --------
@pytest.fixture
def feed_file_factory(tmp_path: Path):
    """
    Callable factory writing a feed document into the test's tmp path.

    Usage:
        path = feed_file_factory(SAMPLE_FEED_XML)
        path = feed_file_factory(xml, name="other.xml")
    """

    def _factory(content: str | bytes, *, name: str = "feed.xml") -> Path:
        p = tmp_path / name
        if isinstance(content, bytes):
            p.write_bytes(content)
        else:
            p.write_text(content, encoding="utf-8")
        return p

    return _factory


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks integration tests")
