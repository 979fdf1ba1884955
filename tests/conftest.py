"""Test configuration and fixtures for the engine test suite."""

from __future__ import annotations

import pytest

from bingo_engine.settings import get_settings


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure settings are loaded with predictable values during tests."""
    monkeypatch.setenv("BINGO_RNG_SEED", "1234")
    monkeypatch.delenv("BINGO_PRESERVE_RUNTIME_TOGGLES", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
