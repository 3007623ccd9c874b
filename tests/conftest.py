"""Shared pytest fixtures for the trokito test suite."""

from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest

from modules.brl_currency.core.denominations import BRL_CATALOG, find_denomination
from trokito.settings import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Settings come from defaults only, never from the developer's shell or .env."""
    for key in list(os.environ):
        if key.startswith("TROKITO_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TROKITO_SKIP_DOTENV", "1")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def denom():
    """Look up a catalog entry by its value in cents."""

    def _lookup(value: int):
        found = find_denomination(value, BRL_CATALOG)
        assert found is not None, f"no denomination worth {value}"
        return found

    return _lookup


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 18, 14, 30, 5, tzinfo=timezone.utc)
