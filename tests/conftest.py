"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch):
    """Isolate every test from CSP_* variables in the calling environment."""
    for key in list(os.environ):
        if key.startswith("CSP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CSP_LOG_JSON", "false")
    monkeypatch.setenv("CSP_LOG_LEVEL", "debug")

    # Reset cached settings and presets
    import csp_header.config.loader as loader
    import csp_header.config.presets as presets
    loader._settings = None
    presets.reset_presets_cache()
    yield
    loader._settings = None
    presets.reset_presets_cache()


@pytest.fixture
def fixed_random_bytes():
    """Deterministic stand-in for the secure random source."""
    def _random_bytes(n: int) -> bytes:
        return bytes(range(n))
    return _random_bytes
