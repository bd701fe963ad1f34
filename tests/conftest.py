"""
Pytest fixtures for Backend Shield tests. Every test starts with a fresh
protocol registry and no SHIELD_* settings in the environment.
"""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def clean_registry(monkeypatch):
    """No env-driven registry overrides or defaults leak between tests."""
    for name in (
        "SHIELD_PROTOCOLS_PATH",
        "SHIELD_PROTOCOL_FILTER",
        "SHIELD_DEFAULT_LIMIT",
        "SHIELD_ALERT_THRESHOLD",
    ):
        monkeypatch.delenv(name, raising=False)

    from backend_shield.protocols.registry import reset_registry_for_test

    reset_registry_for_test()
    yield
    reset_registry_for_test()

