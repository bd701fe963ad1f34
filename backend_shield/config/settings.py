"""
Application settings.

Collects the env-driven values from config.env into one frozen object for the
pipeline and CLI. Read fresh on every call so tests can monkeypatch the env.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from backend_shield.config import env


@dataclass(frozen=True)
class Settings:
    """Resolved Backend Shield settings."""

    protocols_path: Path | None
    """Optional JSON registry override file."""
    protocol_filter: str | None
    """Default protocol filter for classify_batch; None keeps every protocol."""
    default_limit: int | None
    """Default limit for transaction listing queries."""
    alert_threshold: float
    """Default minimum transfer value for large-transaction alerts."""


def get_settings() -> Settings:
    """Return the current settings resolved from the environment."""
    return Settings(
        protocols_path=env.get_protocols_path(),
        protocol_filter=env.get_protocol_filter(),
        default_limit=env.get_default_limit(),
        alert_threshold=env.get_alert_threshold(),
    )
