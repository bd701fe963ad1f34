"""
Environment variable loading for Backend Shield.

- SHIELD_PROTOCOLS_PATH: optional JSON file merged into the protocol registry
- SHIELD_PROTOCOL_FILTER: default protocol filter for the classification pipeline
- SHIELD_DEFAULT_LIMIT: default limit for 'all' / 'byProtocol' queries from the CLI
- SHIELD_ALERT_THRESHOLD: default threshold for 'alertLarge' queries from the CLI
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_shield/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_ALERT_THRESHOLD = 1000.0


def load_shield_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env vars."""
    load_dotenv(_ENV_PATH, override=False)


def get_protocols_path() -> Path | None:
    """Return SHIELD_PROTOCOLS_PATH as a Path, or None when unset."""
    load_shield_env()
    raw = (os.getenv("SHIELD_PROTOCOLS_PATH") or "").strip()
    return Path(raw) if raw else None


def get_protocol_filter() -> str | None:
    """
    Return SHIELD_PROTOCOL_FILTER (upper-cased registry key), or None.
    Registry keys are upper case, so 'jupiter' and 'JUPITER' select the same protocol.
    """
    load_shield_env()
    raw = (os.getenv("SHIELD_PROTOCOL_FILTER") or "").strip()
    return raw.upper() or None


def get_default_limit() -> int | None:
    """Return SHIELD_DEFAULT_LIMIT as int; None when unset, non-numeric or <= 0."""
    load_shield_env()
    raw = (os.getenv("SHIELD_DEFAULT_LIMIT") or "").strip()
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def get_alert_threshold() -> float:
    """Return SHIELD_ALERT_THRESHOLD, falling back to DEFAULT_ALERT_THRESHOLD."""
    load_shield_env()
    raw = (os.getenv("SHIELD_ALERT_THRESHOLD") or "").strip()
    try:
        return float(raw) if raw else DEFAULT_ALERT_THRESHOLD
    except ValueError:
        return DEFAULT_ALERT_THRESHOLD
