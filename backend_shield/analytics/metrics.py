"""
Small numeric helpers shared by the analytics functions.
"""

from __future__ import annotations

from collections.abc import Iterable

from backend_shield.solana_listener.models import TokenTransfer


def success_rate(count: int, failed: int) -> float:
    """Percentage of non-failed transactions; 0 when there are none."""
    if count == 0:
        return 0
    return (count - failed) / count * 100


def safe_average(total: float, count: int) -> float:
    return total / count if count else 0


def add_volume_by_mint(volumes: dict[str | None, float], transfers: Iterable[TokenTransfer]) -> None:
    """Accumulate absolute transfer amounts into volumes, keyed by mint (insertion ordered)."""
    for transfer in transfers:
        volumes[transfer.mint] = volumes.get(transfer.mint, 0) + transfer.abs_amount


def unique_in_order(values: Iterable) -> list:
    """Deduplicate preserving first-seen order."""
    return list(dict.fromkeys(values))
