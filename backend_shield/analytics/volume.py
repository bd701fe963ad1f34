"""
Token volume analytics: protocol volume over a time window, per-mint transfer
stats for a protocol, and total value moved for a single mint.

Volumes are sums of absolute UI amounts; a transfer with no uiAmount counts as 0.
"""

from __future__ import annotations

import time
from typing import Any

from backend_shield.analytics.metrics import add_volume_by_mint, safe_average, unique_in_order
from backend_shield.shield_logging import get_logger
from backend_shield.solana_listener.models import StreamData

logger = get_logger(__name__)

UNKNOWN_PROTOCOL = "unknown"


def get_protocol_volume(
    stream: StreamData,
    protocol: str,
    timeframe: int,
    now: int | None = None,
) -> dict[str, Any]:
    """
    Volume by mint for successful `protocol` transactions with
    timestamp >= now - timeframe (seconds). Protocol match is exact.
    """
    current = int(time.time()) if now is None else now
    start_time = current - timeframe

    transactions = [
        tx
        for tx in stream.data
        if tx.protocol == protocol
        and tx.success
        and tx.timestamp is not None
        and tx.timestamp >= start_time
    ]

    volume_by_token: dict[str | None, float] = {}
    for tx in transactions:
        add_volume_by_mint(volume_by_token, tx.token_transfers)

    return {
        "protocol": protocol,
        "timeframe": timeframe,
        "volumeByToken": volume_by_token,
        "transactionCount": len(transactions),
    }


def get_token_transfer_stats(stream: StreamData, protocol: str) -> dict[str | None, dict[str, Any]]:
    """
    Per-mint transfer stats over successful `protocol` transactions that carry
    transfers: totalVolume, transferCount, uniqueWallets (owners, first-seen
    order), averageAmount, decimals (from the first transfer of the mint).
    """
    stats: dict[str | None, dict[str, Any]] = {}
    owners: dict[str | None, list[str | None]] = {}

    for tx in stream.data:
        if tx.protocol != protocol or not tx.success or not tx.token_transfers:
            continue
        for transfer in tx.token_transfers:
            entry = stats.get(transfer.mint)
            if entry is None:
                entry = stats[transfer.mint] = {
                    "totalVolume": 0,
                    "transferCount": 0,
                    "uniqueWallets": [],
                    "averageAmount": 0,
                    "decimals": transfer.decimals,
                }
                owners[transfer.mint] = []
            entry["totalVolume"] += transfer.abs_amount
            entry["transferCount"] += 1
            owners[transfer.mint].append(transfer.owner)

    for mint, entry in stats.items():
        entry["uniqueWallets"] = unique_in_order(owners[mint])
        entry["averageAmount"] = safe_average(entry["totalVolume"], entry["transferCount"])
    return stats


def calculate_total_value_transferred(stream: StreamData, mint_address: str) -> dict[str, Any]:
    """
    Everything known about one mint across the stream.

    With no matching transfers, largestTransfer and the timeStats bounds are
    None and every count/volume/average is 0.
    """
    touching = [tx for tx in stream.data if any(t.mint == mint_address for t in tx.token_transfers)]
    transfers = [t for tx in touching for t in tx.token_transfers if t.mint == mint_address]
    amounts = [t.abs_amount for t in transfers]
    total_volume = sum(amounts)

    volume_by_protocol: dict[str, float] = {}
    for tx in touching:
        key = tx.protocol or UNKNOWN_PROTOCOL
        volume = sum(t.abs_amount for t in tx.token_transfers if t.mint == mint_address)
        volume_by_protocol[key] = volume_by_protocol.get(key, 0) + volume

    timestamps = [tx.timestamp for tx in touching if tx.timestamp is not None]

    if not transfers:
        logger.debug("value_transferred_no_transfers", mint=mint_address)

    return {
        "mintAddress": mint_address,
        "totalTransfers": len(transfers),
        "totalVolume": total_volume,
        "uniqueSenders": len(set(t.owner for t in transfers)),
        "averageTransferSize": safe_average(total_volume, len(transfers)),
        "largestTransfer": max(amounts) if amounts else None,
        "decimals": (transfers[0].decimals or 0) if transfers else 0,
        "timeStats": {
            "firstTransfer": min(timestamps) if timestamps else None,
            "lastTransfer": max(timestamps) if timestamps else None,
        },
        "volumeByProtocol": volume_by_protocol,
    }
