"""
Protocol-level statistics: side-by-side comparison of every protocol in the
stream, and today's activity for one protocol.

Success rates are percentages (0-100) and 0 for an empty set.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from backend_shield.analytics.metrics import add_volume_by_mint, safe_average, success_rate, unique_in_order
from backend_shield.solana_listener.models import StreamData


def get_multi_protocol_stats(stream: StreamData) -> dict[str, dict[str, Any]]:
    """
    Per-protocol transactionCount, successRate, uniqueUsers, totalVolume and
    failedTxs. Records without a protocol are skipped; protocols appear in
    first-seen order.
    """
    stats: dict[str, dict[str, Any]] = {}
    users: dict[str, list[str | None]] = {}

    for tx in stream.data:
        if not tx.protocol:
            continue
        entry = stats.get(tx.protocol)
        if entry is None:
            entry = stats[tx.protocol] = {
                "transactionCount": 0,
                "successRate": 0,
                "uniqueUsers": [],
                "totalVolume": 0,
                "failedTxs": 0,
            }
            users[tx.protocol] = []
        entry["transactionCount"] += 1
        users[tx.protocol].append(tx.user_wallet)
        if not tx.success:
            entry["failedTxs"] += 1
        entry["totalVolume"] += tx.transfer_volume

    for protocol, entry in stats.items():
        entry["successRate"] = success_rate(entry["transactionCount"], entry["failedTxs"])
        entry["uniqueUsers"] = unique_in_order(users[protocol])
    return stats


def start_of_local_day(now: datetime | None = None) -> datetime:
    """Midnight of `now` (default: current local time), same tzinfo as `now`."""
    current = now or datetime.now()
    return current.replace(hour=0, minute=0, second=0, microsecond=0)


def get_daily_stats(stream: StreamData, protocol: str, now: datetime | None = None) -> dict[str, Any]:
    """
    Today's numbers for `protocol`: transactions with timestamp at or after
    local midnight, failed or not. `now` pins "today" (naive = local time).
    """
    today = start_of_local_day(now)
    start_of_day = int(today.timestamp())

    today_txs = [
        tx
        for tx in stream.data
        if tx.protocol == protocol and tx.timestamp is not None and tx.timestamp >= start_of_day
    ]

    token_volumes: dict[str | None, float] = {}
    for tx in today_txs:
        add_volume_by_mint(token_volumes, tx.token_transfers)

    failed = sum(1 for tx in today_txs if not tx.success)
    return {
        "date": today.date().isoformat(),
        "transactionCount": len(today_txs),
        "uniqueUsers": len(set(tx.user_wallet for tx in today_txs)),
        "tokenVolumes": token_volumes,
        "successRate": success_rate(len(today_txs), failed),
        "failedTransactions": failed,
        "averageTransactionSize": safe_average(sum(token_volumes.values()), len(today_txs)),
    }
