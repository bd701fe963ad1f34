"""
Fee analytics per protocol and instruction type.

The fee of a transaction is approximated as the absolute sum of its negative
account balance changes (lamports leaving fee payers and other accounts). It
is a heuristic and overcounts when a transfer also debits an account.
"""

from __future__ import annotations

from typing import Any

from backend_shield.analytics.metrics import safe_average
from backend_shield.solana_listener.models import NormalizedTransaction, StreamData

UNKNOWN_PROTOCOL = "unknown"
UNKNOWN_TYPE = "unknown"


def transaction_fee(tx: NormalizedTransaction) -> float:
    """Absolute sum of negative balance changes."""
    return abs(sum(c.balance_change for c in tx.account_changes if c.balance_change < 0))


def calculate_protocol_fees(stream: StreamData, protocol: str | None = None) -> dict[str, dict[str, Any]]:
    """
    Fee totals, averages, per-type breakdown and highest fee per protocol.
    With `protocol` set only that protocol (exact match) is reported; records
    without a protocol are grouped under "unknown".
    """
    fee_stats: dict[str, dict[str, Any]] = {}

    for tx in stream.data:
        if protocol and tx.protocol != protocol:
            continue

        name = tx.protocol or UNKNOWN_PROTOCOL
        entry = fee_stats.setdefault(
            name,
            {
                "totalFees": 0,
                "transactionCount": 0,
                "averageFee": 0,
                "feesByType": {},
                "highestFee": {"amount": 0, "transactionId": None},
            },
        )

        fee = transaction_fee(tx)
        entry["totalFees"] += fee
        entry["transactionCount"] += 1
        entry["averageFee"] = safe_average(entry["totalFees"], entry["transactionCount"])

        by_type = entry["feesByType"].setdefault(
            tx.type or UNKNOWN_TYPE,
            {"total": 0, "count": 0, "average": 0},
        )
        by_type["total"] += fee
        by_type["count"] += 1
        by_type["average"] = safe_average(by_type["total"], by_type["count"])

        if fee > entry["highestFee"]["amount"]:
            entry["highestFee"] = {"amount": fee, "transactionId": tx.transaction_id}

    return fee_stats
