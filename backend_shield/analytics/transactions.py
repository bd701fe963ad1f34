"""
Transaction listing queries: everything, or one protocol.
"""

from __future__ import annotations

from backend_shield.solana_listener.models import NormalizedTransaction, StreamData


def get_all_transactions(stream: StreamData, limit: int | None = None) -> list[NormalizedTransaction]:
    """Return the stream's transactions in order; a truthy limit keeps only the first `limit`."""
    transactions = list(stream.data)
    return transactions[:limit] if limit else transactions


def get_transactions_by_protocol(
    stream: StreamData,
    protocol: str,
    limit: int | None = None,
) -> list[NormalizedTransaction]:
    """Transactions whose protocol equals `protocol` ignoring case; optional prefix limit."""
    target = protocol.lower()
    transactions = [tx for tx in stream.data if tx.protocol and tx.protocol.lower() == target]
    return transactions[:limit] if limit else transactions
