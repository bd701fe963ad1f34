"""
Wallet-centric analytics: active wallets for a protocol and full wallet search.
"""

from __future__ import annotations

from typing import Any

from backend_shield.analytics.metrics import success_rate, unique_in_order
from backend_shield.solana_listener.models import NormalizedTransaction, StreamData


def get_active_wallets(stream: StreamData, protocol: str) -> list[str | None]:
    """Distinct user wallets of successful `protocol` transactions, first-seen order."""
    return unique_in_order(
        tx.user_wallet for tx in stream.data if tx.protocol == protocol and tx.success
    )


def _involves_wallet(tx: NormalizedTransaction, wallet_address: str) -> bool:
    return (
        tx.user_wallet == wallet_address
        or any(t.owner == wallet_address for t in tx.token_transfers)
        or any(c.address == wallet_address for c in tx.account_changes)
    )


def search_transactions_by_wallet(stream: StreamData, wallet_address: str) -> dict[str, Any]:
    """
    Every transaction the wallet touches, as user wallet, token owner or
    changed account, with per-mint interaction totals. Transactions are
    returned newest first; ties keep stream order.
    """
    transactions = [tx for tx in stream.data if _involves_wallet(tx, wallet_address)]
    failed = sum(1 for tx in transactions if not tx.success)

    token_interactions: dict[str | None, dict[str, Any]] = {}
    for tx in transactions:
        for transfer in tx.token_transfers:
            entry = token_interactions.setdefault(
                transfer.mint,
                {"totalVolume": 0, "transactionCount": 0, "lastInteraction": None},
            )
            entry["totalVolume"] += transfer.abs_amount
            entry["transactionCount"] += 1
            entry["lastInteraction"] = max(entry["lastInteraction"] or 0, tx.timestamp or 0)

    return {
        "walletAddress": wallet_address,
        "transactionCount": len(transactions),
        "successRate": success_rate(len(transactions), failed),
        "protocols": unique_in_order(tx.protocol for tx in transactions),
        "tokenInteractions": token_interactions,
        "transactions": sorted(transactions, key=lambda tx: tx.timestamp or 0, reverse=True),
    }
