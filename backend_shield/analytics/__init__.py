"""
Backend Shield analytics engine.

Pure aggregation functions over normalized DeFi transactions, a query
dispatcher selecting one by type tag, and the raw-stream query pipeline.
"""

from backend_shield.analytics.alerts import alert_on_large_transactions
from backend_shield.analytics.analytics_pipeline import run_stream_query
from backend_shield.analytics.fees import calculate_protocol_fees
from backend_shield.analytics.protocol_stats import get_daily_stats, get_multi_protocol_stats
from backend_shield.analytics.query import QueryType, dispatch, to_jsonable
from backend_shield.analytics.transactions import get_all_transactions, get_transactions_by_protocol
from backend_shield.analytics.volume import (
    calculate_total_value_transferred,
    get_protocol_volume,
    get_token_transfer_stats,
)
from backend_shield.analytics.wallets import get_active_wallets, search_transactions_by_wallet

__all__ = [
    "QueryType",
    "alert_on_large_transactions",
    "calculate_protocol_fees",
    "calculate_total_value_transferred",
    "dispatch",
    "get_active_wallets",
    "get_all_transactions",
    "get_daily_stats",
    "get_multi_protocol_stats",
    "get_protocol_volume",
    "get_token_transfer_stats",
    "get_transactions_by_protocol",
    "run_stream_query",
    "search_transactions_by_wallet",
    "to_jsonable",
]
