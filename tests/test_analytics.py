"""
Pytest tests for the analytics engine: listing, volume, wallets, transfer
stats, alerts, protocol stats, daily stats, fees and per-mint value.

All functions are pure over StreamData; time-dependent ones get `now` pinned.
"""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from backend_shield.analytics.alerts import alert_on_large_transactions
from backend_shield.analytics.fees import calculate_protocol_fees, transaction_fee
from backend_shield.analytics.metrics import success_rate
from backend_shield.analytics.protocol_stats import get_daily_stats, get_multi_protocol_stats
from backend_shield.analytics.transactions import get_all_transactions, get_transactions_by_protocol
from backend_shield.analytics.volume import (
    calculate_total_value_transferred,
    get_protocol_volume,
    get_token_transfer_stats,
)
from backend_shield.analytics.wallets import get_active_wallets, search_transactions_by_wallet
from factories import SOL_MINT, USDC_MINT, make_tx, stream_of

NOW = 1_700_000_000


# --- Listing ---


@pytest.mark.parametrize("limit, expected", [(None, 5), (0, 5), (2, 2), (10, 5)])
def test_get_all_transactions_prefix(limit, expected):
    stream = stream_of(*(make_tx(f"tx{i}") for i in range(5)))
    result = get_all_transactions(stream, limit)
    assert [tx.transaction_id for tx in result] == [f"tx{i}" for i in range(expected)]


def test_get_transactions_by_protocol_case_insensitive():
    stream = stream_of(
        make_tx("a", protocol="JUPITER"),
        make_tx("b", protocol="RAYDIUM"),
        make_tx("c", protocol="Jupiter"),
        make_tx("d", protocol=None),
    )
    upper = get_transactions_by_protocol(stream, "Jupiter")
    lower = get_transactions_by_protocol(stream, "jupiter")
    assert upper == lower
    assert [tx.transaction_id for tx in upper] == ["a", "c"]
    assert [tx.transaction_id for tx in get_transactions_by_protocol(stream, "JUPITER", limit=1)] == ["a"]


# --- Volume ---


def test_get_protocol_volume_window_and_success():
    stream = stream_of(
        make_tx("in", timestamp=NOW - 100, transfers=[(SOL_MINT, "w1", -2.5), (USDC_MINT, "w1", 10)]),
        make_tx("in2", timestamp=NOW - 3600, transfers=[(SOL_MINT, "w2", 1.5)]),
        make_tx("old", timestamp=NOW - 3601, transfers=[(SOL_MINT, "w1", 100)]),
        make_tx("failed", timestamp=NOW, success=False, transfers=[(SOL_MINT, "w1", 100)]),
        make_tx("other", protocol="RAYDIUM", timestamp=NOW, transfers=[(SOL_MINT, "w1", 100)]),
    )
    result = get_protocol_volume(stream, "JUPITER", 3600, now=NOW)
    assert result == {
        "protocol": "JUPITER",
        "timeframe": 3600,
        "volumeByToken": {SOL_MINT: 4.0, USDC_MINT: 10},
        "transactionCount": 2,
    }


def test_get_protocol_volume_empty():
    result = get_protocol_volume(stream_of(), "JUPITER", 60, now=NOW)
    assert result["volumeByToken"] == {}
    assert result["transactionCount"] == 0


# --- Wallets ---


def test_get_active_wallets_scenario():
    stream = stream_of(
        make_tx("1", protocol="X", user_wallet="w1"),
        make_tx("2", protocol="X", user_wallet="w2"),
        make_tx("3", protocol="X", user_wallet="w3", success=False),
        make_tx("4", protocol="X", user_wallet="w1"),
        make_tx("5", protocol="Y", user_wallet="w4"),
    )
    assert get_active_wallets(stream, "X") == ["w1", "w2"]


def test_search_transactions_by_wallet():
    stream = stream_of(
        make_tx("user", timestamp=100, user_wallet="target", transfers=[(SOL_MINT, "target", 1)]),
        make_tx("owner_only", protocol="RAYDIUM", timestamp=300, user_wallet="other",
                transfers=[(SOL_MINT, "target", -2), (USDC_MINT, "other", 7)]),
        make_tx("account_only", protocol="MARGINFI", timestamp=200, user_wallet="other",
                success=False, balance_changes=[("target", -5)]),
        make_tx("unrelated", timestamp=400, user_wallet="other", transfers=[(SOL_MINT, "other", 50)]),
    )
    result = search_transactions_by_wallet(stream, "target")

    assert result["walletAddress"] == "target"
    assert result["transactionCount"] == 3
    assert result["successRate"] == pytest.approx(200 / 3)
    assert result["protocols"] == ["JUPITER", "RAYDIUM", "MARGINFI"]
    assert [tx.transaction_id for tx in result["transactions"]] == ["owner_only", "account_only", "user"]
    assert result["tokenInteractions"][SOL_MINT] == {"totalVolume": 3, "transactionCount": 2, "lastInteraction": 300}
    assert result["tokenInteractions"][USDC_MINT] == {"totalVolume": 7, "transactionCount": 1, "lastInteraction": 300}


def test_search_transactions_by_wallet_no_hits():
    result = search_transactions_by_wallet(stream_of(make_tx()), "nobody")
    assert result["transactionCount"] == 0
    assert result["successRate"] == 0
    assert result["protocols"] == []
    assert result["tokenInteractions"] == {}
    assert result["transactions"] == []


def test_search_does_not_reorder_input_stream():
    stream = stream_of(make_tx("a", timestamp=1), make_tx("b", timestamp=2))
    search_transactions_by_wallet(stream, "w1")
    assert [tx.transaction_id for tx in stream.data] == ["a", "b"]


# --- Transfer stats ---


def test_get_token_transfer_stats():
    stream = stream_of(
        make_tx("1", transfers=[(SOL_MINT, "w1", 2), (USDC_MINT, "w1", -6)], decimals=9),
        make_tx("2", transfers=[(SOL_MINT, "w2", -4), (SOL_MINT, "w1", None)]),
        make_tx("failed", success=False, transfers=[(SOL_MINT, "w9", 100)]),
        make_tx("empty", transfers=[]),
    )
    stats = get_token_transfer_stats(stream, "JUPITER")
    assert list(stats) == [SOL_MINT, USDC_MINT]
    assert stats[SOL_MINT] == {
        "totalVolume": 6,
        "transferCount": 3,
        "uniqueWallets": ["w1", "w2"],
        "averageAmount": 2,
        "decimals": 9,
    }
    assert stats[USDC_MINT]["averageAmount"] == 6


# --- Alerts ---


def test_alert_on_large_transactions():
    stream = stream_of(
        make_tx("small", transfers=[(SOL_MINT, "w1", 10)]),
        make_tx("exact", timestamp=5, transfers=[(SOL_MINT, "w1", 60), (USDC_MINT, "w1", -40)]),
        make_tx("big", protocol="RAYDIUM", tx_type="Deposit", transfers=[(SOL_MINT, "w1", 500)]),
    )
    sink = MagicMock()
    count = alert_on_large_transactions(stream, 100, sink)
    assert count == 2
    assert [call.args[0]["transactionId"] for call in sink.call_args_list] == ["exact", "big"]
    assert sink.call_args_list[0].args[0] == {
        "transactionId": "exact",
        "timestamp": 5,
        "value": 100,
        "protocol": "JUPITER",
        "type": "Swap",
    }


def test_alert_sink_error_aborts_scan():
    stream = stream_of(
        make_tx("a", transfers=[(SOL_MINT, "w1", 500)]),
        make_tx("b", transfers=[(SOL_MINT, "w1", 500)]),
    )
    sink = MagicMock(side_effect=RuntimeError("sink down"))
    with pytest.raises(RuntimeError, match="sink down"):
        alert_on_large_transactions(stream, 1, sink)
    assert sink.call_count == 1


# --- Protocol stats ---


def test_success_rate():
    assert success_rate(4, 1) == 75
    assert success_rate(0, 0) == 0


def test_get_multi_protocol_stats():
    stream = stream_of(
        make_tx("1", protocol="JUPITER", user_wallet="w1", transfers=[(SOL_MINT, "w1", -3)]),
        make_tx("2", protocol="RAYDIUM", user_wallet="w2", success=False),
        make_tx("3", protocol="JUPITER", user_wallet="w1", success=False, transfers=[(USDC_MINT, "w1", 2)]),
        make_tx("4", protocol="JUPITER", user_wallet="w3"),
        make_tx("5", protocol="JUPITER", user_wallet="w4"),
        make_tx("none", protocol=None, user_wallet="w5"),
    )
    stats = get_multi_protocol_stats(stream)
    assert list(stats) == ["JUPITER", "RAYDIUM"]
    assert stats["JUPITER"] == {
        "transactionCount": 4,
        "successRate": 75,
        "uniqueUsers": ["w1", "w3", "w4"],
        "totalVolume": 5,
        "failedTxs": 1,
    }
    assert stats["RAYDIUM"]["successRate"] == 0
    assert stats["RAYDIUM"]["failedTxs"] == 1


def test_get_daily_stats():
    now = datetime(2024, 5, 1, 15, 30)
    midnight = int(datetime(2024, 5, 1).timestamp())
    stream = stream_of(
        make_tx("a", timestamp=midnight, user_wallet="w1", transfers=[(SOL_MINT, "w1", 4)]),
        make_tx("b", timestamp=midnight + 60, user_wallet="w2", success=False, transfers=[(SOL_MINT, "w2", -2)]),
        make_tx("c", timestamp=midnight + 120, user_wallet="w1", transfers=[(USDC_MINT, "w1", 3)]),
        make_tx("yesterday", timestamp=midnight - 1, user_wallet="w9", transfers=[(SOL_MINT, "w9", 1000)]),
        make_tx("other", protocol="RAYDIUM", timestamp=midnight + 5),
    )
    stats = get_daily_stats(stream, "JUPITER", now=now)
    assert stats == {
        "date": "2024-05-01",
        "transactionCount": 3,
        "uniqueUsers": 2,
        "tokenVolumes": {SOL_MINT: 6, USDC_MINT: 3},
        "successRate": pytest.approx(200 / 3),
        "failedTransactions": 1,
        "averageTransactionSize": 3,
    }


def test_get_daily_stats_empty():
    stats = get_daily_stats(stream_of(), "JUPITER", now=datetime(2024, 5, 1, 8))
    assert stats["transactionCount"] == 0
    assert stats["uniqueUsers"] == 0
    assert stats["successRate"] == 0
    assert stats["averageTransactionSize"] == 0
    assert stats["tokenVolumes"] == {}


# --- Fees ---


def test_transaction_fee_sums_only_outflows():
    tx = make_tx(balance_changes=[("payer", -5000), ("w1", -1000), ("pool", 2500)])
    assert transaction_fee(tx) == 6000


def test_calculate_protocol_fees():
    stream = stream_of(
        make_tx("a", protocol="JUPITER", tx_type="Swap", balance_changes=[("p", -100)]),
        make_tx("b", protocol="JUPITER", tx_type="Route", balance_changes=[("p", -300), ("q", 50)]),
        make_tx("c", protocol="JUPITER", tx_type="Swap", balance_changes=[("p", -200)]),
        make_tx("d", protocol="RAYDIUM", tx_type="Deposit", balance_changes=[("p", 10)]),
        make_tx("e", protocol=None, tx_type="", balance_changes=[("p", -1)]),
    )
    fees = calculate_protocol_fees(stream)
    assert list(fees) == ["JUPITER", "RAYDIUM", "unknown"]
    jup = fees["JUPITER"]
    assert jup["totalFees"] == 600
    assert jup["transactionCount"] == 3
    assert jup["averageFee"] == 200
    assert jup["feesByType"] == {
        "Swap": {"total": 300, "count": 2, "average": 150},
        "Route": {"total": 300, "count": 1, "average": 300},
    }
    assert jup["highestFee"] == {"amount": 300, "transactionId": "b"}
    assert fees["RAYDIUM"]["highestFee"] == {"amount": 0, "transactionId": None}
    assert list(fees["unknown"]["feesByType"]) == ["unknown"]


def test_calculate_protocol_fees_filtered():
    stream = stream_of(
        make_tx("a", protocol="JUPITER", balance_changes=[("p", -100)]),
        make_tx("b", protocol="RAYDIUM", balance_changes=[("p", -100)]),
    )
    assert list(calculate_protocol_fees(stream, "RAYDIUM")) == ["RAYDIUM"]
    assert calculate_protocol_fees(stream, "MARGINFI") == {}


# --- Value transferred ---


def test_calculate_total_value_transferred():
    stream = stream_of(
        make_tx("a", protocol="JUPITER", timestamp=300, transfers=[(SOL_MINT, "w1", -4), (USDC_MINT, "w1", 9)]),
        make_tx("b", protocol="RAYDIUM", timestamp=100, transfers=[(SOL_MINT, "w2", 6)], decimals=9),
        make_tx("c", protocol=None, timestamp=200, transfers=[(SOL_MINT, "w1", 2)]),
        make_tx("d", timestamp=50, transfers=[(USDC_MINT, "w3", 1)]),
    )
    result = calculate_total_value_transferred(stream, SOL_MINT)
    assert result == {
        "mintAddress": SOL_MINT,
        "totalTransfers": 3,
        "totalVolume": 12,
        "uniqueSenders": 2,
        "averageTransferSize": 4,
        "largestTransfer": 6,
        "decimals": 9,
        "timeStats": {"firstTransfer": 100, "lastTransfer": 300},
        "volumeByProtocol": {"JUPITER": 4, "RAYDIUM": 6, "unknown": 2},
    }


def test_calculate_total_value_transferred_empty_uses_none_sentinels():
    result = calculate_total_value_transferred(stream_of(make_tx(transfers=[(USDC_MINT, "w1", 1)])), SOL_MINT)
    assert result["totalTransfers"] == 0
    assert result["totalVolume"] == 0
    assert result["averageTransferSize"] == 0
    assert result["largestTransfer"] is None
    assert result["decimals"] == 0
    assert result["timeStats"] == {"firstTransfer": None, "lastTransfer": None}
    assert result["volumeByProtocol"] == {}
