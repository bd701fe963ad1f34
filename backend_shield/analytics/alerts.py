"""
Large transaction alerts.

Every transaction whose total absolute transfer value reaches the threshold is
handed to a caller-supplied sink, synchronously and in stream order. An
exception raised by the sink propagates and stops the scan.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from backend_shield.shield_logging import get_logger
from backend_shield.solana_listener.models import StreamData

logger = get_logger(__name__)

AlertSink = Callable[[dict[str, Any]], Any]


def alert_on_large_transactions(stream: StreamData, threshold: float, callback: AlertSink) -> int:
    """Call `callback` with {transactionId, timestamp, value, protocol, type} per large transaction; return the count."""
    alerts = 0
    for tx in stream.data:
        total_value = tx.transfer_volume
        if total_value < threshold:
            continue
        logger.info(
            "large_transaction_alert",
            signature=tx.transaction_id,
            protocol=tx.protocol,
            value=total_value,
            threshold=threshold,
        )
        callback(
            {
                "transactionId": tx.transaction_id,
                "timestamp": tx.timestamp,
                "value": total_value,
                "protocol": tx.protocol,
                "type": tx.type,
            }
        )
        alerts += 1
    return alerts
