"""
Classification pipeline: raw stream payload to normalized transactions.

Accepts JSON text/bytes or already-decoded data, flattens batched arrays one
level, classifies each transaction against the protocol registry and
normalizes the matches. Unmatched transactions are dropped; that is not an error.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from backend_shield.core.exceptions import MalformedInputError
from backend_shield.protocols.registry import ProtocolRegistry
from backend_shield.shield_logging import get_logger
from backend_shield.solana_listener.classifier import classify
from backend_shield.solana_listener.models import NormalizedTransaction, StreamData
from backend_shield.solana_listener.normalizer import normalize

logger = get_logger(__name__)


def load_transactions(raw_input: Any) -> list[Mapping[str, Any]]:
    """
    Coerce stream input into a flat list of raw transaction mappings.

    - str/bytes are JSON-decoded;
    - a list whose first element is a list is flattened one level;
    - a single mapping is wrapped in a one-element list.
    Raises MalformedInputError for undecodable text or non-transaction items.
    """
    data = raw_input
    if isinstance(data, (bytes, bytearray)):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"Stream payload is not UTF-8: {e}") from e
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Stream payload is not valid JSON: {e}") from e

    if isinstance(data, Mapping):
        return [data]
    if not isinstance(data, (list, tuple)):
        raise MalformedInputError(
            f"Expected a transaction object or array, got {type(data).__name__}"
        )

    if data and isinstance(data[0], (list, tuple)):
        flat: list[Any] = []
        for item in data:
            if isinstance(item, (list, tuple)):
                flat.extend(item)
            else:
                flat.append(item)
        data = flat

    for position, item in enumerate(data):
        if not isinstance(item, Mapping):
            raise MalformedInputError(
                f"Transaction at position {position} is {type(item).__name__}, expected an object"
            )
    return list(data)


def classify_batch(
    raw_input: Any,
    protocol_filter: str | None = None,
    registry: ProtocolRegistry | None = None,
    now: str | None = None,
) -> list[NormalizedTransaction]:
    """
    Classify and normalize a batch of raw transactions, optionally keeping only
    one protocol. Output preserves input order.

    now pins processedAt/lastUpdated for every record in the batch.
    """
    transactions = load_transactions(raw_input)
    out: list[NormalizedTransaction] = []
    for raw_tx in transactions:
        result = classify(raw_tx, protocol_filter=protocol_filter, registry=registry)
        if result is None:
            logger.debug("classify_no_match", signature=raw_tx.get("signature"), program_id=raw_tx.get("programId"))
            continue
        try:
            out.append(normalize(raw_tx, result.match, invocation=result.invocation, now=now))
        except (KeyError, TypeError, AttributeError) as e:
            raise MalformedInputError(
                f"Transaction {raw_tx.get('signature')!r} matched "
                f"{result.match.protocol}.{result.match.sub_type} but could not be normalized: {e!r}"
            ) from e

    logger.info(
        "classify_batch_done",
        received=len(transactions),
        matched=len(out),
        protocol_filter=protocol_filter,
    )
    return out


def build_stream(
    raw_input: Any,
    protocol_filter: str | None = None,
    registry: ProtocolRegistry | None = None,
) -> StreamData:
    """classify_batch wrapped in the StreamData container the analytics engine reads."""
    return StreamData.of(classify_batch(raw_input, protocol_filter=protocol_filter, registry=registry))
