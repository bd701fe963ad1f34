"""
Query dispatcher: map a query type tag plus parameters to an analytics function.

Each of the eleven query kinds has its own pydantic parameter record; options
arrive either as that record or as the raw mapping the HTTP surface receives
({"type": "volume", "protocol": "JUPITER", "timeframe": 3600}). Unknown type
tags return the stream unchanged so newer clients keep working; known tags
with missing or invalid parameters raise InvalidQueryError.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backend_shield.analytics.alerts import alert_on_large_transactions
from backend_shield.analytics.fees import calculate_protocol_fees
from backend_shield.analytics.protocol_stats import get_daily_stats, get_multi_protocol_stats
from backend_shield.analytics.transactions import get_all_transactions, get_transactions_by_protocol
from backend_shield.analytics.volume import (
    calculate_total_value_transferred,
    get_protocol_volume,
    get_token_transfer_stats,
)
from backend_shield.analytics.wallets import get_active_wallets, search_transactions_by_wallet
from backend_shield.core.exceptions import InvalidQueryError, MalformedInputError
from backend_shield.shield_logging import bind_query, get_logger
from backend_shield.solana_listener.models import NormalizedTransaction, StreamData

logger = get_logger(__name__)


class QueryType(str, Enum):
    ALL = "all"
    BY_PROTOCOL = "byProtocol"
    VOLUME = "volume"
    ACTIVE_WALLETS = "activeWallets"
    TRANSFER_STATS = "transferStats"
    ALERT_LARGE = "alertLarge"
    MULTI_PROTOCOL_STATS = "multiProtocolStats"
    DAILY_STATS = "dailyStats"
    WALLET_SEARCH = "walletSearch"
    PROTOCOL_FEES = "protocolFees"
    VALUE_TRANSFERRED = "valueTransferred"


# -----------------------------------------------------------------------------
# Parameter records
# -----------------------------------------------------------------------------


class QueryParams(BaseModel):
    """Base for per-kind parameter records; unrelated option keys are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    query_type: ClassVar[QueryType]


class AllQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.ALL

    limit: int | None = Field(None, description="Keep only the first N transactions")


class ByProtocolQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.BY_PROTOCOL

    protocol: str = Field(..., min_length=1, description="Protocol name, case-insensitive")
    limit: int | None = Field(None, description="Keep only the first N transactions")


class VolumeQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.VOLUME

    protocol: str = Field(..., min_length=1, description="Protocol name, exact match")
    timeframe: int = Field(..., ge=0, description="Look-back window in seconds")


class ActiveWalletsQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.ACTIVE_WALLETS

    protocol: str = Field(..., min_length=1)


class TransferStatsQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.TRANSFER_STATS

    protocol: str = Field(..., min_length=1)


class AlertLargeQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.ALERT_LARGE

    threshold: float = Field(..., description="Minimum total absolute transfer value")
    callback: Callable[[dict[str, Any]], Any] = Field(..., description="Sink called once per alert")


class MultiProtocolStatsQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.MULTI_PROTOCOL_STATS


class DailyStatsQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.DAILY_STATS

    protocol: str = Field(..., min_length=1)


class WalletSearchQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.WALLET_SEARCH

    wallet_address: str = Field(..., alias="walletAddress", min_length=1)


class ProtocolFeesQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.PROTOCOL_FEES

    protocol: str | None = Field(None, description="Restrict to one protocol; all when unset")


class ValueTransferredQuery(QueryParams):
    query_type: ClassVar[QueryType] = QueryType.VALUE_TRANSFERRED

    mint_address: str = Field(..., alias="mintAddress", min_length=1)


QUERY_PARAMS: dict[QueryType, type[QueryParams]] = {
    cls.query_type: cls
    for cls in (
        AllQuery,
        ByProtocolQuery,
        VolumeQuery,
        ActiveWalletsQuery,
        TransferStatsQuery,
        AlertLargeQuery,
        MultiProtocolStatsQuery,
        DailyStatsQuery,
        WalletSearchQuery,
        ProtocolFeesQuery,
        ValueTransferredQuery,
    )
}


# -----------------------------------------------------------------------------
# Dispatch
# -----------------------------------------------------------------------------

_HANDLERS: dict[QueryType, Callable[[StreamData, Any], Any]] = {
    QueryType.ALL: lambda s, p: get_all_transactions(s, p.limit),
    QueryType.BY_PROTOCOL: lambda s, p: get_transactions_by_protocol(s, p.protocol, p.limit),
    QueryType.VOLUME: lambda s, p: get_protocol_volume(s, p.protocol, p.timeframe),
    QueryType.ACTIVE_WALLETS: lambda s, p: get_active_wallets(s, p.protocol),
    QueryType.TRANSFER_STATS: lambda s, p: get_token_transfer_stats(s, p.protocol),
    QueryType.ALERT_LARGE: lambda s, p: alert_on_large_transactions(s, p.threshold, p.callback),
    QueryType.MULTI_PROTOCOL_STATS: lambda s, p: get_multi_protocol_stats(s),
    QueryType.DAILY_STATS: lambda s, p: get_daily_stats(s, p.protocol),
    QueryType.WALLET_SEARCH: lambda s, p: search_transactions_by_wallet(s, p.wallet_address),
    QueryType.PROTOCOL_FEES: lambda s, p: calculate_protocol_fees(s, p.protocol),
    QueryType.VALUE_TRANSFERRED: lambda s, p: calculate_total_value_transferred(s, p.mint_address),
}


def parse_query(options: Mapping[str, Any] | QueryParams) -> QueryParams | None:
    """
    Resolve options into a parameter record. Returns None for an unknown or
    missing type tag; raises InvalidQueryError when a known kind fails validation.
    """
    if isinstance(options, QueryParams):
        return options
    raw_type = options.get("type")
    try:
        query_type = QueryType(raw_type)
    except ValueError:
        return None
    try:
        return QUERY_PARAMS[query_type].model_validate(dict(options))
    except ValidationError as e:
        raise InvalidQueryError(query_type.value, str(e)) from e


def as_stream(stream: Any) -> StreamData:
    """Accept StreamData, a {"data": [...]} mapping, or a list of records."""
    if isinstance(stream, StreamData):
        return stream
    if isinstance(stream, Mapping):
        return StreamData.from_dict(stream)
    if isinstance(stream, (list, tuple)):
        return StreamData.from_dict({"data": stream})
    raise MalformedInputError(f"Expected stream data with a 'data' array, got {type(stream).__name__}")


def dispatch(stream: Any, options: Mapping[str, Any] | QueryParams) -> Any:
    """Run the analytics function selected by options; unknown types return `stream` as given."""
    params = parse_query(options)
    if params is None:
        logger.warning("query_unknown_type", query_type=str(options.get("type")))
        return stream

    log = bind_query(params.query_type.value)
    data = as_stream(stream)
    log.debug("query_dispatch", transactions=len(data))
    result = _HANDLERS[params.query_type](data, params)
    log.debug("query_done")
    return result


def to_jsonable(value: Any) -> Any:
    """Convert query results (records, tuples, nested dicts) into plain JSON-compatible values."""
    if isinstance(value, (NormalizedTransaction, StreamData)):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
