"""
Analytics pipeline: raw stream payload -> classification -> query result.

Single entrypoint for callers that hold raw stream data rather than stored
normalized records (CLI, stream functions).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from backend_shield.analytics.query import QueryParams, dispatch
from backend_shield.shield_logging import get_logger
from backend_shield.solana_listener.parser import build_stream

logger = get_logger(__name__)


def run_stream_query(
    raw_input: Any,
    options: Mapping[str, Any] | QueryParams,
    protocol_filter: str | None = None,
) -> Any:
    """
    Classify raw_input (JSON text or decoded transactions), optionally keeping
    one protocol, then dispatch the query over the normalized set.
    """
    stream = build_stream(raw_input, protocol_filter=protocol_filter)
    logger.info("analytics_pipeline_start", transactions=len(stream), protocol_filter=protocol_filter)
    return dispatch(stream, options)
