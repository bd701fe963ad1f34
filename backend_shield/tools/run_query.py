#!/usr/bin/env python3
"""
Run one analytics query over a stream dump and print the JSON result.

Input is either a raw stream payload (classified first, optionally filtered to
one protocol) or, with --normalized, stored records shaped {"data": [...]}.

Usage:
  python -m backend_shield.tools.run_query stream.json --type multiProtocolStats
  python -m backend_shield.tools.run_query stream.json --type volume --protocol JUPITER --timeframe 3600
  cat records.json | python -m backend_shield.tools.run_query - --normalized --type walletSearch --wallet <address>
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from backend_shield.analytics.query import QueryType, dispatch, to_jsonable
from backend_shield.config import get_settings
from backend_shield.core.exceptions import ShieldError
from backend_shield.shield_logging import get_logger
from backend_shield.solana_listener.parser import build_stream

logger = get_logger(__name__)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def build_options(args: argparse.Namespace) -> dict[str, Any]:
    """Translate CLI flags into the option mapping the dispatcher accepts."""
    settings = get_settings()
    options: dict[str, Any] = {"type": args.type}
    if args.protocol is not None:
        options["protocol"] = args.protocol
    limit = args.limit if args.limit is not None else settings.default_limit
    if limit is not None:
        options["limit"] = limit
    if args.timeframe is not None:
        options["timeframe"] = args.timeframe
    if args.wallet is not None:
        options["walletAddress"] = args.wallet
    if args.mint is not None:
        options["mintAddress"] = args.mint
    if args.type == QueryType.ALERT_LARGE.value:
        options["threshold"] = args.threshold if args.threshold is not None else settings.alert_threshold
        options["callback"] = lambda alert: print(json.dumps(alert))
    return options


def run(args: argparse.Namespace) -> Any:
    payload = _read_input(args.input)
    if args.normalized:
        stream: Any = json.loads(payload)
    else:
        # Same normalization as SHIELD_PROTOCOL_FILTER
        cli_filter = (args.filter or "").strip().upper() or None
        protocol_filter = cli_filter if cli_filter is not None else get_settings().protocol_filter
        stream = build_stream(payload, protocol_filter=protocol_filter)
    return dispatch(stream, build_options(args))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a DeFi analytics query over a Solana stream dump.")
    parser.add_argument("input", help="Path to a JSON file, or - for stdin")
    parser.add_argument("--type", required=True, help="Query type, e.g. " + ", ".join(q.value for q in QueryType))
    parser.add_argument("--protocol", help="Protocol name (byProtocol, volume, activeWallets, ...)")
    parser.add_argument("--limit", type=int, help="Max transactions for all / byProtocol")
    parser.add_argument("--timeframe", type=int, help="Look-back window in seconds for volume")
    parser.add_argument("--threshold", type=float, help="Minimum transfer value for alertLarge")
    parser.add_argument("--wallet", help="Wallet address for walletSearch")
    parser.add_argument("--mint", help="Token mint for valueTransferred")
    parser.add_argument("--filter", help="Keep only this protocol while classifying raw input")
    parser.add_argument("--normalized", action="store_true", help="Input is stored records {\"data\": [...]}, skip classification")
    args = parser.parse_args(argv)

    try:
        result = run(args)
    except (ShieldError, OSError, json.JSONDecodeError) as e:
        logger.error("run_query_failed", query_type=args.type, error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 1

    if args.type != QueryType.ALERT_LARGE.value:
        print(json.dumps(to_jsonable(result), indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
