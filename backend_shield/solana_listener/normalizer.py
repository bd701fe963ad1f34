"""
Transaction normalizer: classified raw transaction to NormalizedTransaction.

Two input shapes produce the same record layout:
- top-level match: accounts, logs and token balances are read off the transaction;
- invocation match: accounts and token balances come from invocation.instruction,
  logs are narrowed to lines mentioning the invocation program or an instruction
  name, and the type is taken from the first "Instruction:" log line.

Derived fields (user wallet, balance deltas, transfers) are computed the same
way for both shapes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from backend_shield.protocols.registry import ProtocolMatch
from backend_shield.solana_listener.models import (
    AccountChange,
    InstructionRef,
    NormalizedTransaction,
    TokenTransfer,
)

INSTRUCTION_MARKER = "Instruction:"
UNKNOWN_TYPE = "Unknown"
# Runtime log lines carrying no protocol information
NOISE_LOG_MARKERS = ("invoke", "success", "consumed")
# Accounts are positional in the stream payload; index 2 is the user by convention
USER_WALLET_ACCOUNT_INDEX = 2


def instruction_type_from_logs(logs: Sequence[str]) -> str:
    """Return the text after "Instruction:" in the first line containing it, else "Unknown"."""
    for line in logs:
        if INSTRUCTION_MARKER in line:
            name = line.split(INSTRUCTION_MARKER, 1)[1].strip()
            return name or UNKNOWN_TYPE
    return UNKNOWN_TYPE


def invocation_logs(logs: Sequence[str], program_id: str) -> list[str]:
    """Keep lines mentioning the invoked program or an instruction name."""
    return [line for line in logs if program_id in line or INSTRUCTION_MARKER in line]


def strip_noise_logs(logs: Sequence[str]) -> list[str]:
    """Drop invoke / success / consumed runtime lines (case-sensitive)."""
    return [line for line in logs if not any(marker in line for marker in NOISE_LOG_MARKERS)]


def _balance_delta(account: Mapping[str, Any]) -> int | float:
    return (account.get("postBalance") or 0) - (account.get("preBalance") or 0)


def _user_wallet(accounts: Sequence[Mapping[str, Any]]) -> str | None:
    if len(accounts) <= USER_WALLET_ACCOUNT_INDEX:
        return None
    return accounts[USER_WALLET_ACCOUNT_INDEX].get("pubkey") or None


def _user_balance_change(accounts: Sequence[Mapping[str, Any]], user_wallet: str | None) -> int | float:
    if user_wallet is None:
        return 0
    for account in accounts:
        if account.get("pubkey") == user_wallet:
            return _balance_delta(account)
    return 0


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _build(
    raw_tx: Mapping[str, Any],
    match: ProtocolMatch,
    *,
    program: str | None,
    tx_type: str,
    accounts: Sequence[Mapping[str, Any]],
    token_balances: Sequence[Mapping[str, Any]],
    logs: Sequence[str],
    instruction: InstructionRef,
    now: str | None,
) -> NormalizedTransaction:
    user_wallet = _user_wallet(accounts)
    stamp = now or _utc_now_iso()
    return NormalizedTransaction(
        transaction_id=raw_tx.get("signature"),
        block_slot=raw_tx.get("slot"),
        timestamp=raw_tx.get("blockTime"),
        success=bool(raw_tx.get("success")),
        type=tx_type,
        protocol=match.protocol,
        sub_type=match.sub_type,
        program=program,
        user_wallet=user_wallet,
        user_balance_change=_user_balance_change(accounts, user_wallet),
        token_transfers=tuple(TokenTransfer.from_token_balance(tb) for tb in token_balances),
        account_changes=tuple(
            AccountChange(address=acc.get("pubkey"), balance_change=_balance_delta(acc))
            for acc in accounts
        ),
        instruction=instruction,
        logs=tuple(strip_noise_logs(logs)),
        processed_at=stamp,
        last_updated=stamp,
    )


def normalize(
    raw_tx: Mapping[str, Any],
    match: ProtocolMatch,
    invocation: Mapping[str, Any] | None = None,
    now: str | None = None,
) -> NormalizedTransaction:
    """
    Normalize a classified raw transaction.

    invocation is the programInvocations entry that matched, or None when the
    top-level programId matched. now overrides processedAt/lastUpdated (ISO 8601).
    Raises KeyError/TypeError on structurally broken payloads; the pipeline
    reports those as malformed input.
    """
    logs = list(raw_tx.get("logs") or [])

    if invocation is None:
        return _build(
            raw_tx,
            match,
            program=raw_tx.get("programId"),
            tx_type=raw_tx.get("type") or instruction_type_from_logs(logs),
            accounts=raw_tx.get("accounts") or [],
            token_balances=raw_tx.get("tokenBalanceChanges") or raw_tx.get("tokenBalances") or [],
            logs=logs,
            instruction=InstructionRef(index=raw_tx.get("index"), data=raw_tx.get("data")),
            now=now,
        )

    program_id = invocation["programId"]
    instruction = invocation["instruction"]
    protocol_logs = invocation_logs(logs, program_id)
    return _build(
        raw_tx,
        match,
        program=program_id,
        tx_type=instruction_type_from_logs(protocol_logs),
        accounts=instruction.get("accounts") or [],
        token_balances=instruction.get("tokenBalances") or [],
        logs=protocol_logs,
        instruction=InstructionRef(index=instruction.get("index"), data=instruction.get("data")),
        now=now,
    )
