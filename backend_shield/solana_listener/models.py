"""
Data models for classified Solana transactions.

NormalizedTransaction is the canonical unit every analytics function consumes.
Records are frozen; collection fields are tuples. to_dict() emits the camelCase
JSON record served to the dashboard, from_dict() rebuilds a record from it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from backend_shield.core.exceptions import MalformedInputError


@dataclass(frozen=True)
class TokenTransfer:
    """One token balance entry of a transaction, in UI units."""

    mint: str | None
    owner: str | None
    amount: float | None
    """uiAmount; RPC reports None for some zero balances."""
    decimals: int | None
    raw_amount: str | None
    """Integer amount in base units, as the string the RPC returns."""

    @property
    def abs_amount(self) -> float:
        return abs(self.amount or 0)

    @classmethod
    def from_token_balance(cls, entry: Mapping[str, Any]) -> "TokenTransfer":
        """Build from a raw token balance entry ({mint, owner, uiTokenAmount: {...}})."""
        ui = entry.get("uiTokenAmount") or {}
        return cls(
            mint=entry.get("mint"),
            owner=entry.get("owner"),
            amount=ui.get("uiAmount"),
            decimals=ui.get("decimals"),
            raw_amount=ui.get("amount"),
        )

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> "TokenTransfer":
        return cls(
            mint=item.get("mint"),
            owner=item.get("owner"),
            amount=item.get("amount"),
            decimals=item.get("decimals"),
            raw_amount=item.get("rawAmount"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "mint": self.mint,
            "owner": self.owner,
            "amount": self.amount,
            "decimals": self.decimals,
            "rawAmount": self.raw_amount,
        }


@dataclass(frozen=True)
class AccountChange:
    """Lamport balance delta of one account (post - pre)."""

    address: str | None
    balance_change: int | float

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> "AccountChange":
        return cls(address=item.get("address"), balance_change=item.get("balanceChange") or 0)

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "balanceChange": self.balance_change}


@dataclass(frozen=True)
class InstructionRef:
    index: int | None = None
    data: str | None = None

    @classmethod
    def from_dict(cls, item: Mapping[str, Any] | None) -> "InstructionRef":
        item = item or {}
        return cls(index=item.get("index"), data=item.get("data"))

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "data": self.data}


@dataclass(frozen=True)
class NormalizedTransaction:
    """
    Protocol-classified transaction in canonical form.

    user_wallet is positional (account at index 2), a convention of the
    upstream stream data, not a resolved signer.
    """

    transaction_id: str | None
    block_slot: int | None
    timestamp: int | None
    """Unix seconds from blockTime."""
    success: bool
    type: str
    protocol: str | None
    sub_type: str | None
    program: str | None
    user_wallet: str | None
    user_balance_change: int | float = 0
    token_transfers: tuple[TokenTransfer, ...] = ()
    account_changes: tuple[AccountChange, ...] = ()
    instruction: InstructionRef = field(default_factory=InstructionRef)
    logs: tuple[str, ...] = ()
    processed_at: str | None = None
    last_updated: str | None = None

    @property
    def transfer_volume(self) -> float:
        """Sum of absolute transfer amounts in this transaction."""
        return sum(t.abs_amount for t in self.token_transfers)

    @classmethod
    def from_dict(cls, item: Mapping[str, Any]) -> "NormalizedTransaction":
        """Rebuild from a to_dict() record; absent fields take empty defaults."""
        return cls(
            transaction_id=item.get("transactionId"),
            block_slot=item.get("blockSlot"),
            timestamp=item.get("timestamp"),
            success=bool(item.get("success")),
            type=item.get("type") or "Unknown",
            protocol=item.get("protocol"),
            sub_type=item.get("subType"),
            program=item.get("program"),
            user_wallet=item.get("userWallet"),
            user_balance_change=item.get("userBalanceChange") or 0,
            token_transfers=tuple(TokenTransfer.from_dict(t) for t in item.get("tokenTransfers") or []),
            account_changes=tuple(AccountChange.from_dict(a) for a in item.get("accountChanges") or []),
            instruction=InstructionRef.from_dict(item.get("instruction")),
            logs=tuple(item.get("logs") or []),
            processed_at=item.get("processedAt"),
            last_updated=item.get("lastUpdated"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable camelCase record."""
        return {
            "transactionId": self.transaction_id,
            "blockSlot": self.block_slot,
            "timestamp": self.timestamp,
            "success": self.success,
            "type": self.type,
            "protocol": self.protocol,
            "subType": self.sub_type,
            "program": self.program,
            "userWallet": self.user_wallet,
            "userBalanceChange": self.user_balance_change,
            "tokenTransfers": [t.to_dict() for t in self.token_transfers],
            "accountChanges": [a.to_dict() for a in self.account_changes],
            "instruction": self.instruction.to_dict(),
            "logs": list(self.logs),
            "processedAt": self.processed_at,
            "lastUpdated": self.last_updated,
        }


@dataclass(frozen=True)
class StreamData:
    """Container of normalized transactions handed to the analytics engine."""

    data: tuple[NormalizedTransaction, ...] = ()

    @classmethod
    def of(cls, transactions: Iterable[NormalizedTransaction]) -> "StreamData":
        return cls(data=tuple(transactions))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StreamData":
        """
        Build from {"data": [...]}; items may be records or to_dict() mappings.
        Raises MalformedInputError when data is not an array or holds anything else.
        """
        items = payload.get("data") or []
        if not isinstance(items, (list, tuple)):
            raise MalformedInputError(f"Stream 'data' must be an array, got {type(items).__name__}")
        records: list[NormalizedTransaction] = []
        for position, item in enumerate(items):
            if isinstance(item, NormalizedTransaction):
                records.append(item)
            elif isinstance(item, Mapping):
                records.append(NormalizedTransaction.from_dict(item))
            else:
                raise MalformedInputError(
                    f"Stream record at position {position} is {type(item).__name__}, expected an object"
                )
        return cls(data=tuple(records))

    def to_dict(self) -> dict[str, Any]:
        return {"data": [tx.to_dict() for tx in self.data]}

    def __len__(self) -> int:
        return len(self.data)
