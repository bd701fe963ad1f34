"""
Solana stream package.

Classifies raw stream transactions against the DeFi protocol registry and
normalizes matches into the records the analytics engine consumes.
"""

from backend_shield.solana_listener.classifier import ClassificationResult, classify, match_program_id
from backend_shield.solana_listener.models import (
    AccountChange,
    InstructionRef,
    NormalizedTransaction,
    StreamData,
    TokenTransfer,
)
from backend_shield.solana_listener.normalizer import normalize
from backend_shield.solana_listener.parser import build_stream, classify_batch, load_transactions

__all__ = [
    "AccountChange",
    "ClassificationResult",
    "InstructionRef",
    "NormalizedTransaction",
    "StreamData",
    "TokenTransfer",
    "build_stream",
    "classify",
    "classify_batch",
    "load_transactions",
    "match_program_id",
    "normalize",
]
