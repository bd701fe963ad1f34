"""
Protocol registry package: DeFi program IDs and reverse lookup.
"""

from backend_shield.protocols.registry import (
    PROTOCOL_IDS,
    ProtocolMatch,
    ProtocolRegistry,
    get_registry,
    iter_program_ids,
)

__all__ = [
    "PROTOCOL_IDS",
    "ProtocolMatch",
    "ProtocolRegistry",
    "get_registry",
    "iter_program_ids",
]
