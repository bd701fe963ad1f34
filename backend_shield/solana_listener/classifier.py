"""
Transaction classifier: match a raw transaction against the protocol registry.

The top-level programId is checked first; when it is unknown (or rejected by
the protocol filter) the transaction's programInvocations are scanned in order
and the first accepted match wins. Remaining invocations are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from backend_shield.protocols.registry import ProtocolMatch, ProtocolRegistry, get_registry


@dataclass(frozen=True)
class ClassificationResult:
    """Matched protocol plus the invocation that produced it (None for a top-level match)."""

    match: ProtocolMatch
    invocation: Mapping[str, Any] | None = None

    @property
    def is_top_level(self) -> bool:
        return self.invocation is None


def match_program_id(program_id: Any, registry: ProtocolRegistry | None = None) -> ProtocolMatch | None:
    """Return the (protocol, sub_type) registered for program_id, or None."""
    reg = registry if registry is not None else get_registry()
    return reg.match_program_id(program_id)


def _accepts(match: ProtocolMatch | None, protocol_filter: str | None) -> bool:
    return match is not None and (not protocol_filter or match.protocol == protocol_filter)


def classify(
    raw_tx: Mapping[str, Any],
    protocol_filter: str | None = None,
    registry: ProtocolRegistry | None = None,
) -> ClassificationResult | None:
    """
    Classify one raw transaction.

    Returns None when neither the top-level program nor any invocation matches
    a registered protocol satisfying protocol_filter. A transaction whose
    top-level protocol is filtered out is not reported under that protocol.
    """
    reg = registry if registry is not None else get_registry()

    top_level = reg.match_program_id(raw_tx.get("programId"))
    if _accepts(top_level, protocol_filter):
        return ClassificationResult(match=top_level)

    for invocation in raw_tx.get("programInvocations") or []:
        if not isinstance(invocation, Mapping):
            continue
        match = reg.match_program_id(invocation.get("programId"))
        if _accepts(match, protocol_filter):
            return ClassificationResult(match=match, invocation=invocation)
    return None
