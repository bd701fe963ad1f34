"""
Protocol registry: known DeFi program IDs on Solana, grouped by protocol and sub-variant.

Static mapping protocol -> sub_type -> program_id, plus a reverse index
program_id -> ProtocolMatch used by the classifier on every transaction and
invocation. Extra entries can be merged from a JSON file (SHIELD_PROTOCOLS_PATH)
with the same nested shape.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from backend_shield.config.env import get_protocols_path
from backend_shield.shield_logging import get_logger

logger = get_logger(__name__)

PROTOCOL_IDS: dict[str, dict[str, str]] = {
    "MARGINFI": {
        "MAIN": "MFv2hWf31Z9kbCa1snEPYctwafyhdvnV7FZnsebVacA",
    },
    "JUPITER": {
        "SWAPS": "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4",
        "LIMIT_ORDER": "jupoNjAxXgZ4rjzxzPMP4oxduvQsQtZzyknqvzYNrNu",
        "DCA": "DCA265Vj8a9CEuX1eb1LWRnDT7uK6q1xMipnNyatn23M",
    },
    "OPENBOOK": {
        "V2": "opnb2LAfJYbRMAHHvqjCwQxanZn7ReEHp1k81EohpZb",
    },
    "RAYDIUM": {
        "OPEN_BOOK": "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
        "STABLE_SWAP_AMM": "5quBtoiQqxF9Jv6KYKctB59NT3gtJD2Y65kdnB1Uev3h",
        "STAKING": "EhhTKczWMGQt46ynNeRX1WfeagwwJd7ufHvCDjRxjo5Q",
        "STANDARD_AMM": "CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C",
        "CONCENTRATED_LIQUIDITY": "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK",
    },
}


@dataclass(frozen=True)
class ProtocolMatch:
    """Result of matching a program ID against the registry."""

    protocol: str
    sub_type: str


def iter_program_ids(
    registry: Mapping[str, Mapping[str, str]] | None = None,
) -> Iterator[tuple[str, str, str]]:
    """Yield (protocol, sub_type, program_id) in registry order."""
    for protocol, sub_protocols in (PROTOCOL_IDS if registry is None else registry).items():
        for sub_type, program_id in sub_protocols.items():
            yield protocol, sub_type, program_id


def build_reverse_index(registry: Mapping[str, Mapping[str, str]]) -> dict[str, ProtocolMatch]:
    """
    Map program_id -> ProtocolMatch. On duplicate IDs the first entry in
    registry order wins, same as a protocol-by-protocol linear scan.
    """
    index: dict[str, ProtocolMatch] = {}
    for protocol, sub_type, program_id in iter_program_ids(registry):
        if program_id in index:
            logger.warning(
                "registry_duplicate_program_id",
                program_id=program_id,
                kept=f"{index[program_id].protocol}.{index[program_id].sub_type}",
                ignored=f"{protocol}.{sub_type}",
            )
            continue
        index[program_id] = ProtocolMatch(protocol=protocol, sub_type=sub_type)
    return index


def load_registry_overrides(path: Path) -> dict[str, dict[str, str]]:
    """
    Load extra {protocol: {sub_type: program_id}} entries from JSON.
    Returns empty dict when the file is missing or not the expected shape.
    """
    if not path.is_file():
        logger.debug("registry_overrides_missing", path=str(path))
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("registry_overrides_load_failed", path=str(path), error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("registry_overrides_invalid", path=str(path), reason="not an object")
        return {}
    out: dict[str, dict[str, str]] = {}
    for protocol, sub_protocols in data.items():
        if not isinstance(sub_protocols, dict):
            continue
        entries = {
            str(sub_type): str(pid).strip()
            for sub_type, pid in sub_protocols.items()
            if isinstance(pid, str) and pid.strip()
        }
        if entries:
            out[str(protocol)] = entries
    return out


def merge_registries(
    base: Mapping[str, Mapping[str, str]],
    extra: Mapping[str, Mapping[str, str]],
) -> dict[str, dict[str, str]]:
    """Merge extra into a copy of base; extra sub_types replace base ones of the same name."""
    merged = {protocol: dict(subs) for protocol, subs in base.items()}
    for protocol, subs in extra.items():
        merged.setdefault(protocol, {}).update(subs)
    return merged


class ProtocolRegistry:
    """Protocol -> sub_type -> program_id mapping with a precomputed reverse index."""

    def __init__(self, protocol_ids: Mapping[str, Mapping[str, str]] | None = None) -> None:
        source = PROTOCOL_IDS if protocol_ids is None else protocol_ids
        self._protocol_ids = {protocol: dict(subs) for protocol, subs in source.items()}
        self._index = build_reverse_index(self._protocol_ids)

    def match_program_id(self, program_id: Any) -> ProtocolMatch | None:
        """Exact-equality lookup; non-string or unknown IDs return None."""
        if not isinstance(program_id, str):
            return None
        return self._index.get(program_id)

    def protocols(self) -> list[str]:
        return list(self._protocol_ids)

    def program_ids(self) -> list[tuple[str, str, str]]:
        return list(iter_program_ids(self._protocol_ids))

    def as_dict(self) -> dict[str, dict[str, str]]:
        return {protocol: dict(subs) for protocol, subs in self._protocol_ids.items()}

    def __contains__(self, program_id: object) -> bool:
        return program_id in self._index

    def __len__(self) -> int:
        return len(self._index)


_registry: ProtocolRegistry | None = None


def get_registry() -> ProtocolRegistry:
    """Return the process-wide registry: built-ins plus SHIELD_PROTOCOLS_PATH overrides."""
    global _registry
    if _registry is None:
        protocol_ids: dict[str, dict[str, str]] = PROTOCOL_IDS
        path = get_protocols_path()
        if path is not None:
            overrides = load_registry_overrides(path)
            if overrides:
                protocol_ids = merge_registries(PROTOCOL_IDS, overrides)
                logger.info("registry_overrides_loaded", path=str(path), protocols=list(overrides))
        _registry = ProtocolRegistry(protocol_ids)
    return _registry


def reset_registry_for_test() -> None:
    """Drop the cached registry so the next get_registry() re-reads the env."""
    global _registry
    _registry = None
