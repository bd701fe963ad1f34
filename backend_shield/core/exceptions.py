"""
Application-level exceptions.

Malformed input and invalid query parameters are the only failures the core
raises; unmatched transactions, empty aggregation sets and unknown query types
are not errors.
"""

from __future__ import annotations


class ShieldError(Exception):
    """Base class for all Backend Shield errors."""


class MalformedInputError(ShieldError, ValueError):
    """Raw transaction input could not be decoded or has the wrong shape."""


class InvalidQueryError(ShieldError, ValueError):
    """A known query type was given missing or invalid parameters."""

    def __init__(self, query_type: str, message: str) -> None:
        super().__init__(f"Invalid '{query_type}' query: {message}")
        self.query_type = query_type
