"""
Core utilities: shared exceptions used across the listener, analytics and tools.
"""

from backend_shield.core.exceptions import InvalidQueryError, MalformedInputError, ShieldError

__all__ = ["InvalidQueryError", "MalformedInputError", "ShieldError"]
