"""
Structured logging for Backend Shield.

JSON logs with timestamp, event_type and query/protocol context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_shield.shield_logging.logger import bind_query, get_logger

__all__ = ["bind_query", "get_logger"]
