"""
Structured logging helpers.

Flattens UUIDs, enums and collections into short strings before they go
into a record's `extra`, so handlers never choke on odd values.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import enum
import logging
from typing import Any
from uuid import UUID

MAX_VALUE_LENGTH = 300


def to_log_value(value: Any, max_length: int = MAX_VALUE_LENGTH) -> Any:
    """
    Convert a context value into something every formatter can render.

    Numbers and booleans pass through; collections are summarized by size.

    Args:
        value: Value to convert
        max_length: Truncation limit for string output

    Returns:
        Any: int/float/bool/None unchanged, otherwise a bounded string
    """
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, dict):
        return f"dict[{len(value)} keys]"

    text = str(value)
    if len(text) > max_length:
        return f"{text[:max_length]}... (+{len(text) - max_length} chars)"
    return text


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    """Log message with every context value passed through to_log_value."""
    logger.log(level, message, extra={key: to_log_value(val) for key, val in context.items()})


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context,
) -> None:
    """
    Log an exception with traceback and structured context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception being reported
        **context: Additional context
    """
    extra = {key: to_log_value(val) for key, val in context.items()}
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = to_log_value(getattr(exc, "message", None) or str(exc))
    logger.error(message, exc_info=exc, extra=extra)
