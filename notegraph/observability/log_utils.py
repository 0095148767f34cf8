"""
Logging utilities for safe structured logging.

Values passed as structured context are converted to bounded strings so a
huge note body or a vector never lands in a log line.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any

# Keys reserved by logging.LogRecord; passing them through `extra` raises KeyError.
_RESERVED_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Safely convert any value to a string for logging.

    Sequences and mappings are summarized by size rather than rendered.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, str):
            val_str = value
        elif isinstance(value, (list, tuple, set, frozenset)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def _safe_context(context: dict[str, Any]) -> dict[str, str]:
    safe: dict[str, str] = {}
    for key, val in context.items():
        name = f"ctx_{key}" if key in _RESERVED_KEYS else key
        safe[name] = safe_log_value(val)
    return safe


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any,
) -> None:
    """
    Log a message with structured context, safely converting all values.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Arbitrary key-value pairs attached to the record
    """
    logger.log(level, message, extra=_safe_context(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an exception with error type, message and context.

    Uses logger.error with exc_info so it is safe to call outside an
    ``except`` block (background task callbacks).

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context
    """
    safe_context = _safe_context(context)
    safe_context.update({
        "error_type": type(exc).__name__,
        "error_msg": safe_log_value(str(exc)),
    })
    logger.error(
        f"{message} ({type(exc).__name__}: {exc})",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra=safe_context,
    )
