"""
Logging utilities for safe structured logging.

Document content and queries are clinical text; these helpers bound how much
of it reaches a log record.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
from typing import Any

PREVIEW_LENGTH = 50


def safe_log_value(value: Any, max_length: int = PREVIEW_LENGTH) -> str:
    """
    Safely convert any value to a bounded string for logging.

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
            val_str = " ".join(value.split())
        elif isinstance(value, (list, tuple)):
            val_str = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            val_str = f"dict({len(value)} keys)"
        else:
            val_str = str(value)

        if len(val_str) > max_length:
            return val_str[:max_length] + f"... ({len(val_str)} chars)"
        return val_str
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an exception with bounded structured context.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context dict
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context.update({
        "error_type": type(exc).__name__,
        "error_msg": safe_log_value(str(exc), max_length=500),
    })
    logger.error(message, exc_info=exc, extra=safe_context)
