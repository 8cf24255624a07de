"""
Observability module.

Provides logging configuration and helpers that keep clinical text out of
log lines beyond a short preview.
"""

from patient_rag.observability.log_utils import log_exception_with_context, safe_log_value
from patient_rag.observability.logger import configure_logging

__all__ = ["configure_logging", "log_exception_with_context", "safe_log_value"]
