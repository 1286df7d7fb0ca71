"""
Logging infrastructure for the Worksheet Store core.

- RequestIDFilter: structured logging with request correlation
- StructuredLogAdapter: attach fixed context (coupon id, payment id) to a logger

Usage:
    from apps.common.logging import StructuredLogAdapter

    log = StructuredLogAdapter(logger, {"coupon_id": coupon.id})
    log.info("Coupon usage recorded")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import MutableMapping
from typing import Any

# Thread-local storage for request context
_request_context = threading.local()

_CONTEXT_ATTRIBUTES = ("request_id", "user_email", "ip_address")


# =============================================================================
# REQUEST CONTEXT FUNCTIONS
# =============================================================================


def set_request_context(**kwargs: Any) -> None:
    """Set request context for the current thread"""
    for key, value in kwargs.items():
        setattr(_request_context, key, value)


def get_request_context() -> dict[str, Any]:
    """Get request context for the current thread"""
    return {
        "request_id": getattr(_request_context, "request_id", "-"),
        "user_email": getattr(_request_context, "user_email", None),
        "ip_address": getattr(_request_context, "ip_address", None),
    }


def clear_request_context() -> None:
    """Clear request context for the current thread"""
    for attr in _CONTEXT_ATTRIBUTES:
        if hasattr(_request_context, attr):
            delattr(_request_context, attr)


# =============================================================================
# REQUEST ID FILTER - Structured Logging with Request Correlation
# =============================================================================


class RequestIDFilter(logging.Filter):
    """
    Add request ID and context to log records.

    This filter injects the request ID from thread-local storage
    into every log record, enabling request tracing across logs.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add request_id attribute to log record"""
        if not hasattr(record, "request_id"):
            record.request_id = getattr(_request_context, "request_id", "-")  # type: ignore[attr-defined]
        if not hasattr(record, "user_email"):
            record.user_email = getattr(_request_context, "user_email", None)  # type: ignore[attr-defined]
        if not hasattr(record, "ip_address"):
            record.ip_address = getattr(_request_context, "ip_address", None)  # type: ignore[attr-defined]
        return True


# =============================================================================
# STRUCTURED LOG ADAPTER
# =============================================================================


class StructuredLogAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """
    Logger adapter that merges fixed context into every record's ``extra``.

    Call-site ``extra`` values win over the adapter's context.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs
