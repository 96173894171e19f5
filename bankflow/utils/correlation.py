from __future__ import annotations

import uuid
import contextvars

# Task-local correlation id; the transfer controller sets it to the attempt id
_cid = contextvars.ContextVar("correlation_id", default="")


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def set_correlation_id(value: str | None = None) -> str:
    """Set a correlation id for the current task (generate if not provided)."""
    cid = value or new_correlation_id()
    _cid.set(cid)
    return cid


def get_correlation_id() -> str:
    """Get current correlation id (empty string if not set)."""
    return _cid.get("")


def clear_correlation_id() -> None:
    """Clear current correlation id (sets to empty string)."""
    _cid.set("")
