"""
Banking client errors.

Every failure the remote banking service can produce surfaces as a
``BankingError`` subclass, so services catch one type at the call site and
translate it into a user-facing status message.
"""
from __future__ import annotations

from typing import Any, Optional


class BankingError(Exception):
    """Base class for all remote banking failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)

    @property
    def server_message(self) -> Optional[str]:
        """Human-readable message supplied by the server, if the body carried one."""
        if isinstance(self.payload, dict):
            msg = self.payload.get("message") or self.payload.get("error")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        return None


class BankingTransportError(BankingError):
    """Network unreachable, connection reset, or timeout."""


class BankingServiceError(BankingError):
    """The service answered with a non-success HTTP status."""


class MalformedResponseError(BankingError):
    """The body was not JSON or did not have the expected shape."""
