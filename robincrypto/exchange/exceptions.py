"""Typed exception hierarchy for brokerage operations.

Enables callers to distinguish configuration, transport, HTTP status
and decode failures. Nothing here is retried internally.
"""

from __future__ import annotations

from typing import Optional


class ExchangeError(Exception):
    """Base class for all brokerage-related errors."""


class CredentialError(ExchangeError):
    """Missing or malformed API credentials. Fatal at startup."""


class ResponseDecodeError(ExchangeError):
    """Response body did not match the expected shape for the operation."""

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body[:500]


class HTTPStatusMixin:
    status_code: Optional[int] = None
    body: str = ""

    def _set_status(self, status_code: Optional[int], body: str) -> None:
        self.status_code = status_code
        self.body = (body or "")[:500]


class TransientExchangeError(ExchangeError, HTTPStatusMixin):
    """Temporary failure that may succeed if re-issued (network, 5xx, timeout)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self._set_status(status_code, body)


class TransportError(TransientExchangeError):
    """Network, TLS or timeout failure before a response was received."""


class RateLimitError(TransientExchangeError):
    """Rate limit hit (429). Caller should back off and re-sign."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: float = 0.0,
        status_code: Optional[int] = 429,
        body: str = "",
    ):
        super().__init__(message, status_code=status_code, body=body)
        self.retry_after = retry_after


class PermanentExchangeError(ExchangeError, HTTPStatusMixin):
    """Non-recoverable failure (bad request, unknown order, auth)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self._set_status(status_code, body)


class AuthenticationError(PermanentExchangeError):
    """Signature rejected (401/403). Usually clock skew or a key mismatch."""


class InvalidOrderError(PermanentExchangeError):
    """Invalid order parameters (conflicting amounts, missing price, etc)."""
