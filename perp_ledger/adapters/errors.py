"""Project-native typed exceptions for ledger-node and history-source failures."""

from __future__ import annotations


class LedgerRpcError(Exception):
    """Base exception for ledger-node JSON-RPC failures.

    Attributes:
        error_code: Optional upstream JSON-RPC or HTTP error code.
    """

    def __init__(self, message: str, error_code: int | None = None):
        super().__init__(message)
        self.error_code = error_code


class LedgerRpcConnectionError(LedgerRpcError, ConnectionError):
    """Transport-level connectivity failure during ledger-node communication."""


class LedgerRpcTimeoutError(LedgerRpcError, TimeoutError):
    """Transport timeout while waiting for a ledger-node response."""


class LedgerRpcResponseError(LedgerRpcError, RuntimeError):
    """Ledger node answered with an error object or an unusable payload."""


class LedgerRpcRateLimitedError(LedgerRpcResponseError):
    """Retryable rate-limit response (HTTP 429 or JSON-RPC 429)."""

    def __init__(
        self,
        message: str,
        error_code: int | None = None,
        retry_after_seconds: float | None = None,
    ):
        super().__init__(message=message, error_code=error_code)
        self.retry_after_seconds = retry_after_seconds


class AccountNotFoundError(LookupError):
    """No trading account can be identified for a wallet."""


class LogDecodeError(ValueError):
    """Raw program log messages of one transaction cannot be decoded."""
