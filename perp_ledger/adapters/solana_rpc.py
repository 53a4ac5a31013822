"""Solana JSON-RPC ledger-node adapter for signature listing and transaction fetch."""

from __future__ import annotations

import itertools
import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Final, Sequence

import httpx

from perp_ledger.domain import HealthStatus, domain_build_stage_event

from .errors import (
    LedgerRpcConnectionError,
    LedgerRpcError,
    LedgerRpcRateLimitedError,
    LedgerRpcResponseError,
    LedgerRpcTimeoutError,
)
from .interfaces import FetchedTransaction, LedgerNodeHealthPort, SignatureInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RpcRetryStrategy:
    """Immutable retry strategy config and calculation helpers.

    Attributes:
        retry_attempts: Total attempts per rate-limited call.
        backoff_base_seconds: Base delay for exponential backoff.
        max_backoff_seconds: Exponential delay cap before jitter.
        jitter_min_multiplier: Minimum jitter multiplier.
        jitter_max_multiplier: Maximum jitter multiplier.
        random_unit_interval_provider: Provider returning value in [0.0, 1.0].
    """

    retry_attempts: int
    backoff_base_seconds: float
    max_backoff_seconds: float
    jitter_min_multiplier: float
    jitter_max_multiplier: float
    random_unit_interval_provider: Callable[[], float]

    def strategy_calculate_retry_wait_seconds(self, retry_index: int) -> float:
        """Calculate exponential retry wait with cap and jitter.

        Args:
            retry_index: Zero-based retry attempt index.

        Returns:
            float: Computed wait seconds before the next attempt.

        Raises:
            ValueError: Raised when retry index is negative.
            RuntimeError: Raised when jitter provider returns out-of-range value.
        """

        if retry_index < 0:
            raise ValueError("retry_index must be >= 0")

        backoff_seconds = self.backoff_base_seconds * (2**retry_index)
        capped_backoff_seconds = min(backoff_seconds, self.max_backoff_seconds)
        return float(capped_backoff_seconds * self.strategy_calculate_jitter_multiplier())

    def strategy_calculate_jitter_multiplier(self) -> float:
        """Return jitter multiplier using configured min/max bounds.

        Returns:
            float: Jitter multiplier value.

        Raises:
            RuntimeError: Raised when jitter source returns value outside [0.0, 1.0].
        """

        random_ratio = float(self.random_unit_interval_provider())
        if random_ratio < 0.0 or random_ratio > 1.0:
            raise RuntimeError("random_unit_interval_provider must return a value in [0.0, 1.0]")

        jitter_span = self.jitter_max_multiplier - self.jitter_min_multiplier
        return self.jitter_min_multiplier + (random_ratio * jitter_span)


class SolanaRpcClient(LedgerNodeHealthPort):
    """Ledger-node client with bounded batch fetch, pacing and rate-limit retries."""

    _USER_AGENT: Final[str] = "perp-pnl-ledger/1.0 (Python/httpx)"
    _RATE_LIMIT_ERROR_CODES: Final[frozenset[int]] = frozenset({429, -32429})

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        request_timeout_seconds: float = 30.0,
        batch_size: int = 5,
        batch_pause_seconds: float = 0.2,
        retry_attempts: int = 3,
        retry_backoff_base_seconds: float = 0.5,
        retry_max_backoff_seconds: float = 8.0,
        jitter_min_multiplier: float = 0.5,
        jitter_max_multiplier: float = 1.5,
        signature_page_size: int = 1000,
        random_unit_interval_provider: Callable[[], float] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize ledger-node client.

        Args:
            rpc_url: JSON-RPC endpoint URL.
            commitment: Commitment level sent with read requests.
            request_timeout_seconds: HTTP request timeout in seconds.
            batch_size: Transaction bodies fetched concurrently per batch.
            batch_pause_seconds: Pause between consecutive batches.
            retry_attempts: Total attempts per rate-limited call.
            retry_backoff_base_seconds: Base retry delay used by exponential backoff.
            retry_max_backoff_seconds: Maximum retry delay cap before applying jitter.
            jitter_min_multiplier: Minimum jitter multiplier for computed retry delay.
            jitter_max_multiplier: Maximum jitter multiplier for computed retry delay.
            signature_page_size: Maximum signatures requested per listing page.
            random_unit_interval_provider: Optional provider returning random values in [0.0, 1.0].
            transport: Optional httpx transport override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_rpc_url = rpc_url.strip()
        normalized_commitment = commitment.strip()

        if not normalized_rpc_url:
            raise ValueError("rpc_url must not be blank")
        if not normalized_commitment:
            raise ValueError("commitment must not be blank")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if batch_pause_seconds < 0:
            raise ValueError("batch_pause_seconds must be >= 0")
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        if retry_backoff_base_seconds < 0:
            raise ValueError("retry_backoff_base_seconds must be >= 0")
        if retry_max_backoff_seconds <= 0:
            raise ValueError("retry_max_backoff_seconds must be > 0")
        if jitter_min_multiplier <= 0:
            raise ValueError("jitter_min_multiplier must be > 0")
        if jitter_max_multiplier < jitter_min_multiplier:
            raise ValueError("jitter_max_multiplier must be >= jitter_min_multiplier")
        if signature_page_size < 1:
            raise ValueError("signature_page_size must be >= 1")

        self._rpc_url = normalized_rpc_url
        self._commitment = normalized_commitment
        self._batch_size = batch_size
        self._batch_pause_seconds = batch_pause_seconds
        self._signature_page_size = signature_page_size
        self._retry_strategy = _RpcRetryStrategy(
            retry_attempts=retry_attempts,
            backoff_base_seconds=retry_backoff_base_seconds,
            max_backoff_seconds=retry_max_backoff_seconds,
            jitter_min_multiplier=jitter_min_multiplier,
            jitter_max_multiplier=jitter_max_multiplier,
            random_unit_interval_provider=random_unit_interval_provider or random.random,
        )
        self._request_ids = itertools.count(1)
        self._client = httpx.Client(
            timeout=request_timeout_seconds,
            headers={"User-Agent": self._USER_AGENT},
            transport=transport,
        )

    def close(self) -> None:
        """Release pooled HTTP connections."""

        self._client.close()

    def node_connection_label(self) -> str:
        """Return the RPC endpoint without query string for diagnostics.

        Returns:
            str: Endpoint label.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return self._rpc_url.split("?", 1)[0]

    def node_check_health(self) -> HealthStatus:
        """Verify ledger-node health through `getHealth`.

        Returns:
            HealthStatus: Health payload with status and diagnostic detail.

        Raises:
            ConnectionError: Raised when the node is unreachable or reports unhealthy.
        """

        try:
            health_result = self.rpc_call("getHealth", [])
        except LedgerRpcError as error:
            raise ConnectionError(f"ledger node health check failed: {error}") from error
        if health_result != "ok":
            raise ConnectionError(f"ledger node reported health={health_result!r}")
        return HealthStatus(status="ok", detail="ledger node health verified")

    def rpc_call(self, method: str, params: Sequence[Any]) -> Any:
        """Execute one JSON-RPC call, retrying rate-limited responses.

        Args:
            method: JSON-RPC method name.
            params: Positional JSON-RPC params.

        Returns:
            Any: Decoded `result` member of the response.

        Raises:
            LedgerRpcConnectionError: Raised for transport failures and HTTP error statuses.
            LedgerRpcTimeoutError: Raised when the request times out.
            LedgerRpcRateLimitedError: Raised when rate limiting persists after all attempts.
            LedgerRpcResponseError: Raised for JSON-RPC error objects and malformed payloads.
        """

        request_payload = {"jsonrpc": "2.0", "id": next(self._request_ids), "method": method, "params": list(params)}
        for retry_index in range(self._retry_strategy.retry_attempts):
            try:
                return self._rpc_post(request_payload)
            except LedgerRpcRateLimitedError as error:
                if retry_index + 1 >= self._retry_strategy.retry_attempts:
                    raise
                wait_seconds = max(
                    self._retry_strategy.strategy_calculate_retry_wait_seconds(retry_index=retry_index),
                    error.retry_after_seconds or 0.0,
                )
                logger.warning(
                    "rate limited method=%s attempt=%s wait_seconds=%.3f", method, retry_index + 1, wait_seconds
                )
                if wait_seconds > 0:
                    time.sleep(wait_seconds)
        raise LedgerRpcRateLimitedError(f"{method} rate limited after all retries", error_code=429)

    def rpc_list_signatures(
        self,
        address: str,
        limit: int,
        stage_timeline: list[dict[str, object]] | None = None,
    ) -> list[SignatureInfo]:
        """List the most recent signatures of one address, newest first.

        Paging stops on a short page, on reaching `limit`, or on a failed page;
        a failed page keeps everything collected before it.

        Args:
            address: Account address.
            limit: Maximum number of signatures.
            stage_timeline: Optional mutable diagnostics timeline.

        Returns:
            list[SignatureInfo]: Signatures newest first.

        Raises:
            ValueError: Raised when address is blank or limit is below one.
        """

        normalized_address = address.strip()
        if not normalized_address:
            raise ValueError("address must not be blank")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        signatures: list[SignatureInfo] = []
        before_signature: str | None = None
        while len(signatures) < limit:
            page_limit = min(self._signature_page_size, limit - len(signatures))
            page_options: dict[str, object] = {"limit": page_limit, "commitment": self._commitment}
            if before_signature is not None:
                page_options["before"] = before_signature
            try:
                page_entries = self.rpc_call("getSignaturesForAddress", [normalized_address, page_options])
                if page_entries is not None and not isinstance(page_entries, list):
                    raise LedgerRpcResponseError("getSignaturesForAddress returned a non-list result")
                page_signatures = [self._adapter_parse_signature_entry(entry) for entry in page_entries or []]
            except LedgerRpcError as error:
                logger.warning(
                    "signature paging stopped address=%s collected=%s reason=%s",
                    normalized_address,
                    len(signatures),
                    error,
                )
                self._adapter_record_stage_event(
                    stage_timeline,
                    stage="signatures",
                    status="truncated",
                    details={"collected": len(signatures), "error": str(error)},
                )
                break
            if not page_signatures:
                break

            signatures.extend(page_signatures)
            before_signature = signatures[-1].signature
            if len(page_signatures) < page_limit:
                break

        self._adapter_record_stage_event(
            stage_timeline,
            stage="signatures",
            status="completed",
            details={"count": len(signatures)},
        )
        return signatures

    def rpc_get_transactions(
        self,
        signatures: Sequence[str],
        stage_timeline: list[dict[str, object]] | None = None,
    ) -> list[FetchedTransaction | None]:
        """Fetch transaction bodies in bounded concurrent batches.

        Results keep input order. Failed or missing transactions are None.

        Args:
            signatures: Transaction signatures.
            stage_timeline: Optional mutable diagnostics timeline.

        Returns:
            list[FetchedTransaction | None]: Fetched bodies aligned with `signatures`.

        Raises:
            RuntimeError: This method does not raise runtime errors for fetch failures.
        """

        results: list[FetchedTransaction | None] = []
        with ThreadPoolExecutor(max_workers=self._batch_size) as executor:
            for batch_start in range(0, len(signatures), self._batch_size):
                if batch_start > 0 and self._batch_pause_seconds > 0:
                    time.sleep(self._batch_pause_seconds)
                batch_signatures = signatures[batch_start : batch_start + self._batch_size]
                results.extend(executor.map(self._adapter_fetch_transaction_or_none, batch_signatures))

        missing_count = sum(1 for result in results if result is None)
        self._adapter_record_stage_event(
            stage_timeline,
            stage="transactions",
            status="completed",
            details={"requested": len(signatures), "missing": missing_count},
        )
        return results

    def rpc_get_transaction(self, signature: str) -> FetchedTransaction | None:
        """Fetch one transaction body.

        Args:
            signature: Transaction signature.

        Returns:
            FetchedTransaction | None: Transaction body, or None when the node has none.

        Raises:
            LedgerRpcError: Raised when the call fails after retries.
        """

        transaction_payload = self.rpc_call(
            "getTransaction",
            [
                signature,
                {"encoding": "json", "maxSupportedTransactionVersion": 0, "commitment": self._commitment},
            ],
        )
        if transaction_payload is None:
            return None
        if not isinstance(transaction_payload, dict):
            raise LedgerRpcResponseError(f"getTransaction returned unexpected payload for {signature}")

        meta_payload = transaction_payload.get("meta") or {}
        log_messages = meta_payload.get("logMessages") or []
        return FetchedTransaction(
            signature=signature,
            slot=transaction_payload.get("slot"),
            block_time=transaction_payload.get("blockTime"),
            log_messages=tuple(str(log_message) for log_message in log_messages),
        )

    def _adapter_fetch_transaction_or_none(self, signature: str) -> FetchedTransaction | None:
        """Fetch one transaction, converting failures into missing data."""

        try:
            return self.rpc_get_transaction(signature)
        except LedgerRpcError as error:
            logger.warning("transaction fetch failed signature=%s reason=%s", signature, error)
            return None

    def _rpc_post(self, request_payload: dict[str, object]) -> Any:
        """Send one JSON-RPC request and map failures to typed errors.

        Args:
            request_payload: JSON-RPC request object.

        Returns:
            Any: Decoded `result` member.

        Raises:
            LedgerRpcError: Raised for transport, HTTP, rate-limit and JSON-RPC failures.
        """

        method = request_payload.get("method")
        try:
            response = self._client.post(self._rpc_url, json=request_payload)
        except httpx.TimeoutException as error:
            raise LedgerRpcTimeoutError(f"{method} request timed out") from error
        except httpx.TransportError as error:
            raise LedgerRpcConnectionError(f"{method} transport request failed") from error

        if response.status_code == 429:
            raise LedgerRpcRateLimitedError(
                f"{method} rate limited by HTTP 429",
                error_code=429,
                retry_after_seconds=self._adapter_parse_retry_after(response.headers.get("Retry-After")),
            )
        if response.status_code >= 400:
            raise LedgerRpcConnectionError(
                f"{method} upstream returned HTTP {response.status_code}",
                error_code=response.status_code,
            )

        try:
            response_body = response.json()
        except ValueError as error:
            raise LedgerRpcResponseError(f"{method} response is not valid JSON") from error
        if not isinstance(response_body, dict):
            raise LedgerRpcResponseError(f"{method} response is not a JSON-RPC object")

        error_payload = response_body.get("error")
        if error_payload:
            error_code = error_payload.get("code") if isinstance(error_payload, dict) else None
            error_message = str(error_payload.get("message", "")) if isinstance(error_payload, dict) else str(error_payload)
            if error_code in self._RATE_LIMIT_ERROR_CODES or "429" in error_message:
                raise LedgerRpcRateLimitedError(f"{method} rate limited: {error_message}", error_code=429)
            raise LedgerRpcResponseError(f"{method} failed: code={error_code}, message={error_message}", error_code)
        return response_body.get("result")

    def _adapter_parse_signature_entry(self, entry: object) -> SignatureInfo:
        """Parse one `getSignaturesForAddress` entry.

        Args:
            entry: Raw listing entry.

        Returns:
            SignatureInfo: Parsed signature entry.

        Raises:
            LedgerRpcResponseError: Raised when the entry carries no signature.
        """

        if not isinstance(entry, dict) or not entry.get("signature"):
            raise LedgerRpcResponseError("signature listing entry is missing its signature")
        return SignatureInfo(
            signature=str(entry["signature"]),
            slot=entry.get("slot"),
            block_time=entry.get("blockTime"),
            failed=entry.get("err") is not None,
        )

    def _adapter_parse_retry_after(self, header_value: str | None) -> float | None:
        """Parse a numeric `Retry-After` header into seconds."""

        if header_value is None:
            return None
        try:
            return max(0.0, float(header_value))
        except ValueError:
            return None

    def _adapter_record_stage_event(
        self,
        stage_timeline: list[dict[str, object]] | None,
        stage: str,
        status: str,
        details: dict[str, object] | None = None,
    ) -> None:
        """Append one structured stage event when a timeline is being collected."""

        if stage_timeline is not None:
            stage_timeline.append(domain_build_stage_event(stage=stage, status=status, details=details))


__all__ = ["SolanaRpcClient"]
