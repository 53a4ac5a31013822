"""Typed interfaces for adapter-layer responsibilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from perp_ledger.domain import HealthStatus
from perp_ledger.mapping import DecodedTransaction


@dataclass(frozen=True)
class SignatureInfo:
    """One entry of a wallet signature listing.

    Attributes:
        signature: Transaction signature.
        slot: Ledger slot of the transaction.
        block_time: Block time in unix seconds, when known.
        failed: Whether the transaction failed on chain.
    """

    signature: str
    slot: int | None
    block_time: int | None
    failed: bool = False


@dataclass(frozen=True)
class FetchedTransaction:
    """Transaction body fields consumed by log decoding.

    Attributes:
        signature: Transaction signature.
        slot: Ledger slot.
        block_time: Block time in unix seconds, when known.
        log_messages: Program log lines in emission order.
    """

    signature: str
    slot: int | None
    block_time: int | None
    log_messages: tuple[str, ...]


@dataclass(frozen=True)
class TransactionHistoryBatch:
    """Fully collected wallet history handed to the ledger.

    Attributes:
        transactions: Decoded transactions in transport order.
        newest_first: Whether `transactions` is ordered newest-first.
        stage_timeline: Structured stage timeline entries captured while fetching.
    """

    transactions: tuple[DecodedTransaction, ...]
    newest_first: bool
    stage_timeline: list[dict[str, Any]] = field(default_factory=list)


class LogDecoderPort(Protocol):
    """Port definition for program log decoding."""

    def decoder_decode_logs(self, log_messages: Sequence[str]) -> list[dict[str, object]]:
        """Decode raw program log lines of one transaction into records.

        Args:
            log_messages: Program log lines in emission order.

        Returns:
            list[dict[str, object]]: Decoded records carrying a numeric `tag`.

        Raises:
            LogDecodeError: Raised when the log lines cannot be decoded.
        """


class TransactionHistoryPort(Protocol):
    """Port definition for wallet transaction-history retrieval."""

    def history_source_name(self) -> str:
        """Return history source identifier for diagnostics.

        Returns:
            str: Human-readable source identifier.

        Raises:
            RuntimeError: Raised when source metadata is unavailable.
        """

    def history_fetch_transactions(self, wallet: str, limit: int) -> TransactionHistoryBatch:
        """Fetch and decode the most recent transactions of one wallet.

        Args:
            wallet: Wallet address.
            limit: Maximum number of most recent transactions.

        Returns:
            TransactionHistoryBatch: Fully collected history.

        Raises:
            AccountNotFoundError: Raised when no trading account exists for the wallet.
        """


class AccountResolverPort(Protocol):
    """Port definition for wallet to trading-account resolution."""

    def account_resolve(self, wallet: str) -> str:
        """Return the trading account address whose history is replayed.

        Args:
            wallet: Wallet address.

        Returns:
            str: Trading account address.

        Raises:
            AccountNotFoundError: Raised when no account can be identified.
        """


class LedgerNodeHealthPort(Protocol):
    """Port definition for ledger-node health checks."""

    def node_connection_label(self) -> str:
        """Return the target node endpoint for diagnostics.

        Returns:
            str: Endpoint label.

        Raises:
            RuntimeError: Raised if label rendering fails.
        """

    def node_check_health(self) -> HealthStatus:
        """Verify ledger-node reachability.

        Returns:
            HealthStatus: Health payload with status and diagnostic detail.

        Raises:
            ConnectionError: Raised when the node is unreachable or unhealthy.
        """
