"""Wallet-level orchestration of history retrieval, replay and enrichment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from perp_ledger.adapters import AccountNotFoundError, TransactionHistoryBatch, TransactionHistoryPort
from perp_ledger.instruments import MarketNamePort
from perp_ledger.mapping import PerpLogClassifier, mapping_enrich_transaction_reports

from .interfaces import OpenPositionSnapshot, PositionSnapshotPort, ReplayOptions, ReplayResult
from .reconstruction import ledger_select_open_positions
from .timeline_service import PerpTimelineReplayService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalletTimelineResult:
    """Replay output for one wallet.

    Attributes:
        wallet: Wallet address.
        replay: Replay result; empty when no account exists.
        stage_timeline: Structured history-fetch diagnostics.
    """

    wallet: str
    replay: ReplayResult
    stage_timeline: list[dict[str, Any]] = field(default_factory=list)


class WalletPnlTimelineService:
    """Serve PnL timelines, enriched trade logs and open positions per wallet."""

    def __init__(
        self,
        history_source: TransactionHistoryPort,
        market_names: MarketNamePort,
        classifier: PerpLogClassifier | None = None,
        snapshot_source: PositionSnapshotPort | None = None,
        history_limit: int = 10000,
    ):
        """Initialize wallet service dependencies.

        Args:
            history_source: Wallet transaction-history source.
            market_names: Market-name resolver.
            classifier: Optional record classifier with custom scale profile.
            snapshot_source: Optional live open-position reader.
            history_limit: Maximum transactions replayed per timeline request.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies or limits are invalid.
        """

        if history_source is None:
            raise ValueError("history_source must not be None")
        if market_names is None:
            raise ValueError("market_names must not be None")
        if history_limit < 1:
            raise ValueError("history_limit must be >= 1")

        self._history_source = history_source
        self._market_names = market_names
        self._classifier = classifier or PerpLogClassifier()
        self._snapshot_source = snapshot_source
        self._history_limit = history_limit
        self._replay_service = PerpTimelineReplayService(market_names=market_names, classifier=self._classifier)

    def ledger_build_wallet_timeline(self, wallet: str, options: ReplayOptions | None = None) -> WalletTimelineResult:
        """Fetch wallet history and replay it into a PnL timeline.

        The history source's ordering flag overrides `options.newest_first`.

        Args:
            wallet: Wallet address.
            options: Optional filter and limit options.

        Returns:
            WalletTimelineResult: Replay result; empty when no account exists.

        Raises:
            ValueError: Raised when options are invalid.
        """

        resolved_options = options or ReplayOptions()
        resolved_options.options_validate()

        history_batch = self._ledger_fetch_history(wallet, self._history_limit)
        if history_batch is None:
            return WalletTimelineResult(wallet=wallet, replay=ReplayResult(timeline=()))

        replay_result = self._replay_service.ledger_replay(
            history_batch.transactions,
            replace(resolved_options, newest_first=history_batch.newest_first),
        )
        return WalletTimelineResult(wallet=wallet, replay=replay_result, stage_timeline=history_batch.stage_timeline)

    def ledger_list_wallet_logs(self, wallet: str, limit: int) -> list[dict[str, object]]:
        """Return enriched decoded logs per transaction in transport order.

        Args:
            wallet: Wallet address.
            limit: Maximum number of most recent transactions.

        Returns:
            list[dict[str, object]]: `{signature, timestamp, logs}` entries; empty
            when no account exists.

        Raises:
            ValueError: Raised when limit is below one.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")

        history_batch = self._ledger_fetch_history(wallet, limit)
        if history_batch is None:
            return []

        wallet_logs: list[dict[str, object]] = []
        for transaction in history_batch.transactions:
            enriched_logs = mapping_enrich_transaction_reports(
                transaction.records,
                self._market_names,
                self._classifier.scale_profile,
            )
            wallet_logs.append(
                {
                    "signature": transaction.signature,
                    "timestamp": transaction.timestamp,
                    "logs": enriched_logs,
                }
            )
        return wallet_logs

    def ledger_list_open_positions(self, wallet: str) -> list[OpenPositionSnapshot]:
        """Return open positions from the snapshot source or history reconstruction.

        Args:
            wallet: Wallet address.

        Returns:
            list[OpenPositionSnapshot]: Open positions; empty when no account exists.

        Raises:
            LogDecodeError: Raised when the history source cannot decode a fetched transaction.
        """

        def _load_history() -> tuple:
            history_batch = self._ledger_fetch_history(wallet, self._history_limit)
            return () if history_batch is None else history_batch.transactions

        return ledger_select_open_positions(
            wallet=wallet,
            primary_source=self._snapshot_source,
            history_loader=_load_history,
            market_names=self._market_names,
            scale_profile=self._classifier.scale_profile,
        )

    def _ledger_fetch_history(self, wallet: str, limit: int) -> TransactionHistoryBatch | None:
        """Fetch wallet history, mapping a missing account to None."""

        try:
            return self._history_source.history_fetch_transactions(wallet, limit)
        except AccountNotFoundError as error:
            logger.info(
                "no trading account wallet=%s source=%s reason=%s",
                wallet,
                self._history_source.history_source_name(),
                error,
            )
            return None


__all__ = ["WalletPnlTimelineService", "WalletTimelineResult"]
