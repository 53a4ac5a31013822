"""Chronological PnL timeline replay over decoded transactions."""
# pylint: disable=too-few-public-methods

from __future__ import annotations

import logging
from typing import Final, Iterable

from perp_ledger.instruments import MarketNamePort
from perp_ledger.mapping import (
    ClassifiedEvent,
    DecodedTransaction,
    PerpLogClassifier,
    RecordDecodeError,
    SkippedRecord,
)

from .interfaces import InstrumentSummary, LedgerEventOrigin, ReplayOptions, ReplayResult, TimelineEvent
from .position_engine import PositionLedger, ledger_quantize

logger = logging.getLogger(__name__)

GLOBAL_SUMMARY_KEY: Final[str] = "global"


def ledger_order_transactions(
    transactions: Iterable[DecodedTransaction],
    newest_first: bool = False,
) -> list[DecodedTransaction]:
    """Put transactions into committed oldest-to-newest processing order.

    Newest-first input is reversed before a stable sort by `(timestamp, slot)`;
    equal keys keep their (reversed) input order. Transactions without a slot
    sort as slot 0.

    Args:
        transactions: Decoded transactions in transport order.
        newest_first: Whether the transport delivered newest-first.

    Returns:
        list[DecodedTransaction]: Transactions in processing order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    ordered_transactions = list(transactions)
    if newest_first:
        ordered_transactions.reverse()
    return sorted(
        ordered_transactions,
        key=lambda transaction: (transaction.timestamp, transaction.slot if transaction.slot is not None else 0),
    )


class PerpTimelineReplayService:
    """Replay decoded transactions into a PnL timeline and per-instrument summary."""

    def __init__(self, market_names: MarketNamePort, classifier: PerpLogClassifier | None = None):
        """Initialize replay dependencies.

        Args:
            market_names: Market-name resolver.
            classifier: Optional record classifier with custom scale profile.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when the market-name resolver is missing.
        """

        if market_names is None:
            raise ValueError("market_names must not be None")
        self._market_names = market_names
        self._classifier = classifier or PerpLogClassifier()

    def ledger_replay(
        self,
        transactions: Iterable[DecodedTransaction],
        options: ReplayOptions | None = None,
    ) -> ReplayResult:
        """Replay every transaction through a private position ledger.

        Args:
            transactions: Decoded transactions in transport order.
            options: Optional filter, limit and input-order options.

        Returns:
            ReplayResult: Filtered and limited timeline plus the unfiltered summary.

        Raises:
            ValueError: Raised when options are invalid.
        """

        resolved_options = options or ReplayOptions()
        resolved_options.options_validate()

        ledger = PositionLedger(self._market_names)
        events: list[TimelineEvent] = []
        skipped_transaction_count = 0
        unattributed_record_count = 0

        for transaction in ledger_order_transactions(transactions, resolved_options.newest_first):
            try:
                classified_records = self._ledger_classify_transaction(transaction)
            except RecordDecodeError as error:
                skipped_transaction_count += 1
                logger.warning("skipping transaction signature=%s reason=%s", transaction.signature, error)
                continue

            origin = LedgerEventOrigin(signature=transaction.signature, timestamp=transaction.timestamp)
            for classified_record in classified_records:
                if isinstance(classified_record, SkippedRecord):
                    unattributed_record_count += 1
                    continue
                timeline_event = ledger.ledger_apply(classified_record, origin)
                if timeline_event is not None:
                    events.append(timeline_event)

        if resolved_options.instrument_filter is not None:
            events = [event for event in events if event.instr_id == resolved_options.instrument_filter]
        events.sort(key=lambda event: event.timestamp)
        timeline = tuple(events[-resolved_options.limit :])

        logger.info(
            "replay completed timeline_events=%s instruments=%s skipped_transactions=%s unattributed_records=%s",
            len(timeline),
            len(ledger.ledger_states()),
            skipped_transaction_count,
            unattributed_record_count,
        )
        return ReplayResult(
            timeline=timeline,
            summary=self._ledger_build_summary(ledger),
            total_realized_pnl=ledger_quantize(ledger.global_cumulative_pnl),
            skipped_transaction_count=skipped_transaction_count,
            unattributed_record_count=unattributed_record_count,
        )

    def _ledger_classify_transaction(
        self,
        transaction: DecodedTransaction,
    ) -> list[ClassifiedEvent | SkippedRecord]:
        """Classify every record of one transaction before any is applied."""

        context = self._classifier.mapping_build_resolution_context(transaction.records)
        return [self._classifier.mapping_classify_record(record, context) for record in transaction.records]

    def _ledger_build_summary(self, ledger: PositionLedger) -> dict[str, InstrumentSummary]:
        """Key final instrument states by market name, suffixing colliding names."""

        summary: dict[str, InstrumentSummary] = {}
        for state in ledger.ledger_states():
            market = ledger.ledger_market_name(state.instr_id)
            if market in summary or market == GLOBAL_SUMMARY_KEY:
                market = f"{market} #{state.instr_id}"
            summary[market] = ledger.ledger_build_summary(state, market)
        return summary


__all__ = [
    "GLOBAL_SUMMARY_KEY",
    "PerpTimelineReplayService",
    "ledger_order_transactions",
]
