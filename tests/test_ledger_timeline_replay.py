"""Regression tests for chronological PnL timeline replay and summary assembly."""

from __future__ import annotations

from decimal import Decimal

import pytest

from perp_ledger.domain import TradeSide
from perp_ledger.instruments import InstrumentRegistry
from perp_ledger.ledger import (
    LedgerEventOrigin,
    PerpTimelineReplayService,
    PositionLedger,
    ReplayOptions,
    ledger_order_transactions,
)
from perp_ledger.mapping import DecodedTransaction, FillEvent


class _FixedMarketNames:
    """Test double mapping most instruments onto one colliding market name."""

    def instrument_market_name(self, instr_id: int) -> str:
        """Return colliding market names.

        Args:
            instr_id: Instrument identifier.

        Returns:
            str: `global` for instrument 9, otherwise `PERP`.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return "global" if instr_id == 9 else "PERP"


def _tx(signature: str, timestamp: int, *records: dict[str, object], slot: int | None = None) -> DecodedTransaction:
    """Build one decoded transaction.

    Args:
        signature: Transaction signature.
        timestamp: Block time.
        *records: Decoded records.
        slot: Optional slot.

    Returns:
        DecodedTransaction: Test transaction.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return DecodedTransaction(signature=signature, timestamp=timestamp, records=tuple(records), slot=slot)


def _two_instrument_history() -> list[DecodedTransaction]:
    """Return an oldest-first history touching two instruments.

    Returns:
        list[DecodedTransaction]: Synthetic wallet history.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return [
        _tx("s1", 100, {"tag": 19, "instrId": 0, "side": 0, "perps": 10, "price": 100}),
        _tx(
            "s2",
            200,
            {"tag": 15, "instrId": 0, "fee": 1},
            {"tag": 19, "instrId": 1, "side": 0, "perps": 2, "price": 50},
        ),
        _tx("s3", 300, {"tag": 19, "instrId": 0, "side": 1, "perps": 15, "price": 110}),
        _tx(
            "s4",
            400,
            {"tag": 24, "instrId": 0, "funding": "0.5"},
            {"tag": 27, "instrId": 1, "socLoss": "0.2"},
        ),
        _tx("s5", 500, {"tag": 19, "instrId": 1, "side": 1, "perps": 2, "price": 40}),
    ]


def test_ledger_replay_conserves_cumulative_pnl_across_instruments() -> None:
    """Match the global total to the sum of per-entry contributions.

    Returns:
        None: Assertions validate conservation of cumulative PnL.

    Raises:
        AssertionError: Raised when the running total diverges from its contributions.
    """

    replay_service = PerpTimelineReplayService(InstrumentRegistry())

    result = replay_service.ledger_replay(_two_instrument_history())

    assert result.total_events == 7
    assert result.total_realized_pnl == Decimal("79.3")
    assert sum((event.timeline_pnl_contribution() for event in result.timeline), Decimal("0")) == Decimal("79.3")
    assert result.timeline[-1].cumulative_realized_pnl == result.total_realized_pnl

    sol_summary = result.summary["SOL/USDC"]
    assert sol_summary.current_position == Decimal("-5")
    assert sol_summary.avg_entry_price == Decimal("110")
    assert sol_summary.realized_pnl == Decimal("100")
    assert sol_summary.total_fees == Decimal("1")
    assert sol_summary.total_funding == Decimal("0.5")
    assert result.summary["Instrument-1"].total_soc_loss == Decimal("0.2")
    assert result.summary["Instrument-1"].current_position == Decimal("0")


def test_ledger_replay_summary_is_independent_of_filter_and_limit() -> None:
    """Keep the summary unchanged while filter and limit shape only the timeline.

    Returns:
        None: Assertions validate filter/limit independence.

    Raises:
        AssertionError: Raised when filter or limit leaks into the summary.
    """

    replay_service = PerpTimelineReplayService(InstrumentRegistry())

    unfiltered = replay_service.ledger_replay(_two_instrument_history())
    filtered = replay_service.ledger_replay(
        _two_instrument_history(),
        ReplayOptions(instrument_filter=1, limit=2),
    )

    assert filtered.summary == unfiltered.summary
    assert filtered.total_realized_pnl == unfiltered.total_realized_pnl
    assert [event.signature for event in filtered.timeline] == ["s4", "s5"]
    assert all(event.instr_id == 1 for event in filtered.timeline)


def test_ledger_replay_reversed_input_produces_identical_output() -> None:
    """Produce identical results when the same history arrives newest-first.

    Returns:
        None: Assertions validate idempotent chronological ordering.

    Raises:
        AssertionError: Raised when input order changes the output.
    """

    replay_service = PerpTimelineReplayService(InstrumentRegistry())
    tied_history = [
        _tx("a", 100, {"tag": 19, "instrId": 0, "side": 0, "perps": 1, "price": 100}),
        _tx("b", 100, {"tag": 19, "instrId": 0, "side": 0, "perps": 1, "price": 120}),
        _tx("c", 100, {"tag": 19, "instrId": 0, "side": 1, "perps": 1, "price": 130}),
    ]

    oldest_first = replay_service.ledger_replay(_two_instrument_history())
    reversed_distinct = replay_service.ledger_replay(list(reversed(_two_instrument_history())))
    tied_oldest_first = replay_service.ledger_replay(tied_history)
    tied_newest_first = replay_service.ledger_replay(
        list(reversed(tied_history)),
        ReplayOptions(newest_first=True),
    )

    assert reversed_distinct.timeline == oldest_first.timeline
    assert reversed_distinct.summary == oldest_first.summary
    assert tied_newest_first.timeline == tied_oldest_first.timeline
    assert tied_oldest_first.total_realized_pnl == Decimal("20")


def test_ledger_out_of_chronological_order_application_diverges() -> None:
    """Diverge when the same fills are applied in a different order.

    Returns:
        None: Assertions validate order dependence of realized PnL.

    Raises:
        AssertionError: Raised when reordered fills produce the same PnL.
    """

    origin = LedgerEventOrigin(signature="sig", timestamp=1)
    fills = [
        FillEvent(0, 19, 1, TradeSide.BUY, Decimal("10"), Decimal("100")),
        FillEvent(0, 19, 2, TradeSide.SELL, Decimal("10"), Decimal("110")),
        FillEvent(0, 19, 3, TradeSide.BUY, Decimal("10"), Decimal("120")),
    ]

    chronological_ledger = PositionLedger(InstrumentRegistry())
    reordered_ledger = PositionLedger(InstrumentRegistry())
    chronological_entries = [chronological_ledger.ledger_apply(fill, origin) for fill in fills]
    reordered_entries = [reordered_ledger.ledger_apply(fill, origin) for fill in reversed(fills)]

    assert chronological_ledger.global_cumulative_pnl == Decimal("100")
    assert reordered_ledger.global_cumulative_pnl == Decimal("-100")
    assert sum(entry.timeline_pnl_contribution() for entry in reordered_entries) == Decimal("-100")
    assert chronological_entries[-1].position_size == Decimal("10")


def test_ledger_order_transactions_breaks_timestamp_ties_by_slot() -> None:
    """Sort by timestamp then slot, treating missing slots as zero.

    Returns:
        None: Assertions validate processing order.

    Raises:
        AssertionError: Raised when tie-breaking is wrong.
    """

    ordered = ledger_order_transactions(
        [
            _tx("late-slot", 100, {"tag": 21, "instrId": 0}, slot=9),
            _tx("later", 200, {"tag": 21, "instrId": 0}, slot=1),
            _tx("early-slot", 100, {"tag": 21, "instrId": 0}, slot=3),
            _tx("no-slot", 100, {"tag": 21, "instrId": 0}),
        ]
    )

    assert [transaction.signature for transaction in ordered] == ["no-slot", "early-slot", "late-slot", "later"]


def test_ledger_replay_skips_malformed_transactions_and_counts_unattributed_records() -> None:
    """Skip whole transactions on decode errors and count unattributable records.

    Returns:
        None: Assertions validate skip diagnostics.

    Raises:
        AssertionError: Raised when partial transactions reach the ledger.
    """

    replay_service = PerpTimelineReplayService(InstrumentRegistry())

    result = replay_service.ledger_replay(
        [
            _tx(
                "bad",
                100,
                {"tag": 24, "instrId": 0, "funding": 5},
                {"tag": 19, "instrId": 0, "perps": "ten", "price": 1},
            ),
            _tx(
                "ambiguous",
                200,
                {"tag": 24, "instrId": 0, "funding": 1},
                {"tag": 24, "instrId": 1, "funding": 2},
                {"tag": 15, "fee": 1},
            ),
            _tx("empty-fill", 300, {"tag": 19, "instrId": 5, "side": 0, "perps": 0, "price": 100}),
        ]
    )

    assert result.skipped_transaction_count == 1
    assert result.unattributed_record_count == 1
    assert result.total_realized_pnl == Decimal("3")
    assert [event.signature for event in result.timeline] == ["ambiguous", "ambiguous"]
    assert "Instrument-5" not in result.summary


def test_ledger_replay_suffixes_colliding_summary_names() -> None:
    """Keep one summary entry per instrument when market names collide.

    Returns:
        None: Assertions validate summary key de-duplication.

    Raises:
        AssertionError: Raised when an instrument summary is overwritten.
    """

    replay_service = PerpTimelineReplayService(_FixedMarketNames())

    result = replay_service.ledger_replay(
        [
            _tx("f1", 100, {"tag": 24, "instrId": 1, "funding": 1}),
            _tx("f2", 200, {"tag": 24, "instrId": 2, "funding": 1}),
            _tx("f3", 300, {"tag": 24, "instrId": 9, "funding": 1}),
        ]
    )

    assert sorted(result.summary) == ["PERP", "PERP #2", "global #9"]
    assert result.summary["PERP #2"].instr_id == 2


def test_ledger_replay_rejects_invalid_limit() -> None:
    """Raise ValueError for limits below one.

    Returns:
        None: Assertions validate option validation.

    Raises:
        AssertionError: Raised when an invalid limit is accepted.
    """

    replay_service = PerpTimelineReplayService(InstrumentRegistry())

    with pytest.raises(ValueError, match="limit"):
        replay_service.ledger_replay([], ReplayOptions(limit=0))
    with pytest.raises(ValueError, match="limit"):
        replay_service.ledger_replay([], ReplayOptions(limit=True))
