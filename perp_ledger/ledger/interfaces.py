"""Typed interfaces for ledger-layer replay computations."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Mapping, Protocol


class TimelineEventKind(str, Enum):
    """Kind of one emitted timeline entry."""

    TRADE = "trade"
    FUNDING = "funding"
    FEE = "fee"
    SOCIALIZED_LOSS = "socialized_loss"
    LIQUIDATION = "liquidation"


@dataclass(frozen=True)
class LedgerEventOrigin:
    """Transaction context attached to every event applied by the ledger.

    Attributes:
        signature: Originating transaction signature.
        timestamp: Block time in unix seconds.
    """

    signature: str
    timestamp: int


@dataclass(frozen=True)
class TimelineEvent:
    """Immutable enriched timeline entry emitted once per applied ledger event.

    Numeric values are quantized to 8 decimal places. Kind-specific fields are
    None on entries of other kinds.

    Attributes:
        timestamp: Block time in unix seconds.
        kind: Entry kind.
        instr_id: Instrument identifier.
        market: Market display name.
        signature: Originating transaction signature.
        cumulative_realized_pnl: Global cumulative PnL after this entry.
        side: Fill side label (trades and liquidations).
        quantity: Absolute fill quantity.
        price: Fill price.
        value: Fill notional (`quantity * price`).
        realized_pnl: Realized PnL of this fill.
        position_size: Signed position size after this fill.
        avg_entry_price: Average entry price after this fill.
        order_type: Order-type label of this fill.
        funding_amount: Funding cash flow.
        cumulative_funding: Instrument funding total after this entry.
        fee_amount: Fee amount paid.
        cumulative_fees: Instrument fee total after this entry.
        loss_amount: Socialized loss amount.
        cumulative_soc_loss: Instrument socialized-loss total after this entry.
    """

    timestamp: int
    kind: TimelineEventKind
    instr_id: int
    market: str
    signature: str
    cumulative_realized_pnl: Decimal
    side: str | None = None
    quantity: Decimal | None = None
    price: Decimal | None = None
    value: Decimal | None = None
    realized_pnl: Decimal | None = None
    position_size: Decimal | None = None
    avg_entry_price: Decimal | None = None
    order_type: str | None = None
    funding_amount: Decimal | None = None
    cumulative_funding: Decimal | None = None
    fee_amount: Decimal | None = None
    cumulative_fees: Decimal | None = None
    loss_amount: Decimal | None = None
    cumulative_soc_loss: Decimal | None = None

    def timeline_pnl_contribution(self) -> Decimal:
        """Return the signed contribution of this entry to the global cumulative PnL.

        Returns:
            Decimal: Realized PnL for fills, funding as received, fees and
            socialized losses negated.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        if self.kind in (TimelineEventKind.TRADE, TimelineEventKind.LIQUIDATION):
            return self.realized_pnl or Decimal("0")
        if self.kind is TimelineEventKind.FUNDING:
            return self.funding_amount or Decimal("0")
        if self.kind is TimelineEventKind.FEE:
            return -(self.fee_amount or Decimal("0"))
        return -(self.loss_amount or Decimal("0"))


@dataclass(frozen=True)
class InstrumentSummary:
    """Final per-instrument ledger state.

    Attributes:
        instr_id: Instrument identifier.
        market: Market display name used as the summary key.
        current_position: Signed net position size.
        avg_entry_price: Average entry price of the open position.
        total_fees: Accumulated fees.
        total_funding: Accumulated funding.
        total_soc_loss: Accumulated socialized losses.
        realized_pnl: Accumulated realized fill PnL.
    """

    instr_id: int
    market: str
    current_position: Decimal
    avg_entry_price: Decimal
    total_fees: Decimal
    total_funding: Decimal
    total_soc_loss: Decimal
    realized_pnl: Decimal


@dataclass(frozen=True)
class ReplayOptions:
    """Replay options passed through from callers.

    Attributes:
        instrument_filter: Optional instrument id retained in the timeline.
        limit: Maximum number of most recent timeline entries returned.
        newest_first: Whether input transactions arrive newest-first.
    """

    instrument_filter: int | None = None
    limit: int = 1000
    newest_first: bool = False

    def options_validate(self) -> None:
        """Validate option values.

        Returns:
            None: This method does not return a value.

        Raises:
            ValueError: Raised when limit is below one.
        """

        if isinstance(self.limit, bool) or self.limit < 1:
            raise ValueError("limit must be >= 1")


@dataclass(frozen=True)
class ReplayResult:
    """Replay output contract.

    Attributes:
        timeline: Chronological timeline after filter and limit.
        summary: Market name to per-instrument summary, independent of filter and limit.
        total_realized_pnl: Global cumulative PnL across all instruments.
        skipped_transaction_count: Transactions skipped on decode failures.
        unattributed_record_count: Records dropped without an instrument id.
    """

    timeline: tuple[TimelineEvent, ...]
    summary: Mapping[str, InstrumentSummary] = field(default_factory=dict)
    total_realized_pnl: Decimal = Decimal("0")
    skipped_transaction_count: int = 0
    unattributed_record_count: int = 0

    @property
    def total_events(self) -> int:
        """Return the number of timeline entries."""

        return len(self.timeline)


@dataclass(frozen=True)
class OpenPositionSnapshot:
    """Open perpetual position reported by a snapshot source or reconstruction.

    Attributes:
        instr_id: Instrument identifier.
        market: Market display name.
        size: Signed net position size in human units.
        side: `long` or `short`.
        is_reconstructed: Whether the position was derived from history.
    """

    instr_id: int
    market: str
    size: Decimal
    side: str
    is_reconstructed: bool = False


class PositionSnapshotPort(Protocol):
    """Port definition for a live open-position snapshot reader."""

    def snapshot_list_open_positions(self, wallet: str) -> list[OpenPositionSnapshot]:
        """Return currently open perpetual positions for one wallet.

        Args:
            wallet: Wallet address.

        Returns:
            list[OpenPositionSnapshot]: Open positions, empty when none are found.

        Raises:
            RuntimeError: Raised when the snapshot source is unavailable.
        """
