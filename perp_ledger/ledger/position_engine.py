"""Per-instrument perpetual position ledger state machine."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

from perp_ledger.domain import LIQUIDATION_ORDER_TYPES, TradeSide, domain_order_type_label
from perp_ledger.instruments import MarketNamePort
from perp_ledger.mapping import (
    ClassifiedEvent,
    FeeEvent,
    FillEvent,
    FundingEvent,
    SocializedLossEvent,
)

from .interfaces import InstrumentSummary, LedgerEventOrigin, TimelineEvent, TimelineEventKind

LEDGER_DUST_EPSILON: Final[Decimal] = Decimal("1e-10")
LEDGER_OUTPUT_QUANTUM: Final[Decimal] = Decimal("1e-8")

_ZERO: Final[Decimal] = Decimal("0")


def ledger_quantize(value: Decimal) -> Decimal:
    """Quantize one emitted value to 8 decimal places (half-up).

    Args:
        value: Full-precision ledger value.

    Returns:
        Decimal: Display-precision value.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return value.quantize(LEDGER_OUTPUT_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass
class InstrumentPositionState:
    """Mutable ledger state for one instrument within one replay run.

    Attributes:
        instr_id: Instrument identifier.
        size: Signed net position (positive long, negative short).
        avg_entry_price: Volume-weighted entry price, zero exactly when flat.
        total_fees: Accumulated fees paid.
        total_funding: Accumulated funding received (negative when paid).
        total_soc_loss: Accumulated socialized losses.
        realized_pnl: Accumulated realized fill PnL.
    """

    instr_id: int
    size: Decimal = _ZERO
    avg_entry_price: Decimal = _ZERO
    total_fees: Decimal = _ZERO
    total_funding: Decimal = _ZERO
    total_soc_loss: Decimal = _ZERO
    realized_pnl: Decimal = _ZERO

    def state_apply_fill(self, side: TradeSide, quantity: Decimal, price: Decimal) -> Decimal:
        """Apply one fill and return its realized PnL.

        Args:
            side: Fill side.
            quantity: Positive fill quantity.
            price: Fill price.

        Returns:
            Decimal: Realized PnL of the closed portion (zero when extending).

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        is_buy = side is TradeSide.BUY
        is_closing = (self.size > 0 and not is_buy) or (self.size < 0 and is_buy)

        if not is_closing:
            current_abs_size = abs(self.size)
            new_abs_size = current_abs_size + quantity
            self.avg_entry_price = ((current_abs_size * self.avg_entry_price) + (quantity * price)) / new_abs_size
            self.size = self.size + quantity if is_buy else self.size - quantity
            return _ZERO

        closed_quantity = min(quantity, abs(self.size))
        if self.size > 0:
            realized_pnl = (price - self.avg_entry_price) * closed_quantity
        else:
            realized_pnl = (self.avg_entry_price - price) * closed_quantity
        self.realized_pnl += realized_pnl

        remaining_quantity = quantity - closed_quantity
        if remaining_quantity > 0:
            # Flip: the remainder opens a fresh position at the fill price.
            self.size = remaining_quantity if is_buy else -remaining_quantity
            self.avg_entry_price = price
        else:
            self.size = self.size + quantity if is_buy else self.size - quantity
            if abs(self.size) < LEDGER_DUST_EPSILON:
                self.size = _ZERO
                self.avg_entry_price = _ZERO
        return realized_pnl


class PositionLedger:
    """Sequential fold of classified events into per-instrument position states.

    One ledger instance belongs to exactly one replay run; it is not safe to
    share across concurrent replays.
    """

    def __init__(self, market_names: MarketNamePort):
        """Initialize ledger dependencies.

        Args:
            market_names: Market-name resolver used for emitted entries.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when the market-name resolver is missing.
        """

        if market_names is None:
            raise ValueError("market_names must not be None")
        self._market_names = market_names
        self._states: dict[int, InstrumentPositionState] = {}
        self._global_cumulative_pnl = _ZERO

    @property
    def global_cumulative_pnl(self) -> Decimal:
        """Return the full-precision running global PnL."""

        return self._global_cumulative_pnl

    def ledger_states(self) -> tuple[InstrumentPositionState, ...]:
        """Return instrument states in creation order."""

        return tuple(self._states.values())

    def ledger_market_name(self, instr_id: int) -> str:
        """Resolve the market display name of one instrument."""

        return self._market_names.instrument_market_name(instr_id)

    def ledger_apply(self, event: ClassifiedEvent, origin: LedgerEventOrigin) -> TimelineEvent | None:
        """Apply one classified event and emit its timeline entry.

        Fills with zero quantity or zero price are discarded without creating
        state. Order lifecycle and unknown events never touch state.

        Args:
            event: Classified event variant.
            origin: Originating transaction context.

        Returns:
            TimelineEvent | None: Emitted entry, or None when the event is not a
            ledger event.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        if isinstance(event, FillEvent):
            return self._ledger_apply_fill(event, origin)
        if isinstance(event, FundingEvent):
            state = self._ledger_state(event.instr_id)
            state.total_funding += event.amount
            self._global_cumulative_pnl += event.amount
            return self._ledger_build_entry(
                TimelineEventKind.FUNDING,
                state,
                origin,
                funding_amount=ledger_quantize(event.amount),
                cumulative_funding=ledger_quantize(state.total_funding),
            )
        if isinstance(event, FeeEvent):
            state = self._ledger_state(event.instr_id)
            state.total_fees += event.amount
            self._global_cumulative_pnl -= event.amount
            return self._ledger_build_entry(
                TimelineEventKind.FEE,
                state,
                origin,
                fee_amount=ledger_quantize(event.amount),
                cumulative_fees=ledger_quantize(state.total_fees),
            )
        if isinstance(event, SocializedLossEvent):
            state = self._ledger_state(event.instr_id)
            state.total_soc_loss += event.amount
            self._global_cumulative_pnl -= event.amount
            return self._ledger_build_entry(
                TimelineEventKind.SOCIALIZED_LOSS,
                state,
                origin,
                loss_amount=ledger_quantize(event.amount),
                cumulative_soc_loss=ledger_quantize(state.total_soc_loss),
            )
        return None

    def ledger_build_summary(self, state: InstrumentPositionState, market: str) -> InstrumentSummary:
        """Render one final instrument state at display precision.

        Args:
            state: Final instrument state.
            market: Summary key assigned to the instrument.

        Returns:
            InstrumentSummary: Quantized instrument summary.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        return InstrumentSummary(
            instr_id=state.instr_id,
            market=market,
            current_position=ledger_quantize(state.size),
            avg_entry_price=ledger_quantize(state.avg_entry_price),
            total_fees=ledger_quantize(state.total_fees),
            total_funding=ledger_quantize(state.total_funding),
            total_soc_loss=ledger_quantize(state.total_soc_loss),
            realized_pnl=ledger_quantize(state.realized_pnl),
        )

    def _ledger_apply_fill(self, event: FillEvent, origin: LedgerEventOrigin) -> TimelineEvent | None:
        """Apply one fill event to its instrument state."""

        if event.quantity == 0:
            return None

        state = self._ledger_state(event.instr_id)
        realized_pnl = state.state_apply_fill(event.side, event.quantity, event.price)
        self._global_cumulative_pnl += realized_pnl

        kind = TimelineEventKind.TRADE
        if event.order_type is not None and event.order_type in LIQUIDATION_ORDER_TYPES:
            kind = TimelineEventKind.LIQUIDATION
        return self._ledger_build_entry(
            kind,
            state,
            origin,
            side=event.side.value,
            quantity=ledger_quantize(event.quantity),
            price=ledger_quantize(event.price),
            value=ledger_quantize(event.quantity * event.price),
            realized_pnl=ledger_quantize(realized_pnl),
            position_size=ledger_quantize(state.size),
            avg_entry_price=ledger_quantize(state.avg_entry_price),
            order_type=domain_order_type_label(event.order_type),
        )

    def _ledger_state(self, instr_id: int) -> InstrumentPositionState:
        """Return the state of one instrument, creating it on first use."""

        state = self._states.get(instr_id)
        if state is None:
            state = InstrumentPositionState(instr_id=instr_id)
            self._states[instr_id] = state
        return state

    def _ledger_build_entry(
        self,
        kind: TimelineEventKind,
        state: InstrumentPositionState,
        origin: LedgerEventOrigin,
        **payload: object,
    ) -> TimelineEvent:
        """Build one timeline entry carrying the current global cumulative PnL."""

        return TimelineEvent(
            timestamp=origin.timestamp,
            kind=kind,
            instr_id=state.instr_id,
            market=self.ledger_market_name(state.instr_id),
            signature=origin.signature,
            cumulative_realized_pnl=ledger_quantize(self._global_cumulative_pnl),
            **payload,
        )


__all__ = [
    "InstrumentPositionState",
    "LEDGER_DUST_EPSILON",
    "LEDGER_OUTPUT_QUANTUM",
    "PositionLedger",
    "ledger_quantize",
]
