"""Typed interfaces for decoded-log classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Mapping, Union

from perp_ledger.domain import TradeSide

DecodedRecord = Mapping[str, object]


class RecordDecodeError(ValueError):
    """Raised when one decoded log record carries malformed field values."""


class LogEventKind(str, Enum):
    """Semantic kind of one decoded perpetual log record."""

    FILL = "fill"
    FUNDING = "funding"
    FEE = "fee"
    SOCIALIZED_LOSS = "socialized_loss"
    ORDER_PLACED = "order_placed"
    ORDER_CANCELLED = "order_cancelled"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DecodedTransaction:
    """Decoded log records of one on-chain transaction.

    Attributes:
        signature: Transaction signature.
        timestamp: Block time in unix seconds (0 when unknown).
        records: Decoded log records in program emission order.
        slot: Optional ledger slot used as a secondary ordering key.
    """

    signature: str
    timestamp: int
    records: tuple[DecodedRecord, ...]
    slot: int | None = None


@dataclass(frozen=True)
class TransactionResolutionContext:
    """Per-transaction lookup tables built from a pre-scan of all its records.

    Attributes:
        order_instrument_ids: Order id to instrument id association.
        order_types: Order id to order-type code association.
        instrument_ids: Every instrument id seen in the transaction.
        default_instr_id: First instrument id seen in the transaction.
    """

    order_instrument_ids: Mapping[int, int] = field(default_factory=dict)
    order_types: Mapping[int, int] = field(default_factory=dict)
    instrument_ids: frozenset[int] = frozenset()
    default_instr_id: int | None = None

    def context_resolve_instr_id(self, instr_id: int | None, order_id: int | None) -> int | None:
        """Attribute a record to an instrument.

        Args:
            instr_id: Instrument id carried by the record itself.
            order_id: Order id carried by the record itself.

        Returns:
            int | None: Resolved instrument id, or None when it cannot be attributed.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if instr_id is not None:
            return instr_id
        if order_id is not None and order_id in self.order_instrument_ids:
            return self.order_instrument_ids[order_id]
        if len(self.instrument_ids) == 1:
            return next(iter(self.instrument_ids))
        return None


@dataclass(frozen=True)
class FillEvent:
    """Trade execution changing position size.

    Attributes:
        instr_id: Attributed instrument id.
        tag: Source log tag.
        order_id: Order id, when present.
        side: Fill direction.
        quantity: Absolute base quantity in human units.
        price: Fill price in human units (0 when it could not be derived).
        order_type: Order-type code resolved for the order, when known.
    """

    instr_id: int
    tag: int
    order_id: int | None
    side: TradeSide
    quantity: Decimal
    price: Decimal
    order_type: int | None = None


@dataclass(frozen=True)
class FundingEvent:
    """Funding cash flow; positive amounts are received."""

    instr_id: int
    tag: int
    amount: Decimal


@dataclass(frozen=True)
class FeeEvent:
    """Trading fee paid for an order."""

    instr_id: int
    tag: int
    order_id: int | None
    amount: Decimal


@dataclass(frozen=True)
class SocializedLossEvent:
    """Loss allocated to solvent holders after a liquidation shortfall."""

    instr_id: int
    tag: int
    amount: Decimal


@dataclass(frozen=True)
class OrderPlacedEvent:
    """New resting or taker order."""

    instr_id: int
    tag: int
    order_id: int | None
    order_type: int | None
    side: TradeSide | None


@dataclass(frozen=True)
class OrderCancelledEvent:
    """Order cancellation."""

    instr_id: int
    tag: int
    order_id: int | None


@dataclass(frozen=True)
class UnknownEvent:
    """Record with an unmapped tag, preserved with its raw payload."""

    instr_id: int
    tag: int
    payload: DecodedRecord


@dataclass(frozen=True)
class SkippedRecord:
    """Record that could not be classified into a ledger event.

    Attributes:
        tag: Source log tag.
        reason: Skip reason label.
    """

    tag: int
    reason: str


ClassifiedEvent = Union[
    FillEvent,
    FundingEvent,
    FeeEvent,
    SocializedLossEvent,
    OrderPlacedEvent,
    OrderCancelledEvent,
    UnknownEvent,
]
