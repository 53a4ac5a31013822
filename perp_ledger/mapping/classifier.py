"""Classification of decoded perpetual log records into typed ledger events."""

from __future__ import annotations

from decimal import Decimal
from typing import Final, Iterable

from perp_ledger.domain import ScaleProfile, TradeSide, domain_normalize_scaled_value, domain_side_from_code

from .interfaces import (
    ClassifiedEvent,
    DecodedRecord,
    FeeEvent,
    FillEvent,
    FundingEvent,
    LogEventKind,
    OrderCancelledEvent,
    OrderPlacedEvent,
    RecordDecodeError,
    SkippedRecord,
    SocializedLossEvent,
    TransactionResolutionContext,
    UnknownEvent,
)

PERP_LOG_TAG_KINDS: Final[dict[int, LogEventKind]] = {
    15: LogEventKind.FEE,
    18: LogEventKind.ORDER_PLACED,
    19: LogEventKind.FILL,
    20: LogEventKind.ORDER_PLACED,
    21: LogEventKind.ORDER_CANCELLED,
    23: LogEventKind.FEE,
    24: LogEventKind.FUNDING,
    25: LogEventKind.FILL,
    27: LogEventKind.SOCIALIZED_LOSS,
}

BASE_CHANGE_FIELDS: Final[tuple[str, ...]] = ("baseChange", "perps")
QUOTE_CHANGE_FIELDS: Final[tuple[str, ...]] = ("quoteChange", "crncy")
PRICE_FIELDS: Final[tuple[str, ...]] = ("price", "px")
FEE_FIELDS: Final[tuple[str, ...]] = ("fee", "fees", "amount")

SKIP_REASON_UNATTRIBUTED: Final[str] = "unattributed"


def mapping_resolve_event_kind(tag: int) -> LogEventKind:
    """Map an integer log tag to its semantic event kind.

    Args:
        tag: Decoded log tag.

    Returns:
        LogEventKind: Mapped kind, `UNKNOWN` for unmapped tags.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return PERP_LOG_TAG_KINDS.get(tag, LogEventKind.UNKNOWN)


def mapping_record_tag(record: DecodedRecord) -> int:
    """Read the mandatory integer tag of one record.

    Args:
        record: Decoded log record.

    Returns:
        int: Record tag.

    Raises:
        RecordDecodeError: Raised when the tag is missing or not an integer.
    """

    tag = mapping_optional_int(record, "tag")
    if tag is None:
        raise RecordDecodeError("decoded record is missing its tag")
    return tag


def mapping_optional_int(record: DecodedRecord, field_name: str) -> int | None:
    """Read one optional integer field (ids, codes) from a record.

    Args:
        record: Decoded log record.
        field_name: Field key.

    Returns:
        int | None: Parsed integer, or None when the field is absent.

    Raises:
        RecordDecodeError: Raised when the field is present but not an integer.
    """

    value = record.get(field_name)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RecordDecodeError(f"field {field_name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as error:
        raise RecordDecodeError(f"field {field_name} must be an integer, got {value!r}") from error


def mapping_first_scaled_value(record: DecodedRecord, field_names: Iterable[str], decimals: int) -> Decimal:
    """Return the first present, non-zero alternative field, normalized.

    Args:
        record: Decoded log record.
        field_names: Alternative field keys in priority order.
        decimals: Fixed-point decimals for raw-form values.

    Returns:
        Decimal: Normalized value, or zero when no alternative carries a value.

    Raises:
        RecordDecodeError: Raised when a present value is not numeric.
    """

    for field_name in field_names:
        raw_value = record.get(field_name)
        if raw_value is None:
            continue
        try:
            normalized_value = domain_normalize_scaled_value(raw_value, decimals)
        except ValueError as error:
            raise RecordDecodeError(f"field {field_name} is not numeric: {error}") from error
        if normalized_value != 0:
            return normalized_value
    return Decimal("0")


class PerpLogClassifier:
    """Convert loosely-shaped decoded records into typed ledger event variants."""

    def __init__(self, scale_profile: ScaleProfile | None = None):
        """Initialize classifier scale configuration.

        Args:
            scale_profile: Optional field scale overrides.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when scale profile values are invalid.
        """

        resolved_profile = scale_profile or ScaleProfile()
        resolved_profile.scale_validate()
        self._scale = resolved_profile

    @property
    def scale_profile(self) -> ScaleProfile:
        """Return the active field scale profile."""

        return self._scale

    def mapping_build_resolution_context(self, records: Iterable[DecodedRecord]) -> TransactionResolutionContext:
        """Pre-scan all records of one transaction into id-resolution tables.

        Args:
            records: Every decoded record of one transaction.

        Returns:
            TransactionResolutionContext: Immutable lookup tables for classification.

        Raises:
            RecordDecodeError: Raised when an id field is malformed.
        """

        order_instrument_ids: dict[int, int] = {}
        order_types: dict[int, int] = {}
        instrument_ids: set[int] = set()
        default_instr_id: int | None = None

        for record in records:
            instr_id = mapping_optional_int(record, "instrId")
            order_id = mapping_optional_int(record, "orderId")
            order_type = mapping_optional_int(record, "orderType")
            if instr_id is not None:
                instrument_ids.add(instr_id)
                if default_instr_id is None:
                    default_instr_id = instr_id
                if order_id is not None:
                    order_instrument_ids[order_id] = instr_id
            if order_id is not None and order_type is not None:
                order_types[order_id] = order_type

        return TransactionResolutionContext(
            order_instrument_ids=order_instrument_ids,
            order_types=order_types,
            instrument_ids=frozenset(instrument_ids),
            default_instr_id=default_instr_id,
        )

    def mapping_classify_record(
        self,
        record: DecodedRecord,
        context: TransactionResolutionContext,
    ) -> ClassifiedEvent | SkippedRecord:
        """Classify one decoded record.

        Args:
            record: Decoded log record.
            context: Resolution tables of the record's transaction.

        Returns:
            ClassifiedEvent | SkippedRecord: Typed event, or a skip marker when the
            record cannot be attributed to an instrument.

        Raises:
            RecordDecodeError: Raised when the record carries malformed fields.
        """

        tag = mapping_record_tag(record)
        order_id = mapping_optional_int(record, "orderId")
        instr_id = context.context_resolve_instr_id(mapping_optional_int(record, "instrId"), order_id)
        if instr_id is None:
            return SkippedRecord(tag=tag, reason=SKIP_REASON_UNATTRIBUTED)

        kind = mapping_resolve_event_kind(tag)
        if kind is LogEventKind.FILL:
            return self._mapping_classify_fill(record, context, tag, instr_id, order_id)
        if kind is LogEventKind.FUNDING:
            return FundingEvent(
                instr_id=instr_id,
                tag=tag,
                amount=mapping_first_scaled_value(record, ("funding",), self._scale.cashflow_decimals),
            )
        if kind is LogEventKind.FEE:
            return FeeEvent(
                instr_id=instr_id,
                tag=tag,
                order_id=order_id,
                amount=mapping_first_scaled_value(record, FEE_FIELDS, self._scale.cashflow_decimals),
            )
        if kind is LogEventKind.SOCIALIZED_LOSS:
            return SocializedLossEvent(
                instr_id=instr_id,
                tag=tag,
                amount=mapping_first_scaled_value(record, ("socLoss",), self._scale.cashflow_decimals),
            )
        if kind is LogEventKind.ORDER_PLACED:
            side_code = mapping_optional_int(record, "side")
            return OrderPlacedEvent(
                instr_id=instr_id,
                tag=tag,
                order_id=order_id,
                order_type=self._mapping_resolve_order_type(record, context, order_id),
                side=None if side_code is None else domain_side_from_code(side_code),
            )
        if kind is LogEventKind.ORDER_CANCELLED:
            return OrderCancelledEvent(instr_id=instr_id, tag=tag, order_id=order_id)
        return UnknownEvent(instr_id=instr_id, tag=tag, payload=record)

    def mapping_fill_side(self, record: DecodedRecord) -> TradeSide:
        """Resolve fill side from the explicit side code, else the base-change sign.

        Args:
            record: Decoded fill or order record.

        Returns:
            TradeSide: Resolved side; a negative base change means SELL.

        Raises:
            RecordDecodeError: Raised when side or base-change fields are malformed.
        """

        side_code = mapping_optional_int(record, "side")
        if side_code is not None:
            return domain_side_from_code(side_code)
        base_change = mapping_first_scaled_value(record, BASE_CHANGE_FIELDS, self._scale.base_decimals)
        return TradeSide.SELL if base_change < 0 else TradeSide.BUY

    def mapping_fill_quantity_and_price(self, record: DecodedRecord) -> tuple[Decimal, Decimal]:
        """Resolve absolute fill quantity and fill price in human units.

        The explicit price is used when present and non-zero; otherwise the price
        is derived as `|quote change| / |base change|` when both are non-zero.

        Args:
            record: Decoded fill record.

        Returns:
            tuple[Decimal, Decimal]: Quantity and price; price is zero when underivable.

        Raises:
            RecordDecodeError: Raised when numeric fields are malformed.
        """

        quantity = abs(mapping_first_scaled_value(record, BASE_CHANGE_FIELDS, self._scale.base_decimals))
        price = mapping_first_scaled_value(record, PRICE_FIELDS, self._scale.price_decimals)
        if price == 0:
            quote_value = abs(mapping_first_scaled_value(record, QUOTE_CHANGE_FIELDS, self._scale.quote_decimals))
            if quantity > 0 and quote_value > 0:
                price = quote_value / quantity
        return quantity, price

    def _mapping_classify_fill(
        self,
        record: DecodedRecord,
        context: TransactionResolutionContext,
        tag: int,
        instr_id: int,
        order_id: int | None,
    ) -> FillEvent:
        """Build one fill event from a fill-tagged record.

        Args:
            record: Decoded fill record.
            context: Resolution tables of the record's transaction.
            tag: Record tag.
            instr_id: Attributed instrument id.
            order_id: Record order id.

        Returns:
            FillEvent: Typed fill event, possibly with zero quantity.

        Raises:
            RecordDecodeError: Raised when numeric fields are malformed.
        """

        quantity, price = self.mapping_fill_quantity_and_price(record)
        return FillEvent(
            instr_id=instr_id,
            tag=tag,
            order_id=order_id,
            side=self.mapping_fill_side(record),
            quantity=quantity,
            price=price,
            order_type=self._mapping_resolve_order_type(record, context, order_id),
        )

    def _mapping_resolve_order_type(
        self,
        record: DecodedRecord,
        context: TransactionResolutionContext,
        order_id: int | None,
    ) -> int | None:
        """Resolve an order-type code from the transaction table, else the record."""

        if order_id is not None and order_id in context.order_types:
            return context.order_types[order_id]
        return mapping_optional_int(record, "orderType")


__all__ = [
    "BASE_CHANGE_FIELDS",
    "FEE_FIELDS",
    "PERP_LOG_TAG_KINDS",
    "PRICE_FIELDS",
    "PerpLogClassifier",
    "QUOTE_CHANGE_FIELDS",
    "SKIP_REASON_UNATTRIBUTED",
    "mapping_first_scaled_value",
    "mapping_optional_int",
    "mapping_record_tag",
    "mapping_resolve_event_kind",
]
