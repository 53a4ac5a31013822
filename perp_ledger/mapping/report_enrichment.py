"""Raw-log enrichment for the per-transaction trade-log endpoint."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Final, Sequence

from perp_ledger.domain import ScaleProfile, domain_order_type_label
from perp_ledger.instruments import MarketNamePort

from .classifier import (
    BASE_CHANGE_FIELDS,
    FEE_FIELDS,
    PRICE_FIELDS,
    PerpLogClassifier,
    mapping_first_scaled_value,
    mapping_optional_int,
    mapping_record_tag,
    mapping_resolve_event_kind,
)
from .interfaces import DecodedRecord, LogEventKind, RecordDecodeError, TransactionResolutionContext

logger = logging.getLogger(__name__)

PERP_REPORT_TYPE_NAMES: Final[dict[int, str]] = {
    15: "perpFees",
    18: "perpPlaceOrder",
    19: "perpFillOrder",
    20: "perpNewOrder",
    21: "perpOrderCancel",
    23: "perpFees",
    24: "perpFunding",
    25: "perpFillOrder",
    27: "perpSocLoss",
}

UNKNOWN_MARKET_NAME: Final[str] = "Unknown Market"

_JSON_SAFE_INTEGER_MAX: Final[int] = 2**53 - 1


def mapping_report_type_name(tag: int) -> str:
    """Return the display type name of one log tag (`unknown_<tag>` when unmapped)."""

    return PERP_REPORT_TYPE_NAMES.get(tag, f"unknown_{tag}")


def mapping_enrich_transaction_reports(
    records: Sequence[DecodedRecord],
    market_names: MarketNamePort,
    scale_profile: ScaleProfile | None = None,
) -> list[dict[str, object]]:
    """Enrich every decoded record of one transaction for display.

    Every record is preserved, unknown tags included. Fills and placed orders
    additionally receive side, quantity, price, aggregated fee and order-type
    labels. A record with malformed fields is kept with its raw data and a
    `decode_error` message instead of enrichment.

    Args:
        records: Decoded records of one transaction in emission order.
        market_names: Market-name resolver.
        scale_profile: Optional field scale overrides.

    Returns:
        list[dict[str, object]]: One `{"type", "data"}` entry per record.

    Raises:
        ValueError: Raised when the market-name resolver is missing.
    """

    if market_names is None:
        raise ValueError("market_names must not be None")

    classifier = PerpLogClassifier(scale_profile)
    context = classifier.mapping_build_resolution_context(
        [record for record in records if _mapping_has_decodable_ids(record)]
    )
    order_fee_totals = _mapping_aggregate_order_fees(records, classifier.scale_profile)

    enriched_reports: list[dict[str, object]] = []
    for record in records:
        try:
            enriched_reports.append(
                _mapping_enrich_record(record, market_names, classifier, context, order_fee_totals)
            )
        except RecordDecodeError as error:
            logger.warning("keeping raw log record tag=%r reason=%s", record.get("tag"), error)
            enriched_reports.append(_mapping_raw_report(record, error))

    return enriched_reports


def _mapping_enrich_record(
    record: DecodedRecord,
    market_names: MarketNamePort,
    classifier: PerpLogClassifier,
    context: TransactionResolutionContext,
    order_fee_totals: dict[int, Decimal],
) -> dict[str, object]:
    """Enrich one decoded record; raises RecordDecodeError on malformed fields."""

    tag = mapping_record_tag(record)
    kind = mapping_resolve_event_kind(tag)
    data = {key: _mapping_json_value(value) for key, value in record.items()}

    record_instr_id = mapping_optional_int(record, "instrId")
    instr_id = record_instr_id if record_instr_id is not None else context.default_instr_id
    market_name = UNKNOWN_MARKET_NAME if instr_id is None else market_names.instrument_market_name(instr_id)
    data["market"] = market_name
    data["instrId"] = instr_id

    if kind in (LogEventKind.FILL, LogEventKind.ORDER_PLACED):
        side = classifier.mapping_fill_side(record)
        order_id = mapping_optional_int(record, "orderId")
        data["side_label"] = side.value
        data["action"] = f"{side.value} {market_name}"
        data["fee"] = order_fee_totals.get(order_id, Decimal("0"))
        if kind is LogEventKind.FILL:
            quantity, price = classifier.mapping_fill_quantity_and_price(record)
        else:
            quantity = abs(
                mapping_first_scaled_value(record, BASE_CHANGE_FIELDS, classifier.scale_profile.base_decimals)
            )
            price = mapping_first_scaled_value(record, PRICE_FIELDS, classifier.scale_profile.price_decimals)
        data["qty"] = quantity
        data["price"] = price

        record_order_type = mapping_optional_int(record, "orderType")
        if order_id is not None and order_id in context.order_types:
            data["fill_type"] = domain_order_type_label(context.order_types[order_id])
        elif record_order_type is not None:
            data["fill_type"] = domain_order_type_label(record_order_type)

    token_id = mapping_optional_int(record, "tokenId")
    if token_id is not None:
        data["token_name"] = market_names.instrument_token_metadata(token_id).symbol

    return {"type": mapping_report_type_name(tag), "data": data}


def _mapping_raw_report(record: DecodedRecord, error: RecordDecodeError) -> dict[str, object]:
    """Render one undecodable record with its raw fields and the decode error."""

    raw_tag = record.get("tag")
    data = {key: _mapping_json_value(value) for key, value in record.items()}
    data["decode_error"] = str(error)
    return {"type": "unknown" if raw_tag is None else f"unknown_{raw_tag}", "data": data}


def _mapping_has_decodable_ids(record: DecodedRecord) -> bool:
    """Return whether the id fields used for attribution parse as integers."""

    try:
        for field_name in ("instrId", "orderId", "orderType"):
            mapping_optional_int(record, field_name)
    except RecordDecodeError:
        return False
    return True


def _mapping_aggregate_order_fees(records: Sequence[DecodedRecord], scale_profile: ScaleProfile) -> dict[int, Decimal]:
    """Sum normalized fee amounts per order id across one transaction."""

    order_fee_totals: dict[int, Decimal] = {}
    for record in records:
        try:
            if mapping_resolve_event_kind(mapping_record_tag(record)) is not LogEventKind.FEE:
                continue
            order_id = mapping_optional_int(record, "orderId")
            fee_amount = mapping_first_scaled_value(record, FEE_FIELDS, scale_profile.cashflow_decimals)
        except RecordDecodeError:
            # Malformed fee records do not count toward order totals.
            continue
        if order_id is None:
            continue
        order_fee_totals[order_id] = order_fee_totals.get(order_id, Decimal("0")) + fee_amount
    return order_fee_totals


def _mapping_json_value(value: object) -> object:
    """Render integers outside the JSON-safe range as strings."""

    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > _JSON_SAFE_INTEGER_MAX:
        return str(value)
    if isinstance(value, bytes):
        return value.hex()
    return value


__all__ = [
    "PERP_REPORT_TYPE_NAMES",
    "UNKNOWN_MARKET_NAME",
    "mapping_enrich_transaction_reports",
    "mapping_report_type_name",
]
