"""JSON payload serializers for ledger output contracts."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Final, Mapping

from perp_ledger.domain import domain_unix_timestamp_to_utc_iso
from perp_ledger.ledger import (
    GLOBAL_SUMMARY_KEY,
    InstrumentSummary,
    OpenPositionSnapshot,
    TimelineEvent,
    WalletTimelineResult,
)

_TIMELINE_OPTIONAL_FIELDS: Final[tuple[str, ...]] = (
    "side",
    "quantity",
    "price",
    "value",
    "realized_pnl",
    "position_size",
    "avg_entry_price",
    "order_type",
    "funding_amount",
    "cumulative_funding",
    "fee_amount",
    "cumulative_fees",
    "loss_amount",
    "cumulative_soc_loss",
)


def api_serialize_decimal(value: Decimal) -> str:
    """Render one decimal in fixed-point notation without exponent."""

    return format(value, "f")


def api_serialize_json_value(value: Any) -> Any:
    """Recursively convert decimals to strings inside a JSON-like payload.

    Args:
        value: Candidate payload value.

    Returns:
        Any: JSON-serializable value.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if isinstance(value, Decimal):
        return api_serialize_decimal(value)
    if isinstance(value, Mapping):
        return {str(key): api_serialize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [api_serialize_json_value(item) for item in value]
    return value


def api_serialize_timeline_event(timeline_event: TimelineEvent) -> dict[str, object]:
    """Serialize one timeline entry, omitting fields of other entry kinds.

    Args:
        timeline_event: Typed timeline entry.

    Returns:
        dict[str, object]: JSON-serializable timeline payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    payload: dict[str, object] = {
        "timestamp": timeline_event.timestamp,
        "datetime": domain_unix_timestamp_to_utc_iso(timeline_event.timestamp),
        "type": timeline_event.kind.value,
        "market": timeline_event.market,
        "instrId": timeline_event.instr_id,
    }
    for field_name in _TIMELINE_OPTIONAL_FIELDS:
        field_value = getattr(timeline_event, field_name)
        if field_value is not None:
            payload[field_name] = api_serialize_json_value(field_value)
    payload["cumulative_realized_pnl"] = api_serialize_decimal(timeline_event.cumulative_realized_pnl)
    payload["signature"] = timeline_event.signature
    return payload


def api_serialize_instrument_summary(instrument_summary: InstrumentSummary) -> dict[str, object]:
    """Serialize one per-instrument summary entry."""

    return {
        "instr_id": instrument_summary.instr_id,
        "current_position": api_serialize_decimal(instrument_summary.current_position),
        "avg_entry_price": api_serialize_decimal(instrument_summary.avg_entry_price),
        "total_fees": api_serialize_decimal(instrument_summary.total_fees),
        "total_funding": api_serialize_decimal(instrument_summary.total_funding),
        "total_soc_loss": api_serialize_decimal(instrument_summary.total_soc_loss),
        "realized_pnl": api_serialize_decimal(instrument_summary.realized_pnl),
    }


def api_serialize_wallet_timeline(timeline_result: WalletTimelineResult) -> dict[str, object]:
    """Serialize one wallet replay into the PnL timeline output contract.

    Args:
        timeline_result: Wallet replay result.

    Returns:
        dict[str, object]: `{wallet, timeline, summary, total_events, diagnostics}` payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    replay_result = timeline_result.replay
    summary_payload: dict[str, object] = {
        market: api_serialize_instrument_summary(instrument_summary)
        for market, instrument_summary in replay_result.summary.items()
    }
    summary_payload[GLOBAL_SUMMARY_KEY] = {
        "total_realized_pnl": api_serialize_decimal(replay_result.total_realized_pnl),
    }
    return {
        "wallet": timeline_result.wallet,
        "timeline": [api_serialize_timeline_event(timeline_event) for timeline_event in replay_result.timeline],
        "summary": summary_payload,
        "total_events": replay_result.total_events,
        "diagnostics": {
            "skipped_transaction_count": replay_result.skipped_transaction_count,
            "unattributed_record_count": replay_result.unattributed_record_count,
            "stage_timeline": timeline_result.stage_timeline,
        },
    }


def api_serialize_open_position(open_position: OpenPositionSnapshot) -> dict[str, object]:
    """Serialize one open-position snapshot."""

    return {
        "instr_id": open_position.instr_id,
        "market": open_position.market,
        "size": api_serialize_decimal(open_position.size),
        "side": open_position.side,
        "is_reconstructed": open_position.is_reconstructed,
    }


__all__ = [
    "api_serialize_decimal",
    "api_serialize_instrument_summary",
    "api_serialize_json_value",
    "api_serialize_open_position",
    "api_serialize_timeline_event",
    "api_serialize_wallet_timeline",
]
