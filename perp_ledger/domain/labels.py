"""Display-label helpers for enumerated order codes."""

from __future__ import annotations

from enum import Enum, IntEnum


class OrderType(IntEnum):
    """Order-type codes carried by perpetual order and fill logs."""

    LIMIT = 0
    MARKET = 1
    MARGIN_CALL = 2
    FORCED_CLOSE = 3


class TradeSide(str, Enum):
    """Trade direction of a fill or order."""

    BUY = "BUY"
    SELL = "SELL"


_ORDER_TYPE_LABELS = {
    OrderType.LIMIT: "Limit",
    OrderType.MARKET: "Market",
    OrderType.MARGIN_CALL: "Margin Call",
    OrderType.FORCED_CLOSE: "Forced Close",
}

LIQUIDATION_ORDER_TYPES = frozenset({OrderType.MARGIN_CALL, OrderType.FORCED_CLOSE})


def domain_order_type_label(order_type: int | None) -> str:
    """Translate an order-type code into its display label.

    Args:
        order_type: Order-type code, or None when unknown.

    Returns:
        str: Display label; unmapped codes render as `Unknown (<code>)`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if order_type is None:
        return "Unknown"
    try:
        return _ORDER_TYPE_LABELS[OrderType(order_type)]
    except ValueError:
        return f"Unknown ({order_type})"


def domain_side_from_code(side_code: int) -> TradeSide:
    """Map a numeric side code (0 buy, anything else sell) to `TradeSide`."""

    return TradeSide.BUY if side_code == 0 else TradeSide.SELL


__all__ = [
    "LIQUIDATION_ORDER_TYPES",
    "OrderType",
    "TradeSide",
    "domain_order_type_label",
    "domain_side_from_code",
]
