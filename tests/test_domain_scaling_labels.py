"""Regression tests for raw/UI scale normalization and order-code labels."""

from __future__ import annotations

from decimal import Decimal

import pytest

from perp_ledger.domain import (
    OrderType,
    ScaleProfile,
    TradeSide,
    domain_normalize_scaled_value,
    domain_order_type_label,
    domain_side_from_code,
    domain_to_decimal,
    domain_unix_timestamp_to_utc_iso,
)


def test_domain_normalize_scaled_value_divides_raw_magnitudes_only() -> None:
    """Divide values above the raw threshold and keep human-scaled values untouched.

    Returns:
        None: Assertions validate normalization behavior.

    Raises:
        AssertionError: Raised when normalization misclassifies a magnitude.
    """

    assert domain_normalize_scaled_value(2_500_000_000_000, 9) == Decimal("2500")
    assert domain_normalize_scaled_value(-3_000_000_000_000, 6) == Decimal("-3000000")
    assert domain_normalize_scaled_value(1_000_000_000_000, 9) == Decimal("1000000000000")
    assert domain_normalize_scaled_value("1.5", 9) == Decimal("1.5")
    assert domain_normalize_scaled_value(None, 9) == Decimal("0")


def test_domain_to_decimal_rejects_non_numeric_values() -> None:
    """Reject booleans, non-numeric strings and non-finite values.

    Returns:
        None: Assertions validate conversion errors.

    Raises:
        AssertionError: Raised when an invalid value converts silently.
    """

    assert domain_to_decimal(0.1) == Decimal("0.1")
    assert domain_to_decimal("  ") == Decimal("0")

    with pytest.raises(ValueError):
        domain_to_decimal(True)
    with pytest.raises(ValueError):
        domain_to_decimal("abc")
    with pytest.raises(ValueError):
        domain_to_decimal("NaN")
    with pytest.raises(ValueError):
        domain_to_decimal([1])


def test_domain_scale_profile_rejects_negative_decimals() -> None:
    """Reject negative decimal counts in scale profiles.

    Returns:
        None: Assertions validate profile validation.

    Raises:
        AssertionError: Raised when a negative decimal count is accepted.
    """

    with pytest.raises(ValueError, match="price_decimals"):
        ScaleProfile(price_decimals=-1).scale_validate()
    with pytest.raises(ValueError):
        domain_normalize_scaled_value(1, -1)


def test_domain_order_type_label_maps_known_and_unknown_codes() -> None:
    """Render order-type labels with an explicit fallback for unmapped codes.

    Returns:
        None: Assertions validate label mapping.

    Raises:
        AssertionError: Raised when a label is wrong.
    """

    assert domain_order_type_label(OrderType.LIMIT) == "Limit"
    assert domain_order_type_label(1) == "Market"
    assert domain_order_type_label(2) == "Margin Call"
    assert domain_order_type_label(3) == "Forced Close"
    assert domain_order_type_label(9) == "Unknown (9)"
    assert domain_order_type_label(None) == "Unknown"


def test_domain_side_code_and_timestamp_helpers() -> None:
    """Map side codes and render unknown block times as None.

    Returns:
        None: Assertions validate helper outputs.

    Raises:
        AssertionError: Raised when helper output deviates.
    """

    assert domain_side_from_code(0) is TradeSide.BUY
    assert domain_side_from_code(1) is TradeSide.SELL
    assert domain_unix_timestamp_to_utc_iso(0) is None
    assert domain_unix_timestamp_to_utc_iso(1_700_000_000) == "2023-11-14T22:13:20+00:00"
