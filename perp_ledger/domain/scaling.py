"""Scale normalization helpers for mixed raw/UI numeric log fields.

Decoded program logs deliver the same logical quantity either as a fixed-point
integer ("raw") or as an already human-scaled value ("UI"), depending on the
report kind. This module isolates the magnitude heuristic that tells the two
apart so it can later be swapped for an explicit per-field scale tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Final

SCALE_RAW_MAGNITUDE_THRESHOLD: Final[Decimal] = Decimal("1e12")


@dataclass(frozen=True)
class ScaleProfile:
    """Fixed-point decimal counts used when a field arrives in raw form.

    Attributes:
        base_decimals: Decimals of base-asset quantity fields (`baseChange`, `perps`).
        quote_decimals: Decimals of quote/currency fields (`quoteChange`, `crncy`).
        price_decimals: Decimals of price fields (`price`, `px`).
        cashflow_decimals: Decimals of fee, funding and socialized-loss fields.
    """

    base_decimals: int = 9
    quote_decimals: int = 6
    price_decimals: int = 9
    cashflow_decimals: int = 6

    def scale_validate(self) -> None:
        """Validate decimal counts.

        Returns:
            None: This method does not return a value.

        Raises:
            ValueError: Raised when one decimal count is negative.
        """

        for field_name in ("base_decimals", "quote_decimals", "price_decimals", "cashflow_decimals"):
            if getattr(self, field_name) < 0:
                raise ValueError(f"{field_name} must be >= 0")


def domain_to_decimal(value: object) -> Decimal:
    """Convert one loosely-typed numeric log value into `Decimal`.

    Args:
        value: Candidate value (`int`, `Decimal`, `float`, numeric `str` or None).

    Returns:
        Decimal: Converted value; missing values convert to zero.

    Raises:
        ValueError: Raised when the value is not numeric or not finite.
    """

    if value is None:
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError(f"boolean is not a numeric log value: {value!r}")
    if isinstance(value, Decimal):
        converted_value = value
    elif isinstance(value, int):
        converted_value = Decimal(value)
    elif isinstance(value, float):
        converted_value = Decimal(repr(value))
    elif isinstance(value, str):
        normalized_value = value.strip()
        if not normalized_value:
            return Decimal("0")
        try:
            converted_value = Decimal(normalized_value)
        except InvalidOperation as error:
            raise ValueError(f"invalid numeric log value: {value!r}") from error
    else:
        raise ValueError(f"unsupported numeric log value type: {type(value).__name__}")

    if not converted_value.is_finite():
        raise ValueError(f"numeric log value must be finite: {value!r}")
    return converted_value


def domain_normalize_scaled_value(raw_value: object, decimals: int) -> Decimal:
    """Normalize one raw-or-UI value into human units.

    Values whose magnitude exceeds `1e12` are treated as fixed-point integers and
    divided by `10**decimals`; smaller values are assumed to be human-scaled
    already. A genuinely huge human-scaled value is misclassified; that is a
    known limitation of the heuristic.

    Args:
        raw_value: Candidate numeric value.
        decimals: Fixed-point decimals used when the value is raw.

    Returns:
        Decimal: Human-scaled value.

    Raises:
        ValueError: Raised when the value is not numeric or decimals is negative.
    """

    if decimals < 0:
        raise ValueError("decimals must be >= 0")

    value = domain_to_decimal(raw_value)
    if abs(value) > SCALE_RAW_MAGNITUDE_THRESHOLD:
        return value.scaleb(-decimals)
    return value


__all__ = [
    "SCALE_RAW_MAGNITUDE_THRESHOLD",
    "ScaleProfile",
    "domain_normalize_scaled_value",
    "domain_to_decimal",
]
