"""Domain models and pure helpers used across application layer boundaries."""

from .labels import (
	LIQUIDATION_ORDER_TYPES,
	OrderType,
	TradeSide,
	domain_order_type_label,
	domain_side_from_code,
)
from .models import HealthStatus
from .scaling import SCALE_RAW_MAGNITUDE_THRESHOLD, ScaleProfile, domain_normalize_scaled_value, domain_to_decimal
from .timeline import domain_build_stage_event, domain_unix_timestamp_to_utc_iso

__all__ = [
	"HealthStatus",
	"LIQUIDATION_ORDER_TYPES",
	"OrderType",
	"SCALE_RAW_MAGNITUDE_THRESHOLD",
	"ScaleProfile",
	"TradeSide",
	"domain_build_stage_event",
	"domain_normalize_scaled_value",
	"domain_order_type_label",
	"domain_side_from_code",
	"domain_to_decimal",
	"domain_unix_timestamp_to_utc_iso",
]
