"""Mapping layer package for decoded-log classification and enrichment."""

from .interfaces import (
	ClassifiedEvent,
	DecodedRecord,
	DecodedTransaction,
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
from .classifier import (
	BASE_CHANGE_FIELDS,
	PERP_LOG_TAG_KINDS,
	PerpLogClassifier,
	mapping_first_scaled_value,
	mapping_optional_int,
	mapping_record_tag,
	mapping_resolve_event_kind,
)
from .report_enrichment import PERP_REPORT_TYPE_NAMES, mapping_enrich_transaction_reports, mapping_report_type_name

__all__ = [
	"BASE_CHANGE_FIELDS",
	"ClassifiedEvent",
	"DecodedRecord",
	"DecodedTransaction",
	"FeeEvent",
	"FillEvent",
	"FundingEvent",
	"LogEventKind",
	"OrderCancelledEvent",
	"OrderPlacedEvent",
	"PERP_LOG_TAG_KINDS",
	"PERP_REPORT_TYPE_NAMES",
	"PerpLogClassifier",
	"RecordDecodeError",
	"SkippedRecord",
	"SocializedLossEvent",
	"TransactionResolutionContext",
	"UnknownEvent",
	"mapping_enrich_transaction_reports",
	"mapping_first_scaled_value",
	"mapping_optional_int",
	"mapping_record_tag",
	"mapping_resolve_event_kind",
	"mapping_report_type_name",
]
