"""Ledger layer package for position replay and PnL timeline boundaries."""

from .interfaces import (
	InstrumentSummary,
	LedgerEventOrigin,
	OpenPositionSnapshot,
	PositionSnapshotPort,
	ReplayOptions,
	ReplayResult,
	TimelineEvent,
	TimelineEventKind,
)
from .position_engine import (
	LEDGER_DUST_EPSILON,
	LEDGER_OUTPUT_QUANTUM,
	InstrumentPositionState,
	PositionLedger,
	ledger_quantize,
)
from .reconstruction import ledger_reconstruct_open_positions, ledger_select_open_positions
from .timeline_service import GLOBAL_SUMMARY_KEY, PerpTimelineReplayService, ledger_order_transactions
from .wallet_service import WalletPnlTimelineService, WalletTimelineResult

__all__ = [
	"GLOBAL_SUMMARY_KEY",
	"InstrumentPositionState",
	"InstrumentSummary",
	"LEDGER_DUST_EPSILON",
	"LEDGER_OUTPUT_QUANTUM",
	"LedgerEventOrigin",
	"OpenPositionSnapshot",
	"PerpTimelineReplayService",
	"PositionLedger",
	"PositionSnapshotPort",
	"ReplayOptions",
	"ReplayResult",
	"TimelineEvent",
	"TimelineEventKind",
	"WalletPnlTimelineService",
	"WalletTimelineResult",
	"ledger_order_transactions",
	"ledger_quantize",
	"ledger_reconstruct_open_positions",
	"ledger_select_open_positions",
]
