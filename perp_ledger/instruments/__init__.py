"""Instrument metadata package for market-name resolution."""

from .interfaces import InstrumentMetadata, MarketNamePort, TokenMetadata
from .registry import DEFAULT_INSTRUMENTS, DEFAULT_TOKEN_METADATA, InstrumentRegistry, instruments_load_registry

__all__ = [
	"DEFAULT_INSTRUMENTS",
	"DEFAULT_TOKEN_METADATA",
	"InstrumentMetadata",
	"InstrumentRegistry",
	"MarketNamePort",
	"TokenMetadata",
	"instruments_load_registry",
]
