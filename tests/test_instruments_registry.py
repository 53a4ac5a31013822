"""Regression tests for instrument market-name resolution and catalog loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from perp_ledger.instruments import InstrumentMetadata, InstrumentRegistry, instruments_load_registry


def test_instruments_registry_resolves_defaults_and_fallback_names() -> None:
    """Resolve the built-in perpetual and fall back for unregistered instruments.

    Returns:
        None: Assertions validate market-name resolution.

    Raises:
        AssertionError: Raised when a market name deviates.
    """

    registry = InstrumentRegistry()

    assert registry.instrument_market_name(0) == "SOL/USDC"
    assert registry.instrument_market_name(42) == "Instrument-42"
    assert registry.instrument_token_metadata(999).symbol == "Token-999"
    assert registry.instrument_token_metadata(999).decimals == 9


def test_instruments_registry_falls_back_per_token() -> None:
    """Render unknown asset tokens as `Token-<id>` and unknown currencies as USDC.

    Returns:
        None: Assertions validate per-token fallback.

    Raises:
        AssertionError: Raised when fallback naming is wrong.
    """

    registry = InstrumentRegistry(
        instruments=[InstrumentMetadata(instr_id=7, asset_token_id=555, crncy_token_id=777)],
    )

    assert registry.instrument_market_name(7) == "Token-555/USDC"


def test_instruments_registry_rejects_duplicate_instruments() -> None:
    """Reject the same instrument id registered twice.

    Returns:
        None: Assertions validate duplicate detection.

    Raises:
        AssertionError: Raised when duplicates are accepted.
    """

    instrument = InstrumentMetadata(instr_id=1, asset_token_id=4, crncy_token_id=1)

    with pytest.raises(ValueError, match="duplicate"):
        InstrumentRegistry(instruments=[instrument, instrument])


def test_instruments_load_registry_merges_catalog_entries(tmp_path: Path) -> None:
    """Extend the default registry with catalog tokens and instruments.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate catalog merge behavior.

    Raises:
        AssertionError: Raised when catalog entries are not applied.
    """

    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text(
        json.dumps(
            {
                "tokens": [{"id": 300, "symbol": "BTC", "decimals": 8}],
                "instruments": [{"instrId": 2, "assetTokenId": 300, "crncyTokenId": 1}],
            }
        ),
        encoding="utf-8",
    )

    registry = instruments_load_registry(str(catalog_path))

    assert registry.instrument_market_name(0) == "SOL/USDC"
    assert registry.instrument_market_name(2) == "BTC/USDC"
    assert registry.instrument_token_metadata(300).decimals == 8


def test_instruments_load_registry_rejects_malformed_catalog(tmp_path: Path) -> None:
    """Raise ValueError for unreadable or malformed catalogs.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate catalog errors.

    Raises:
        AssertionError: Raised when malformed catalogs load silently.
    """

    missing_entry_path = tmp_path / "bad.json"
    missing_entry_path.write_text(json.dumps({"instruments": [{"instrId": 2}]}), encoding="utf-8")

    with pytest.raises(ValueError, match="malformed"):
        instruments_load_registry(str(missing_entry_path))
    with pytest.raises(ValueError, match="could not be loaded"):
        instruments_load_registry(str(tmp_path / "missing.json"))
    assert instruments_load_registry(None).instrument_market_name(0) == "SOL/USDC"
