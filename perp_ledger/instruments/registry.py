"""Static instrument and token registry used for market-name enrichment."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Final, Iterable, Mapping

from .interfaces import InstrumentMetadata, MarketNamePort, TokenMetadata

DEFAULT_TOKEN_METADATA: Final[dict[int, TokenMetadata]] = {
    -1: TokenMetadata(symbol="SOL", decimals=9),
    0: TokenMetadata(symbol="DRVS", decimals=8),
    1: TokenMetadata(symbol="USDC", decimals=6),
    2: TokenMetadata(symbol="SOL", decimals=9),
    4: TokenMetadata(symbol="LETTERA", decimals=5),
    6: TokenMetadata(symbol="VELIT", decimals=6),
    8: TokenMetadata(symbol="SUN", decimals=4),
    10: TokenMetadata(symbol="BRSH", decimals=6),
    12: TokenMetadata(symbol="MSHK", decimals=4),
    20: TokenMetadata(symbol="MDVD", decimals=9),
    28: TokenMetadata(symbol="TST", decimals=6),
    16777217: TokenMetadata(symbol="SOL", decimals=9),
    16777220: TokenMetadata(symbol="USDC", decimals=6),
    67108864: TokenMetadata(symbol="LETTERA", decimals=5),
}

# Instrument 0 is the SOL/USDC perpetual; its header is known even when the
# metadata collaborator returns nothing.
DEFAULT_INSTRUMENTS: Final[tuple[InstrumentMetadata, ...]] = (
    InstrumentMetadata(instr_id=0, asset_token_id=16777217, crncy_token_id=1),
)

_FALLBACK_CURRENCY_SYMBOL: Final[str] = "USDC"
_DEFAULT_TOKEN_DECIMALS: Final[int] = 9


class InstrumentRegistry(MarketNamePort):
    """In-memory registry resolving instrument ids to market names."""

    def __init__(
        self,
        instruments: Iterable[InstrumentMetadata] = DEFAULT_INSTRUMENTS,
        tokens: Mapping[int, TokenMetadata] | None = None,
    ):
        """Initialize registry lookup tables.

        Args:
            instruments: Instrument headers to register.
            tokens: Token metadata keyed by token id; defaults to the built-in table.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when one instrument id is registered twice.
        """

        self._tokens = dict(DEFAULT_TOKEN_METADATA if tokens is None else tokens)
        self._instruments: dict[int, InstrumentMetadata] = {}
        for instrument in instruments:
            if instrument.instr_id in self._instruments:
                raise ValueError(f"duplicate instrument registration for instr_id={instrument.instr_id}")
            self._instruments[instrument.instr_id] = instrument

    def instrument_market_name(self, instr_id: int) -> str:
        """Return `<asset>/<currency>` for a registered instrument.

        Args:
            instr_id: Instrument identifier.

        Returns:
            str: Market name; unregistered ids render as `Instrument-<id>`, except
            instrument 0 which is always `SOL/USDC`.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        instrument = self._instruments.get(instr_id)
        if instrument is None:
            return "SOL/USDC" if instr_id == 0 else f"Instrument-{instr_id}"

        asset_metadata = self._tokens.get(instrument.asset_token_id)
        crncy_metadata = self._tokens.get(instrument.crncy_token_id)
        asset_symbol = asset_metadata.symbol if asset_metadata else f"Token-{instrument.asset_token_id}"
        crncy_symbol = crncy_metadata.symbol if crncy_metadata else _FALLBACK_CURRENCY_SYMBOL
        return f"{asset_symbol}/{crncy_symbol}"

    def instrument_token_metadata(self, token_id: int) -> TokenMetadata:
        """Return token metadata, falling back to `Token-<id>` with 9 decimals.

        Args:
            token_id: Token identifier.

        Returns:
            TokenMetadata: Registered or fallback token metadata.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        return self._tokens.get(token_id, TokenMetadata(symbol=f"Token-{token_id}", decimals=_DEFAULT_TOKEN_DECIMALS))


def instruments_load_registry(catalog_path: str | None) -> InstrumentRegistry:
    """Build a registry from defaults, optionally extended by a JSON catalog file.

    The catalog is a JSON object with optional `tokens` (list of
    `{id, symbol, decimals}`) and `instruments` (list of
    `{instrId, assetTokenId, crncyTokenId}`) arrays. Catalog entries override
    built-in entries with the same id.

    Args:
        catalog_path: Optional filesystem path to the catalog JSON.

    Returns:
        InstrumentRegistry: Registry ready for market-name lookups.

    Raises:
        ValueError: Raised when the catalog file is unreadable or malformed.
    """

    if catalog_path is None or not catalog_path.strip():
        return InstrumentRegistry()

    try:
        catalog_payload = json.loads(Path(catalog_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise ValueError(f"instrument catalog could not be loaded from {catalog_path}") from error
    if not isinstance(catalog_payload, dict):
        raise ValueError("instrument catalog must be a JSON object")

    tokens = dict(DEFAULT_TOKEN_METADATA)
    instruments = {instrument.instr_id: instrument for instrument in DEFAULT_INSTRUMENTS}
    try:
        for token_entry in catalog_payload.get("tokens", []):
            tokens[int(token_entry["id"])] = TokenMetadata(
                symbol=str(token_entry["symbol"]),
                decimals=int(token_entry.get("decimals", _DEFAULT_TOKEN_DECIMALS)),
            )
        for instrument_entry in catalog_payload.get("instruments", []):
            instrument = InstrumentMetadata(
                instr_id=int(instrument_entry["instrId"]),
                asset_token_id=int(instrument_entry["assetTokenId"]),
                crncy_token_id=int(instrument_entry["crncyTokenId"]),
            )
            instruments[instrument.instr_id] = instrument
    except (KeyError, TypeError, ValueError) as error:
        raise ValueError(f"instrument catalog entry is malformed: {error}") from error

    return InstrumentRegistry(instruments=instruments.values(), tokens=tokens)


__all__ = [
    "DEFAULT_INSTRUMENTS",
    "DEFAULT_TOKEN_METADATA",
    "InstrumentRegistry",
    "instruments_load_registry",
]
