"""Typed interfaces for instrument and token metadata lookups."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class TokenMetadata:
    """Display metadata for one on-chain token.

    Attributes:
        symbol: Human-readable token symbol.
        decimals: Fixed-point decimals of raw token amounts.
    """

    symbol: str
    decimals: int


@dataclass(frozen=True)
class InstrumentMetadata:
    """Header metadata for one tradable instrument.

    Attributes:
        instr_id: Instrument identifier used by program logs.
        asset_token_id: Token identifier of the traded asset.
        crncy_token_id: Token identifier of the quote currency.
    """

    instr_id: int
    asset_token_id: int
    crncy_token_id: int


class MarketNamePort(Protocol):
    """Port definition for instrument display-name resolution."""

    def instrument_market_name(self, instr_id: int) -> str:
        """Return the human-readable market name for one instrument.

        Args:
            instr_id: Instrument identifier.

        Returns:
            str: Market name such as `SOL/USDC`.

        Raises:
            RuntimeError: Implementations should fall back rather than raise.
        """

    def instrument_token_metadata(self, token_id: int) -> TokenMetadata:
        """Return display metadata for one token.

        Args:
            token_id: Token identifier.

        Returns:
            TokenMetadata: Registered or fallback token metadata.

        Raises:
            RuntimeError: Implementations should fall back rather than raise.
        """
