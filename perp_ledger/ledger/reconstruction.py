"""Open-position selection with history-reconstruction fallback."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Final, Iterable

from perp_ledger.domain import ScaleProfile
from perp_ledger.instruments import MarketNamePort
from perp_ledger.mapping import (
    BASE_CHANGE_FIELDS,
    DecodedTransaction,
    RecordDecodeError,
    mapping_first_scaled_value,
    mapping_optional_int,
)

from .interfaces import OpenPositionSnapshot, PositionSnapshotPort

logger = logging.getLogger(__name__)

RECONSTRUCTION_MIN_CHANGE: Final[Decimal] = Decimal("1e-9")
RECONSTRUCTION_MIN_NET_SIZE: Final[Decimal] = Decimal("0.000001")


def ledger_reconstruct_open_positions(
    transactions: Iterable[DecodedTransaction],
    market_names: MarketNamePort,
    scale_profile: ScaleProfile | None = None,
) -> list[OpenPositionSnapshot]:
    """Approximate open positions by summing signed base changes per instrument.

    Only records carrying their own instrument id and a base-change field
    contribute. This ignores every ledger rule except netting and is accurate
    only when history is complete. A transaction with a malformed record is
    skipped as a whole and the remaining history is still netted.

    Args:
        transactions: Decoded wallet history in any order.
        market_names: Market-name resolver.
        scale_profile: Optional field scale overrides.

    Returns:
        list[OpenPositionSnapshot]: Reconstructed positions ordered by first appearance.

    Raises:
        RuntimeError: Malformed transactions are skipped, not raised.
    """

    resolved_profile = scale_profile or ScaleProfile()
    net_sizes: dict[int, Decimal] = {}
    for transaction in transactions:
        try:
            changes = _ledger_transaction_base_changes(transaction, resolved_profile)
        except RecordDecodeError as error:
            logger.warning("skipping reconstruction transaction signature=%s reason=%s", transaction.signature, error)
            continue
        for instr_id, change in changes:
            net_sizes[instr_id] = net_sizes.get(instr_id, Decimal("0")) + change

    positions: list[OpenPositionSnapshot] = []
    for instr_id, net_size in net_sizes.items():
        if abs(net_size) <= RECONSTRUCTION_MIN_NET_SIZE:
            continue
        positions.append(
            OpenPositionSnapshot(
                instr_id=instr_id,
                market=market_names.instrument_market_name(instr_id),
                size=net_size,
                side="long" if net_size > 0 else "short",
                is_reconstructed=True,
            )
        )
    return positions


def ledger_select_open_positions(
    wallet: str,
    primary_source: PositionSnapshotPort | None,
    history_loader: Callable[[], Iterable[DecodedTransaction]],
    market_names: MarketNamePort,
    scale_profile: ScaleProfile | None = None,
) -> list[OpenPositionSnapshot]:
    """Return primary snapshot positions, reconstructing from history when there are none.

    History is loaded only when the primary source is absent or reports no
    open positions.

    Args:
        wallet: Wallet address.
        primary_source: Optional live snapshot reader.
        history_loader: Zero-argument callable returning decoded wallet history.
        market_names: Market-name resolver.
        scale_profile: Optional field scale overrides.

    Returns:
        list[OpenPositionSnapshot]: Open positions.

    Raises:
        LogDecodeError: Propagated from history_loader when history cannot be decoded.
    """

    if primary_source is not None:
        primary_positions = primary_source.snapshot_list_open_positions(wallet)
        if primary_positions:
            return list(primary_positions)

    logger.info("reconstructing open positions from history wallet=%s", wallet)
    return ledger_reconstruct_open_positions(history_loader(), market_names, scale_profile)


__all__ = [
    "RECONSTRUCTION_MIN_CHANGE",
    "RECONSTRUCTION_MIN_NET_SIZE",
    "ledger_reconstruct_open_positions",
    "ledger_select_open_positions",
]


def _ledger_transaction_base_changes(
    transaction: DecodedTransaction,
    scale_profile: ScaleProfile,
) -> list[tuple[int, Decimal]]:
    """Return the signed base changes one transaction contributes per instrument.

    Raises:
        RecordDecodeError: Raised when one contributing record carries malformed fields.
    """

    changes: list[tuple[int, Decimal]] = []
    for record in transaction.records:
        instr_id = mapping_optional_int(record, "instrId")
        if instr_id is None or not any(record.get(field_name) is not None for field_name in BASE_CHANGE_FIELDS):
            continue
        change = mapping_first_scaled_value(record, BASE_CHANGE_FIELDS, scale_profile.base_decimals)
        if abs(change) >= RECONSTRUCTION_MIN_CHANGE:
            changes.append((instr_id, change))
    return changes
