"""Open-position API router composition."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from perp_ledger.adapters import LogDecodeError
from perp_ledger.ledger import WalletPnlTimelineService

from ..serializers import api_serialize_open_position


def api_create_positions_router(wallet_service: WalletPnlTimelineService) -> APIRouter:
    """Create router exposing open perpetual positions per wallet.

    Args:
        wallet_service: Wallet service.

    Returns:
        APIRouter: Router exposing `/positions/{wallet}`.

    Raises:
        ValueError: Raised when wallet_service is invalid.
    """

    if wallet_service is None:
        raise ValueError("wallet_service must not be None")

    router = APIRouter(prefix="/positions", tags=["positions"])

    @router.get("/{wallet}")
    def api_positions_list(wallet: str) -> JSONResponse:
        """List open positions from the snapshot source or history reconstruction.

        Args:
            wallet: Wallet address.

        Returns:
            JSONResponse: Open-position envelope payload.

        Raises:
            RuntimeError: Raised when the snapshot source fails unexpectedly.
        """

        try:
            open_positions = wallet_service.ledger_list_open_positions(wallet=wallet)
        except LogDecodeError as error:
            payload = {
                "status": "error",
                "code": "HISTORY_UNAVAILABLE",
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)

        payload = {
            "wallet": wallet,
            "items": [api_serialize_open_position(open_position) for open_position in open_positions],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_positions_router"]
