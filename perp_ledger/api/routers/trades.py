"""Trade-log API router composition for enriched per-transaction log reads."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from perp_ledger.adapters import LogDecodeError
from perp_ledger.config import AppSettings
from perp_ledger.ledger import WalletPnlTimelineService

from ..serializers import api_serialize_json_value


def api_create_trades_router(
    settings: AppSettings,
    wallet_service: WalletPnlTimelineService,
) -> APIRouter:
    """Create router exposing enriched decoded logs per wallet transaction.

    Args:
        settings: Runtime settings used for limit defaults.
        wallet_service: Wallet service.

    Returns:
        APIRouter: Router exposing `/trades/{wallet}`.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if wallet_service is None:
        raise ValueError("wallet_service must not be None")

    router = APIRouter(prefix="/trades", tags=["trades"])

    @router.get("/{wallet}")
    def api_trades_list(
        wallet: str,
        limit: int = Query(default=settings.trades_default_limit, ge=1),
    ) -> JSONResponse:
        """List enriched decoded logs for the most recent wallet transactions.

        Args:
            wallet: Wallet address.
            limit: Maximum number of most recent transactions.

        Returns:
            JSONResponse: Transaction list envelope payload, newest first.

        Raises:
            RuntimeError: Raised when enrichment fails unexpectedly.
        """

        applied_limit = min(limit, settings.timeline_history_limit)
        try:
            wallet_logs = wallet_service.ledger_list_wallet_logs(wallet=wallet, limit=applied_limit)
        except LogDecodeError as error:
            payload = {
                "status": "error",
                "code": "HISTORY_UNAVAILABLE",
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)

        payload = {
            "wallet": wallet,
            "items": api_serialize_json_value(wallet_logs),
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "returned": len(wallet_logs),
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_trades_router"]
