"""PnL timeline API router composition for wallet replay reads."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from perp_ledger.adapters import LogDecodeError
from perp_ledger.config import AppSettings
from perp_ledger.ledger import ReplayOptions, WalletPnlTimelineService

from ..serializers import api_serialize_wallet_timeline


def api_create_pnl_timeline_router(
    settings: AppSettings,
    wallet_service: WalletPnlTimelineService,
) -> APIRouter:
    """Create router exposing the per-wallet perpetual PnL timeline.

    Args:
        settings: Runtime settings used for limit defaults.
        wallet_service: Wallet replay service.

    Returns:
        APIRouter: Router exposing `/perp/pnl-timeline/{wallet}`.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if wallet_service is None:
        raise ValueError("wallet_service must not be None")

    router = APIRouter(prefix="/perp", tags=["pnl-timeline"])

    @router.get("/pnl-timeline/{wallet}")
    def api_pnl_timeline(
        wallet: str,
        instr_id: int | None = Query(default=None, alias="instrId"),
        limit: int = Query(default=settings.timeline_default_limit, ge=1),
    ) -> JSONResponse:
        """Replay wallet history into a chronological PnL timeline.

        Args:
            wallet: Wallet address.
            instr_id: Optional instrument filter applied to the timeline only.
            limit: Maximum number of most recent timeline entries.

        Returns:
            JSONResponse: Timeline, summary and total-event payload.

        Raises:
            RuntimeError: Raised when replay fails unexpectedly.
        """

        applied_limit = min(limit, settings.timeline_max_limit)
        try:
            timeline_result = wallet_service.ledger_build_wallet_timeline(
                wallet=wallet,
                options=ReplayOptions(instrument_filter=instr_id, limit=applied_limit),
            )
        except LogDecodeError as error:
            payload = {
                "status": "error",
                "code": "HISTORY_UNAVAILABLE",
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)

        return JSONResponse(content=api_serialize_wallet_timeline(timeline_result), status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_pnl_timeline_router"]
