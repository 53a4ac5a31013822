"""FastAPI application factory for the perpetual PnL ledger service."""

from fastapi import FastAPI

from perp_ledger.adapters import LedgerNodeHealthPort
from perp_ledger.config import AppSettings
from perp_ledger.ledger import WalletPnlTimelineService

from .routers import (
    api_create_health_router,
    api_create_pnl_timeline_router,
    api_create_positions_router,
    api_create_trades_router,
)


def create_api_application(
    settings: AppSettings,
    node_health_service: LedgerNodeHealthPort,
    wallet_service: WalletPnlTimelineService,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata and limits.
        node_health_service: Ledger-node health service used by health endpoints.
        wallet_service: Wallet replay, trade-log and open-position service.

    Returns:
        FastAPI: Framework application instance with all routers mounted.

    Raises:
        ValueError: Raised when router dependencies are invalid.
    """
    application = FastAPI(title="Perp PnL Ledger")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return a minimal foundation response for bootstrap verification.

        Returns:
            dict[str, str]: Minimal response for API framework verification.

        Raises:
            RuntimeError: Raised if route handler cannot produce a response.
        """

        return {
            "service": "perp-pnl-ledger",
            "status": "foundation-ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(node_health_service=node_health_service))
    application.include_router(api_create_pnl_timeline_router(settings=settings, wallet_service=wallet_service))
    application.include_router(api_create_trades_router(settings=settings, wallet_service=wallet_service))
    application.include_router(api_create_positions_router(wallet_service=wallet_service))

    return application
