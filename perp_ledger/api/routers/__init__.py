"""API router package for endpoint composition."""

from .health import api_create_health_router
from .pnl_timeline import api_create_pnl_timeline_router
from .positions import api_create_positions_router
from .trades import api_create_trades_router

__all__ = [
	"api_create_health_router",
	"api_create_pnl_timeline_router",
	"api_create_positions_router",
	"api_create_trades_router",
]
