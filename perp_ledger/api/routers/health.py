"""Health endpoint router composition for app and ledger-node checks."""

import time

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from perp_ledger.adapters import LedgerNodeHealthPort


def api_create_health_router(node_health_service: LedgerNodeHealthPort) -> APIRouter:
    """Create health-check router probing the ledger node.

    Args:
        node_health_service: Ledger-node probe interface.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when node_health_service is invalid.
    """

    if node_health_service is None:
        raise ValueError("node_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Probe the ledger node and report probe latency.

        Returns:
            JSONResponse: 200 when the node answers healthy, 503 otherwise.

        Raises:
            RuntimeError: Probe failures are reported in the payload, not raised.
        """

        probe_started_at = time.monotonic()
        try:
            node_health = node_health_service.node_check_health()
        except ConnectionError as error:
            return _api_health_response(
                node_health_service,
                overall_status="degraded",
                node_status="down",
                detail=str(error),
                probe_started_at=probe_started_at,
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return _api_health_response(
            node_health_service,
            overall_status="ok",
            node_status=node_health.status,
            detail=node_health.detail,
            probe_started_at=probe_started_at,
            status_code=status.HTTP_200_OK,
        )

    return router


def _api_health_response(
    node_health_service: LedgerNodeHealthPort,
    overall_status: str,
    node_status: str,
    detail: str,
    probe_started_at: float,
    status_code: int,
) -> JSONResponse:
    """Render one health payload with the node target and probe latency."""

    payload = {
        "status": overall_status,
        "app": "up",
        "ledger_node": node_status,
        "detail": detail,
        "target": node_health_service.node_connection_label(),
        "probe_ms": round((time.monotonic() - probe_started_at) * 1000, 1),
    }
    return JSONResponse(content=payload, status_code=status_code)
