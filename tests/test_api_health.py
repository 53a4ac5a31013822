"""Tests for API health endpoint behavior.

These tests validate deterministic response behavior for healthy and
ledger-node-unavailable states.
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from perp_ledger.api.application import create_api_application
from perp_ledger.config import AppSettings
from perp_ledger.domain import HealthStatus
from perp_ledger.ledger import ReplayResult, WalletTimelineResult


class _HealthyNodeService:
    """Test double that simulates a healthy ledger node."""

    def node_connection_label(self) -> str:
        """Return deterministic target label.

        Returns:
            str: Health target label.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return "https://rpc.test"

    def node_check_health(self) -> HealthStatus:
        """Return healthy node result.

        Returns:
            HealthStatus: Healthy node response.

        Raises:
            ConnectionError: Never raised by this test double.
        """

        return HealthStatus(status="ok", detail="ledger node health verified")


class _FailingNodeService:
    """Test double that simulates a ledger-node connectivity failure."""

    def node_connection_label(self) -> str:
        """Return deterministic target label.

        Returns:
            str: Health target label.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return "https://rpc.test"

    def node_check_health(self) -> HealthStatus:
        """Raise deterministic connection error.

        Returns:
            HealthStatus: This method does not return.

        Raises:
            ConnectionError: Always raised by this test double.
        """

        raise ConnectionError("ledger node health check failed")


class _WalletServiceStub:
    """Test double for wallet service dependency in health tests."""

    def ledger_build_wallet_timeline(self, wallet: str, options: object = None) -> WalletTimelineResult:
        """Return an empty replay.

        Args:
            wallet: Wallet address.
            options: Replay options.

        Returns:
            WalletTimelineResult: Empty replay.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        _ = options
        return WalletTimelineResult(wallet=wallet, replay=ReplayResult(timeline=(), total_realized_pnl=Decimal("0")))


def _build_settings() -> AppSettings:
    """Create test settings object.

    Returns:
        AppSettings: Deterministic test settings for API creation.

    Raises:
        ValueError: Raised by AppSettings when values are invalid.
    """

    return AppSettings(environment_name="test", rpc_url="https://rpc.test")


def test_api_health_returns_success_when_ledger_node_is_available() -> None:
    """Return HTTP 200 and healthy payload when the node reports success.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(_build_settings(), _HealthyNodeService(), _WalletServiceStub())
    client = TestClient(application)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["app"] == "up"
    assert response.json()["ledger_node"] == "ok"
    assert response.json()["target"] == "https://rpc.test"
    assert response.json()["probe_ms"] >= 0


def test_api_health_returns_service_unavailable_when_ledger_node_is_down() -> None:
    """Return HTTP 503 and degraded payload when the node reports failure.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(_build_settings(), _FailingNodeService(), _WalletServiceStub())
    client = TestClient(application)

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["app"] == "up"
    assert response.json()["ledger_node"] == "down"


def test_api_foundation_index_reports_service_identity() -> None:
    """Return the foundation index payload with the environment label.

    Returns:
        None: Assertions validate foundation response.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    client = TestClient(create_api_application(_build_settings(), _HealthyNodeService(), _WalletServiceStub()))

    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"service": "perp-pnl-ledger", "status": "foundation-ready", "environment": "test"}
