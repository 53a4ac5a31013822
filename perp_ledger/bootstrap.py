"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from perp_ledger.adapters import (
    JsonDirectoryHistorySource,
    LogDecoderPort,
    RpcTransactionHistorySource,
    SolanaRpcClient,
    TransactionHistoryPort,
)
from perp_ledger.api import create_api_application
from perp_ledger.config import AppSettings, SettingsLoadError, config_load_settings
from perp_ledger.instruments import instruments_load_registry
from perp_ledger.ledger import PositionSnapshotPort, WalletPnlTimelineService


def bootstrap_create_rpc_client(settings: AppSettings) -> SolanaRpcClient:
    """Build the ledger-node client from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        SolanaRpcClient: Configured ledger-node client.

    Raises:
        ValueError: Raised when client config values are invalid.
    """

    return SolanaRpcClient(
        rpc_url=settings.rpc_url,
        commitment=settings.rpc_commitment,
        request_timeout_seconds=settings.rpc_request_timeout_seconds,
        batch_size=settings.fetch_batch_size,
        batch_pause_seconds=settings.fetch_batch_pause_seconds,
        retry_attempts=settings.fetch_retry_attempts,
        retry_backoff_base_seconds=settings.fetch_backoff_base_seconds,
        retry_max_backoff_seconds=settings.fetch_backoff_max_seconds,
        jitter_min_multiplier=settings.fetch_jitter_min_multiplier,
        jitter_max_multiplier=settings.fetch_jitter_max_multiplier,
        signature_page_size=settings.signature_page_size,
    )


def bootstrap_create_history_source(
    settings: AppSettings,
    rpc_client: SolanaRpcClient,
    log_decoder: LogDecoderPort | None = None,
) -> TransactionHistoryPort:
    """Select the wallet history source.

    A configured history directory takes precedence; otherwise the ledger node
    is used and a log decoder must be supplied.

    Args:
        settings: Validated runtime settings.
        rpc_client: Ledger-node client.
        log_decoder: Optional program log decoder.

    Returns:
        TransactionHistoryPort: Selected history source.

    Raises:
        SettingsLoadError: Raised when neither a history directory nor a decoder is available.
    """

    if settings.history_directory is not None:
        return JsonDirectoryHistorySource(history_directory=settings.history_directory)
    if log_decoder is None:
        raise SettingsLoadError(
            "Startup configuration validation failed. Set HISTORY_DIRECTORY or supply a log decoder."
        )
    return RpcTransactionHistorySource(rpc_client=rpc_client, log_decoder=log_decoder)


def bootstrap_create_wallet_service(
    settings: AppSettings,
    rpc_client: SolanaRpcClient,
    log_decoder: LogDecoderPort | None = None,
    snapshot_source: PositionSnapshotPort | None = None,
) -> WalletPnlTimelineService:
    """Assemble the wallet service.

    Args:
        settings: Validated runtime settings.
        rpc_client: Ledger-node client.
        log_decoder: Optional program log decoder.
        snapshot_source: Optional live open-position reader.

    Returns:
        WalletPnlTimelineService: Fully wired wallet service.

    Raises:
        SettingsLoadError: Raised when no history source can be built.
        ValueError: Raised when the instrument catalog is invalid.
    """

    return WalletPnlTimelineService(
        history_source=bootstrap_create_history_source(settings, rpc_client, log_decoder),
        market_names=instruments_load_registry(settings.instrument_catalog_path),
        snapshot_source=snapshot_source,
        history_limit=settings.timeline_history_limit,
    )


def bootstrap_create_application(
    log_decoder: LogDecoderPort | None = None,
    snapshot_source: PositionSnapshotPort | None = None,
) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        log_decoder: Optional program log decoder for ledger-node history.
        snapshot_source: Optional live open-position reader.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    rpc_client = bootstrap_create_rpc_client(settings)
    wallet_service = bootstrap_create_wallet_service(
        settings=settings,
        rpc_client=rpc_client,
        log_decoder=log_decoder,
        snapshot_source=snapshot_source,
    )
    return create_api_application(
        settings=settings,
        node_health_service=rpc_client,
        wallet_service=wallet_service,
    )
