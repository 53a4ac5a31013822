"""Typed runtime settings with dotenv support and startup validation."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for API runtime, ledger-node access and replay limits.

    Environment variable names map directly to field names in uppercase.
    Example: `rpc_url` reads from `RPC_URL`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        log_level: Root logging level name.
        rpc_url: Ledger-node JSON-RPC endpoint.
        rpc_commitment: Commitment level for ledger-node reads.
        rpc_request_timeout_seconds: Ledger-node HTTP request timeout.
        fetch_batch_size: Transaction bodies fetched concurrently per batch.
        fetch_batch_pause_seconds: Pause between fetch batches.
        fetch_retry_attempts: Total attempts per rate-limited call.
        fetch_backoff_base_seconds: Base retry delay for exponential backoff.
        fetch_backoff_max_seconds: Maximum retry delay cap.
        fetch_jitter_min_multiplier: Minimum retry jitter multiplier.
        fetch_jitter_max_multiplier: Maximum retry jitter multiplier.
        signature_page_size: Signatures requested per listing page.
        timeline_history_limit: Maximum transactions replayed per wallet.
        trades_default_limit: Default transaction count of the trade-log endpoint.
        timeline_default_limit: Default timeline entry limit.
        timeline_max_limit: Maximum allowed timeline entry limit.
        history_directory: Optional directory of decoded JSON history dumps.
        instrument_catalog_path: Optional JSON instrument catalog path.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    rpc_url: str = Field(default="https://api.devnet.solana.com", min_length=1)
    rpc_commitment: str = Field(default="confirmed")
    rpc_request_timeout_seconds: float = Field(default=30.0, gt=0)
    fetch_batch_size: int = Field(default=5, ge=1)
    fetch_batch_pause_seconds: float = Field(default=0.2, ge=0)
    fetch_retry_attempts: int = Field(default=3, ge=1)
    fetch_backoff_base_seconds: float = Field(default=0.5, ge=0)
    fetch_backoff_max_seconds: float = Field(default=8.0, gt=0)
    fetch_jitter_min_multiplier: float = Field(default=0.5, gt=0)
    fetch_jitter_max_multiplier: float = Field(default=1.5, gt=0)
    signature_page_size: int = Field(default=1000, ge=1, le=1000)
    timeline_history_limit: int = Field(default=10000, ge=1)
    trades_default_limit: int = Field(default=5000, ge=1)
    timeline_default_limit: int = Field(default=1000, ge=1)
    timeline_max_limit: int = Field(default=10000, ge=1)
    history_directory: str | None = Field(default=None)
    instrument_catalog_path: str | None = Field(default=None)

    @field_validator("rpc_url", "rpc_commitment")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unsupported log_level={value}")
        return normalized_value

    @field_validator("history_directory", "instrument_catalog_path")
    @classmethod
    def _validate_optional_path(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped_value = value.strip()
        return stripped_value or None

    @field_validator("timeline_max_limit")
    @classmethod
    def _validate_limit_bounds(cls, value: int, info) -> int:
        default_limit = info.data.get("timeline_default_limit", 1000)
        if value < default_limit:
            raise ValueError("timeline_max_limit must be greater than or equal to timeline_default_limit")
        return value

    @field_validator("fetch_backoff_max_seconds")
    @classmethod
    def _validate_backoff_cap_bounds(cls, value: float, info) -> float:
        backoff_base_seconds = float(info.data.get("fetch_backoff_base_seconds", 0.5))
        if value < backoff_base_seconds:
            raise ValueError("fetch_backoff_max_seconds must be greater than or equal to fetch_backoff_base_seconds")
        return value

    @field_validator("fetch_jitter_max_multiplier")
    @classmethod
    def _validate_jitter_bounds(cls, value: float, info) -> float:
        jitter_min_multiplier = float(info.data.get("fetch_jitter_min_multiplier", 0.5))
        if value < jitter_min_multiplier:
            raise ValueError(
                "fetch_jitter_max_multiplier must be greater than or equal to fetch_jitter_min_multiplier"
            )
        return value


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
