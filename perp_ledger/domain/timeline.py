"""Block-time rendering and history-fetch diagnostics helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one history-fetch stage event for the replay diagnostics timeline.

    Args:
        stage: Fetch stage (`signatures`, `transactions`, `decode`, `load`).
        status: Stage outcome (`completed`, `truncated`).
        details: Optional stage counters.

    Returns:
        dict[str, object]: JSON-serializable stage event.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    stage_event: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
    }
    if details is not None:
        stage_event["details"] = dict(details)
    return stage_event


def domain_unix_timestamp_to_utc_iso(timestamp: int) -> str | None:
    """Render a block time (unix seconds) as a UTC ISO-8601 string.

    Args:
        timestamp: Unix timestamp in seconds; zero means unknown.

    Returns:
        str | None: UTC ISO-8601 timestamp, or None for unknown block time.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not timestamp:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).isoformat()
