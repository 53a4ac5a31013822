"""Health contract returned by ledger-node probes."""

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthStatus:
    """Outcome of one ledger-node health probe.

    Attributes:
        status: Node status marker (`ok` when the probe succeeded).
        detail: Probe diagnostics shown on the `/health` payload.
    """

    status: str
    detail: str
