"""
Telemetry configuration.
"""

from pydantic import BaseModel, Field


class TelemetryConfig(BaseModel):
    """Telemetry configuration."""

    enabled: bool = Field(
        default=True,
        description="Forward error records to a collector",
    )

    endpoint: str | None = Field(
        default=None,
        description="Collector URL receiving JSON batches; logs locally when unset",
    )

    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra HTTP headers (e.g. auth)",
    )

    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Collector request timeout",
    )

    service_name: str = Field(
        default="faultguard",
        description="Service name attached to every batch",
    )

    queue_capacity: int = Field(
        default=1000,
        ge=1,
        description="Records held in memory; the oldest is evicted beyond this",
    )

    flush_interval_ms: int = Field(
        default=5000,
        gt=0,
        description="Periodic flush interval (ms)",
    )

    batch_size: int = Field(
        default=100,
        ge=1,
        description="Records per flush; reaching it triggers a flush",
    )

    recent_window: int = Field(
        default=100,
        ge=1,
        description="Records kept for local diagnostics",
    )
