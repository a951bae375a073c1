"""
Error collectors.

A collector receives one batch of serialised ErrorRecords per call and raises
on delivery failure; the sink decides what to do with the batch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from faultguard.telemetry.config import TelemetryConfig

logger = logging.getLogger(__name__)


class ErrorCollector(Protocol):
    """Destination for error record batches."""

    async def send(self, batch: list[dict[str, Any]]) -> None:
        ...

    async def aclose(self) -> None:
        ...


class HttpCollector:
    """POSTs each batch as JSON to an HTTP endpoint."""

    def __init__(
        self,
        endpoint: str,
        *,
        headers: dict[str, str] | None = None,
        timeout_seconds: float = 5.0,
        service_name: str = "faultguard",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.service_name = service_name
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=headers or {},
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def send(self, batch: list[dict[str, Any]]) -> None:
        body = {
            "service": self.service_name,
            "sent_at": datetime.now(timezone.utc).isoformat(),
            "records": batch,
        }
        response = await self._client.post(self.endpoint, json=body)
        response.raise_for_status()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class LoggingCollector:
    """Writes records to the framework log; used when no endpoint is configured."""

    async def send(self, batch: list[dict[str, Any]]) -> None:
        for record in batch:
            logger.info(
                "[Telemetry] %s/%s %s",
                record.get("kind"),
                record.get("severity"),
                record.get("message"),
                extra={"event": "telemetry.record", "data": record},
            )

    async def aclose(self) -> None:
        return None


def build_collector(config: TelemetryConfig) -> ErrorCollector:
    if config.endpoint:
        return HttpCollector(
            config.endpoint,
            headers=config.headers,
            timeout_seconds=config.timeout_seconds,
            service_name=config.service_name,
        )
    return LoggingCollector()
