"""
Error telemetry.

Bounded, batching sink forwarding ErrorRecords to an external collector.

Usage:
```python
from faultguard.telemetry import ErrorTelemetrySink, HttpCollector

sink = ErrorTelemetrySink(HttpCollector("https://collector.example.com/errors"))
await sink.start()

sink.report(classify(error))

await sink.aclose()
```
"""

from faultguard.telemetry.collector import (
    ErrorCollector,
    HttpCollector,
    LoggingCollector,
    build_collector,
)
from faultguard.telemetry.config import TelemetryConfig
from faultguard.telemetry.sink import (
    ErrorTelemetrySink,
    SinkStats,
    is_reported,
    mark_reported,
)

__all__ = [
    "TelemetryConfig",
    "ErrorCollector",
    "HttpCollector",
    "LoggingCollector",
    "build_collector",
    "ErrorTelemetrySink",
    "SinkStats",
    "is_reported",
    "mark_reported",
]
