"""
Pipeline telemetry.

Latency and dropped-point measurements are written to a telemetry sink.
Recording is best effort: callers swallow sink errors and a sink must not block.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Protocol

from runstats.models import MetricKind

logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Write-only receiver of pipeline measurements."""

    def record_first_paint(self, kind: MetricKind, milliseconds: float) -> None: ...

    def record_ingest_latency(self, kind: MetricKind, milliseconds: float) -> None: ...

    def record_dropped_points(self, kind: MetricKind, count: int) -> None: ...


class LoggingTelemetry:
    """Telemetry sink that logs each measurement and keeps the recent ones in memory."""

    def __init__(self, history: int = 1024) -> None:
        self.first_paint_ms: dict[MetricKind, float] = {}
        self.ingest_latency_ms: dict[MetricKind, deque[float]] = {kind: deque(maxlen=history) for kind in MetricKind}
        self.dropped_points: dict[MetricKind, deque[int]] = {kind: deque(maxlen=history) for kind in MetricKind}

    def record_first_paint(self, kind: MetricKind, milliseconds: float) -> None:
        self.first_paint_ms[kind] = milliseconds
        logger.info(f"stats.{kind.value}_first_paint_ms={milliseconds:.2f}")

    def record_ingest_latency(self, kind: MetricKind, milliseconds: float) -> None:
        self.ingest_latency_ms[kind].append(milliseconds)
        logger.debug(f"stats.{kind.value}_ingest_to_ui_ms={milliseconds:.2f}")

    def record_dropped_points(self, kind: MetricKind, count: int) -> None:
        self.dropped_points[kind].append(count)
        logger.debug(f"stats.{kind.value}_points_dropped={count}")
