"""Ingestion coordination: prewarm, live merging, publication and telemetry."""

from .coordinator import NO_DATA_MESSAGES, MetricStream, StatsCoordinator, StreamState, advisory_message
from .publisher import DisplayBoard, DisplayConsumer, DisplayEvent
from .telemetry import LoggingTelemetry, TelemetrySink

__all__ = [
    "NO_DATA_MESSAGES",
    "DisplayBoard",
    "DisplayConsumer",
    "DisplayEvent",
    "LoggingTelemetry",
    "MetricStream",
    "StatsCoordinator",
    "StreamState",
    "TelemetrySink",
    "advisory_message",
]
