"""
runstats - running statistics of a run, live.

Merges heart rate and cadence samples of a run into ordered series with
aggregate statistics and downsampled display projections, prewarming from a
bounded lookback read and tailing the recording as it grows.

Examples:
    >>> from runstats import DisplayBoard, StatsCoordinator, RunStore, default_sample_source
    >>> store = RunStore(data_dir)
    >>> run = store.load_context("athlete", "morning-10k")
    >>> board = DisplayBoard()
    >>> async with StatsCoordinator(run, default_sample_source(data_dir), board) as coordinator:
    ...     await coordinator.wait()
"""

from runstats.logger import setup_logger  # noqa: F401
from runstats.ingest import DisplayBoard, LoggingTelemetry, MetricStream, StatsCoordinator, StreamState
from runstats.models import CadenceSample, HeartRateSample, MetricKind, RunContext, Sample, SampleBatch, SeriesStats, SeriesUpdate
from runstats.series import SeriesReducer, downsample
from runstats.sources import default_sample_source
from runstats.storage import RunStore, RunWriter

__version__ = "0.1.0"
__all__ = [
    "CadenceSample",
    "DisplayBoard",
    "HeartRateSample",
    "LoggingTelemetry",
    "MetricKind",
    "MetricStream",
    "RunContext",
    "RunStore",
    "RunWriter",
    "Sample",
    "SampleBatch",
    "SeriesReducer",
    "SeriesStats",
    "SeriesUpdate",
    "StatsCoordinator",
    "StreamState",
    "default_sample_source",
    "downsample",
]
