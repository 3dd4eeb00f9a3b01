"""
runstats data models package.

This package contains the sample, run and series models shared by all components.
"""

from runstats.models.sample import CadenceSample, HeartRateSample, MetricKind, RunContext, RunRecord, Sample, SampleBatch
from runstats.models.series import SeriesStats, SeriesUpdate

__all__ = [
    "CadenceSample",
    "HeartRateSample",
    "MetricKind",
    "RunContext",
    "RunRecord",
    "Sample",
    "SampleBatch",
    "SeriesStats",
    "SeriesUpdate",
]
