"""
Models for run statistics responses.
"""

from pydantic import BaseModel

from runstats.models import MetricKind, SeriesUpdate


class MetricStatsResponse(BaseModel):
    """Snapshot of one metric of a run."""

    project: str
    run: str
    metric: MetricKind
    update: SeriesUpdate
    message: str | None = None
    is_finished: bool = False
