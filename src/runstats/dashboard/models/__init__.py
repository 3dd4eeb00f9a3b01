"""Response models of the dashboard API."""

from .stats import MetricStatsResponse

__all__ = ["MetricStatsResponse"]
