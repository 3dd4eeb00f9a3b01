"""
SampleSource - abstract interface of a per-metric sample provider.

A source offers a one-shot bounded lookback read (``prewarm``) and a live
subscription (``stream``). An unavailable source is not an error: prewarm
returns an empty list and the stream ends without yielding.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from runstats.models import MetricKind, RunContext, Sample, SampleBatch


class SampleSource(ABC):
    """Abstract base class for sample providers."""

    @abstractmethod
    async def prewarm(self, kind: MetricKind, run: RunContext, lookback_seconds: float) -> list[Sample]:  # pragma: no cover - interface only
        """Read the most recent samples of a metric.

        Args:
            kind: Metric to read
            run: Run being observed
            lookback_seconds: Window measured back from the end of the run; <= 0 reads the whole run

        Returns:
            Samples in any order, possibly empty
        """
        raise NotImplementedError

    @abstractmethod
    def stream(self, kind: MetricKind, run: RunContext) -> AsyncIterator[SampleBatch]:  # pragma: no cover - interface only
        """Subscribe to live samples of a metric.

        The returned async iterator releases its underlying subscription when
        it ends, when it is closed with ``aclose()`` and when the consuming
        task is cancelled.
        """
        raise NotImplementedError

    def close(self) -> None:  # noqa: B027
        """Release resources held by the source.

        Default implementation does nothing. Override if cleanup is needed.
        """
