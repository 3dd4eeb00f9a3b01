"""
Two-step fallback between a primary and a secondary sample source.

The primary source (live log) is asked first; the secondary one (stored
record) is only consulted when the primary yields nothing.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from pathlib import Path

from runstats.models import MetricKind, RunContext, Sample, SampleBatch
from runstats.storage import RunStore

from .anchors import AnchorStore
from .base import SampleSource
from .live import LiveFileSampleSource
from .stored import StoredSampleSource

logger = logging.getLogger(__name__)


async def prewarm_with_fallback(
    primary: SampleSource,
    fallback: SampleSource,
    kind: MetricKind,
    run: RunContext,
    lookback_seconds: float,
) -> list[Sample]:
    """Prewarm from ``primary``; use ``fallback`` only if that returned nothing."""
    samples = await primary.prewarm(kind, run, lookback_seconds)
    if samples:
        return samples
    logger.debug(f"[Fallback] Primary prewarm of {kind.value} empty, using fallback")
    return await fallback.prewarm(kind, run, lookback_seconds)


async def stream_with_fallback(
    primary: SampleSource,
    fallback: SampleSource,
    kind: MetricKind,
    run: RunContext,
) -> AsyncIterator[SampleBatch]:
    """Stream from ``primary``; if it ends without a batch, stream from ``fallback``."""
    delivered = False
    async with contextlib.aclosing(primary.stream(kind, run)) as batches:
        async for batch in batches:
            delivered = True
            yield batch

    if delivered:
        return

    logger.debug(f"[Fallback] Primary stream of {kind.value} ended empty, using fallback")
    async with contextlib.aclosing(fallback.stream(kind, run)) as batches:
        async for batch in batches:
            yield batch


class FallbackSampleSource(SampleSource):
    """Sample source composed of a primary and a fallback source."""

    def __init__(self, primary: SampleSource, fallback: SampleSource) -> None:
        self.primary = primary
        self.fallback = fallback

    async def prewarm(self, kind: MetricKind, run: RunContext, lookback_seconds: float) -> list[Sample]:
        return await prewarm_with_fallback(self.primary, self.fallback, kind, run, lookback_seconds)

    def stream(self, kind: MetricKind, run: RunContext) -> AsyncIterator[SampleBatch]:
        return stream_with_fallback(self.primary, self.fallback, kind, run)

    def close(self) -> None:
        self.primary.close()
        self.fallback.close()


def default_sample_source(data_dir: str | Path, resume: bool = False) -> FallbackSampleSource:
    """Live log source with the stored archive as fallback.

    Args:
        data_dir: Data directory
        resume: Resume live streams from saved anchors
    """
    anchors = AnchorStore.for_data_dir(data_dir) if resume else None
    return FallbackSampleSource(
        LiveFileSampleSource(data_dir, anchors=anchors),
        StoredSampleSource.from_store(RunStore(data_dir)),
    )
