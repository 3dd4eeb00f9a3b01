"""
SeriesReducer - authoritative ordered series and statistics for one metric of one run.

The reducer owns the full, timestamp-ordered series and its aggregate
statistics, merges out-of-order live batches into it and produces display
projections on request.

Concurrency: every public operation acquires the reducer's ``asyncio.Lock``.
The merge and the statistics update run without any suspension point while
the lock is held, so a reader never observes a partially merged series.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Generic, TypeVar

from runstats.models import Sample, SeriesStats, SeriesUpdate

from .downsampler import downsample

logger = logging.getLogger(__name__)

SampleT = TypeVar("SampleT", bound=Sample)


def _sorted_unique(samples: Iterable[SampleT]) -> list[SampleT]:
    """Sort by timestamp, keeping the first delivered sample of each timestamp."""
    ordered = sorted(samples, key=lambda sample: sample.timestamp)
    unique: list[SampleT] = []
    for sample in ordered:
        if unique and unique[-1].timestamp == sample.timestamp:
            continue
        unique.append(sample)
    return unique


def merge_series(existing: Sequence[SampleT], batch: Sequence[SampleT]) -> tuple[list[SampleT], list[SampleT]]:
    """Linear merge of two timestamp-ordered, duplicate-free series.

    On a timestamp collision the existing sample is kept and the incoming one
    is discarded.

    Args:
        existing: Current series
        batch: Incoming samples, already sorted and deduplicated

    Returns:
        Tuple of (merged series, samples from ``batch`` that were added)
    """
    merged: list[SampleT] = []
    additions: list[SampleT] = []

    i = j = 0
    n, m = len(existing), len(batch)
    while i < n and j < m:
        current = existing[i]
        incoming = batch[j]
        if incoming.timestamp < current.timestamp:
            merged.append(incoming)
            additions.append(incoming)
            j += 1
        elif incoming.timestamp == current.timestamp:
            merged.append(current)
            i += 1
            j += 1
        else:
            merged.append(current)
            i += 1

    if i < n:
        merged.extend(existing[i:])
    if j < m:
        tail = batch[j:]
        merged.extend(tail)
        additions.extend(tail)

    return merged, additions


class SeriesReducer(Generic[SampleT]):
    """Ordered series plus incrementally maintained statistics.

    One instance exists per (run, metric) pair and is owned by a single
    metric stream.
    """

    def __init__(self, downsample_threshold: int, downsample_limit: int) -> None:
        """Initialize an empty reducer.

        Args:
            downsample_threshold: Series length above which projections are downsampled
            downsample_limit: Target number of display samples when downsampling
        """
        self.downsample_threshold = downsample_threshold
        self.downsample_limit = downsample_limit
        self._samples: list[SampleT] = []
        self._stats: SeriesStats | None = None
        self._lock = asyncio.Lock()

    @property
    def sample_count(self) -> int:
        """Number of samples in the full series."""
        return len(self._samples)

    @property
    def samples(self) -> list[SampleT]:
        """Copy of the full series, ordered by timestamp."""
        return list(self._samples)

    @property
    def stats(self) -> SeriesStats | None:
        return self._stats

    async def reset(self, samples: Iterable[SampleT]) -> SeriesUpdate[SampleT]:
        """Replace the whole series and recompute statistics from scratch.

        Args:
            samples: New series content, in any order

        Returns:
            Projection of the new series
        """
        async with self._lock:
            self._samples = _sorted_unique(samples)
            self._stats = SeriesStats.from_values(sample.value for sample in self._samples)
            logger.debug(f"[Reducer] reset with {len(self._samples)} samples")
            return self._project()

    async def ingest(self, batch: Iterable[SampleT]) -> SeriesUpdate[SampleT]:
        """Merge a batch of samples into the series.

        The batch may be unsorted and may overlap the existing series. Samples
        whose timestamp is already present are ignored, so re-delivery never
        counts twice. Statistics are updated from the added samples only.

        Args:
            batch: Incoming samples

        Returns:
            Projection of the merged series
        """
        incoming = _sorted_unique(batch)
        async with self._lock:
            if not incoming:
                return self._project()

            if not self._samples:
                self._samples = incoming
                self._stats = SeriesStats.from_values(sample.value for sample in incoming)
                return self._project()

            merged, additions = merge_series(self._samples, incoming)
            self._samples = merged

            if additions:
                values = [sample.value for sample in additions]
                if self._stats is None:
                    self._stats = SeriesStats.from_values(values)
                else:
                    self._stats = self._stats.including(values)

            logger.debug(f"[Reducer] ingested {len(incoming)} samples, {len(additions)} new, {len(merged)} total")
            return self._project()

    async def current_update(self) -> SeriesUpdate[SampleT]:
        """Projection of the current state without mutating it."""
        async with self._lock:
            return self._project()

    def _project(self) -> SeriesUpdate[SampleT]:
        if not self._samples:
            return SeriesUpdate(display_samples=[], stats=None, dropped_points=0)

        display, dropped = downsample(self._samples, self.downsample_threshold, self.downsample_limit)
        return SeriesUpdate(display_samples=display, stats=self._stats, dropped_points=dropped)
