"""
StoredSampleSource - samples persisted with a finished run.

The stored series never changes, so the stream delivers it as one batch and ends.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable

from runstats.exceptions import ArchiveNotFoundError, RunNotFoundError
from runstats.models import MetricKind, RunContext, RunRecord, Sample, SampleBatch
from runstats.storage import RunStore
from runstats.utils import utc_now

from .base import SampleSource

logger = logging.getLogger(__name__)

RecordLoader = Callable[[RunContext], RunRecord | None]


class StoredSampleSource(SampleSource):
    """Sample source over stored run records."""

    def __init__(self, loader: RecordLoader) -> None:
        """Initialize the source.

        Args:
            loader: Blocking callable returning the stored record of a run, or None
        """
        self._loader = loader

    @classmethod
    def from_store(cls, store: RunStore) -> StoredSampleSource:
        """Source reading Parquet archives of a data directory."""

        def load(run: RunContext) -> RunRecord | None:
            try:
                return store.load_record(run.project, run.name)
            except (RunNotFoundError, ArchiveNotFoundError, ValueError) as e:
                logger.debug(f"[StoredSource] No stored record for {run.project}/{run.name}: {e}")
                return None

        return cls(load)

    @classmethod
    def from_records(cls, records: Iterable[RunRecord]) -> StoredSampleSource:
        """Source over in-memory records, looked up by run id."""
        by_id = {record.context.run_id: record for record in records}
        return cls(lambda run: by_id.get(run.run_id))

    async def _samples(self, kind: MetricKind, run: RunContext) -> list[Sample]:
        try:
            record = await asyncio.to_thread(self._loader, run)
        except OSError as e:
            logger.warning(f"[StoredSource] Could not load {run.project}/{run.name}: {e}")
            return []
        if record is None:
            return []
        return record.samples_for(kind)

    async def prewarm(self, kind: MetricKind, run: RunContext, lookback_seconds: float) -> list[Sample]:
        samples = await self._samples(kind, run)
        if lookback_seconds <= 0:
            return samples
        cutoff = max(0.0, run.duration - lookback_seconds)
        return [sample for sample in samples if sample.relative_time >= cutoff]

    async def stream(self, kind: MetricKind, run: RunContext) -> AsyncIterator[SampleBatch]:
        samples = await self._samples(kind, run)
        if samples:
            yield SampleBatch(samples=samples, received_at=utc_now())
