"""
Ingestion coordination per run.

A ``MetricStream`` drives one metric of one run through

    IDLE -> PREWARMING -> STREAMING -> FINISHED
      \\__________\\____________\\______> CANCELLED

prewarming its reducer with a bounded lookback read, then merging live
batches coalesced over a time window, and publishing every resulting update.
A ``StatsCoordinator`` runs the heart rate and cadence streams of a run as
independent asyncio tasks.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from runstats.config import StatsSettings, get_settings
from runstats.models import MetricKind, RunContext, Sample, SeriesUpdate
from runstats.series import SeriesReducer
from runstats.sources import SampleSource
from runstats.utils import utc_now

from .publisher import DisplayConsumer
from .telemetry import LoggingTelemetry, TelemetrySink

logger = logging.getLogger(__name__)

NO_DATA_MESSAGES = {
    MetricKind.HEART_RATE: "No heart rate data available",
    MetricKind.CADENCE: "Not enough cadence data for this run.",
}


def advisory_message(kind: MetricKind, update: SeriesUpdate | None, min_samples: int) -> str | None:
    """Message shown next to a metric whose display series is empty or too short."""
    shown = len(update.display_samples) if update is not None else 0
    if shown == 0 or shown < min_samples:
        return NO_DATA_MESSAGES[kind]
    return None


class StreamState(Enum):
    """Lifecycle of a metric stream."""

    IDLE = "idle"
    PREWARMING = "prewarming"
    STREAMING = "streaming"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class MetricStream:
    """Prewarm, live ingestion and publication for one metric of one run.

    The stream exclusively owns its reducer. All reducer calls happen
    sequentially inside the stream's task: prewarm completes before streaming
    starts and each flush waits for the previous one.
    """

    def __init__(
        self,
        kind: MetricKind,
        run: RunContext,
        source: SampleSource,
        consumer: DisplayConsumer,
        settings: StatsSettings | None = None,
        telemetry: TelemetrySink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an idle stream.

        Args:
            kind: Metric handled by this stream
            run: Run being observed
            source: Sample source for prewarm and live batches
            consumer: Receiver of published updates
            settings: Pipeline settings (default: global settings)
            telemetry: Telemetry sink (default: logging sink)
            clock: Monotonic clock in seconds, used for flush coalescing and first paint latency
        """
        self.kind = kind
        self.run = run
        self.source = source
        self.consumer = consumer
        self.settings = settings or get_settings()
        self.telemetry = telemetry if telemetry is not None else LoggingTelemetry()
        self._clock = clock

        limits = self.settings.limits_for(kind)
        self.min_samples = limits.min_samples
        self.reducer: SeriesReducer[Sample] = SeriesReducer(limits.downsample_threshold, limits.downsample_limit)

        self._state = StreamState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._cancel_requested = False
        self._appear_time: float | None = None
        self._first_paint_recorded = False
        self.publications = 0

    @property
    def state(self) -> StreamState:
        return self._state

    def start(self) -> asyncio.Task[None]:
        """Start prewarming and streaming. Calling it again returns the running task."""
        if self._task is not None:
            return self._task
        self._appear_time = self._clock()
        self._task = asyncio.create_task(self._run(), name=f"stats-{self.kind.value}-{self.run.run_id}")
        return self._task

    def cancel(self) -> None:
        """Request cancellation. Nothing is published after this returns."""
        self._cancel_requested = True
        self._state = StreamState.CANCELLED
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the stream's task has ended (finished, cancelled or failed)."""
        if self._task is None:
            return
        await asyncio.gather(self._task, return_exceptions=True)

    async def _run(self) -> None:
        try:
            await self._prewarm()
            if self._cancel_requested:
                return
            self._state = StreamState.STREAMING
            await self._consume()
            if not self._cancel_requested:
                self._state = StreamState.FINISHED
                logger.info(f"[Stream] {self.kind.value} stream of {self.run.run_id} finished")
        except asyncio.CancelledError:
            logger.info(f"[Stream] {self.kind.value} stream of {self.run.run_id} cancelled")
            self._state = StreamState.CANCELLED
            raise
        except Exception as e:
            logger.error(f"[Stream] {self.kind.value} stream of {self.run.run_id} failed: {e}", exc_info=True)
            if not self._cancel_requested:
                if self._state is StreamState.PREWARMING:
                    self._deliver(None, NO_DATA_MESSAGES[self.kind])
                self._state = StreamState.FINISHED

    async def _prewarm(self) -> None:
        self._state = StreamState.PREWARMING
        lookback = self.settings.prewarm_window(self.run.duration)
        samples = await self.source.prewarm(self.kind, self.run, lookback)
        if self._cancel_requested:
            return

        logger.debug(f"[Stream] {self.kind.value} prewarm returned {len(samples)} samples (lookback={lookback:.0f}s)")
        if samples:
            update = await self.reducer.reset(samples)
            if self._cancel_requested:
                return
            self._publish(update, received_at=utc_now())
        else:
            self._deliver(None, NO_DATA_MESSAGES[self.kind])

    async def _consume(self) -> None:
        interval = self.settings.flush_interval
        pending: list[Sample] = []
        pending_since: datetime | None = None
        last_flush = self._clock()

        async with contextlib.aclosing(self.source.stream(self.kind, self.run)) as batches:
            async for batch in batches:
                if self._cancel_requested:
                    break
                if not batch.samples:
                    continue

                pending.extend(batch.samples)
                if pending_since is None or batch.received_at < pending_since:
                    pending_since = batch.received_at

                now = self._clock()
                if now - last_flush >= interval:
                    to_apply, received_at = pending, pending_since
                    pending, pending_since = [], None
                    last_flush = now
                    await self._flush(to_apply, received_at or utc_now())

        if pending and not self._cancel_requested:
            await self._flush(pending, pending_since or utc_now())

    async def _flush(self, samples: Iterable[Sample], received_at: datetime) -> None:
        update = await self.reducer.ingest(samples)
        if self._cancel_requested:
            return
        self._publish(update, received_at)

    def _publish(self, update: SeriesUpdate, received_at: datetime) -> None:
        self._deliver(update, advisory_message(self.kind, update, self.min_samples))

        latency_ms = (utc_now() - received_at).total_seconds() * 1000
        self._record(self.telemetry.record_ingest_latency, self.kind, latency_ms)

        if not self._first_paint_recorded and update.display_samples and self._appear_time is not None:
            self._first_paint_recorded = True
            self._record(self.telemetry.record_first_paint, self.kind, (self._clock() - self._appear_time) * 1000)

        if update.dropped_points > 0:
            self._record(self.telemetry.record_dropped_points, self.kind, update.dropped_points)

    def _deliver(self, update: SeriesUpdate | None, message: str | None) -> None:
        if self._cancel_requested:
            return
        try:
            self.consumer.publish(self.kind, update, message)
            self.publications += 1
        except Exception as e:
            logger.error(f"[Stream] Display consumer failed for {self.kind.value}: {e}")

    def _record(self, record: Callable[..., Any], *args: Any) -> None:
        try:
            record(*args)
        except Exception as e:
            logger.debug(f"[Stream] Telemetry failed: {e}")


class StatsCoordinator:
    """Runs the metric streams of one run.

    Usable as an async context manager: entering starts every stream
    ("appear"), leaving cancels them ("disappear") and waits for their tasks.
    """

    def __init__(
        self,
        run: RunContext,
        source: SampleSource,
        consumer: DisplayConsumer,
        settings: StatsSettings | None = None,
        telemetry: TelemetrySink | None = None,
        kinds: Iterable[MetricKind] = tuple(MetricKind),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.run = run
        self.telemetry = telemetry if telemetry is not None else LoggingTelemetry()
        self.streams: dict[MetricKind, MetricStream] = {
            kind: MetricStream(kind, run, source, consumer, settings=settings, telemetry=self.telemetry, clock=clock) for kind in kinds
        }

    def stream(self, kind: MetricKind) -> MetricStream:
        return self.streams[kind]

    @property
    def done(self) -> bool:
        return all(s.state in (StreamState.FINISHED, StreamState.CANCELLED) for s in self.streams.values())

    def appear(self) -> None:
        """Start every metric stream that is not running yet."""
        logger.info(f"[Coordinator] Observing run {self.run.run_id} ({', '.join(k.value for k in self.streams)})")
        for metric_stream in self.streams.values():
            metric_stream.start()

    def disappear(self) -> None:
        """Cancel every metric stream."""
        logger.info(f"[Coordinator] Stopping observation of run {self.run.run_id}")
        for metric_stream in self.streams.values():
            metric_stream.cancel()

    async def wait(self) -> None:
        """Wait for every metric stream to end."""
        await asyncio.gather(*(s.wait() for s in self.streams.values()))

    async def __aenter__(self) -> StatsCoordinator:
        self.appear()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.disappear()
        await self.wait()
