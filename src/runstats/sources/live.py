"""
LiveFileSampleSource - samples of a run that is being recorded.

The recorder appends samples to the run's JSONL log. Prewarm reads the log
once; the stream delivers the backlog after the saved anchor and then tails
the log with ``watchfiles``, yielding one batch per file change, until the
run's metadata reports it finished.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import timedelta
from pathlib import Path

from watchfiles import awatch

from runstats.models import MetricKind, RunContext, Sample, SampleBatch
from runstats.storage import RunFiles, frame_to_samples, parse_log_line, read_log_frame, rows_to_frame, run_files
from runstats.utils import read_json, utc_now

from .anchors import AnchorStore
from .base import SampleSource

logger = logging.getLogger(__name__)


class LiveFileSampleSource(SampleSource):
    """Sample source tailing run sample logs in a data directory."""

    def __init__(
        self,
        data_dir: str | Path,
        anchors: AnchorStore | None = None,
        debounce_ms: int = 200,
    ) -> None:
        """Initialize the source.

        Args:
            data_dir: Base directory holding ``<project>/<run>.jsonl`` logs
            anchors: Optional anchor store; when set, streams resume where the previous subscription stopped
            debounce_ms: Grouping window for file change notifications
        """
        self.data_dir = Path(data_dir).resolve()
        self.anchors = anchors
        self.debounce_ms = debounce_ms

    def _files(self, run: RunContext) -> RunFiles | None:
        try:
            return run_files(self.data_dir, run.project, run.name)
        except ValueError as e:
            logger.warning(f"[LiveSource] Invalid run {run.project}/{run.name}: {e}")
            return None

    async def prewarm(self, kind: MetricKind, run: RunContext, lookback_seconds: float) -> list[Sample]:
        files = self._files(run)
        if files is None:
            return []

        frame = await asyncio.to_thread(read_log_frame, files.log)
        since = None
        if lookback_seconds > 0:
            since = max(run.start_time, run.start_time + timedelta(seconds=run.duration - lookback_seconds))
        return frame_to_samples(frame, kind, run.start_time, since)

    def _is_finished(self, files: RunFiles) -> bool:
        meta = read_json(files.meta)
        return bool(meta and meta.get("is_finished"))

    def _read_from(self, files: RunFiles, offset: int, kind: MetricKind, run: RunContext) -> tuple[list[Sample], int]:
        """Read complete lines appended after ``offset``.

        Returns:
            Tuple of (samples of ``kind``, offset just past the last complete line)
        """
        try:
            with open(files.log, "rb") as f:
                f.seek(offset)
                chunk = f.read()
        except OSError as e:
            logger.error(f"[LiveSource] Error reading {files.log}: {e}")
            return [], offset

        end = chunk.rfind(b"\n")
        if end == -1:
            # No complete line yet
            return [], offset

        text = chunk[: end + 1].decode("utf-8", errors="replace")
        rows = [row for row in (parse_log_line(line) for line in text.splitlines()) if row is not None]
        samples = frame_to_samples(rows_to_frame(rows), kind, run.start_time)
        return samples, offset + end + 1

    def _initial_offset(self, files: RunFiles, kind: MetricKind, run: RunContext) -> int:
        if self.anchors is None:
            return 0
        anchor = self.anchors.load(run.run_id, kind)
        if anchor is None:
            return 0
        try:
            size = files.log.stat().st_size
        except OSError:
            return 0
        # A log shorter than the anchor was replaced; start over
        return anchor if anchor <= size else 0

    def _save_anchor(self, kind: MetricKind, run: RunContext, offset: int) -> None:
        if self.anchors is not None:
            self.anchors.save(run.run_id, kind, offset)

    async def stream(self, kind: MetricKind, run: RunContext) -> AsyncIterator[SampleBatch]:
        files = self._files(run)
        if files is None:
            return
        if not files.log.exists():
            logger.info(f"[LiveSource] No sample log for {run.project}/{run.name}")
            return

        offset = self._initial_offset(files, kind, run)

        # Check the finished flag before reading so nothing written before it is missed
        finished = self._is_finished(files)
        samples, offset = await asyncio.to_thread(self._read_from, files, offset, kind, run)
        if samples:
            yield SampleBatch(samples=samples, received_at=utc_now())
        self._save_anchor(kind, run, offset)
        if finished:
            return

        watched = {files.log.name, files.meta.name}
        stop_event = asyncio.Event()
        watcher = awatch(
            str(files.log.parent),
            watch_filter=lambda _change, path: Path(path).name in watched,
            debounce=self.debounce_ms,
            stop_event=stop_event,
        )
        logger.info(f"[LiveSource] Watching {files.log} for {kind.value}")

        try:
            async for changes in watcher:
                logger.debug(f"[LiveSource] Received {len(changes)} change(s)")
                finished = self._is_finished(files)
                samples, new_offset = await asyncio.to_thread(self._read_from, files, offset, kind, run)
                if samples:
                    yield SampleBatch(samples=samples, received_at=utc_now())
                if new_offset != offset:
                    offset = new_offset
                    self._save_anchor(kind, run, offset)
                if finished:
                    logger.info(f"[LiveSource] Run {run.project}/{run.name} finished")
                    break
        finally:
            stop_event.set()
            try:
                await asyncio.wait_for(watcher.aclose(), timeout=2.0)
            except asyncio.TimeoutError:
                logger.warning("[LiveSource] Timeout closing awatch instance")
            except Exception as e:
                logger.error(f"[LiveSource] Error closing watcher: {e}")
