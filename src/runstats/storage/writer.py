"""
RunWriter - records samples of a run into the data directory.

Each sample is appended to the run's JSONL log and synced to disk, so a
live sample source tailing the log sees complete lines only.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from runstats.models import MetricKind
from runstats.utils import atomic_write_json, datasync, parse_to_datetime, parse_to_ms, read_json, secure_open_append, utc_now

from .files import run_files


class RunWriter:
    """Append-only recorder for one run."""

    def __init__(
        self,
        data_dir: str | Path,
        project: str,
        name: str,
        start_time: datetime | None = None,
        run_id: str | None = None,
    ) -> None:
        """Open (or create) a run.

        An existing metadata file is kept; otherwise one is written with the
        given start time (default: now).

        Raises:
            ValueError: If the project or run name is invalid
        """
        self.files = run_files(data_dir, project, name)

        meta = read_json(self.files.meta)
        if meta is None:
            meta = {
                "run_id": run_id or uuid.uuid4().hex,
                "start_time": parse_to_ms(start_time or utc_now()),
                "duration": 0.0,
                "is_finished": False,
            }
            atomic_write_json(self.files.meta, meta)
        self._meta: dict[str, Any] = meta
        self._last_ms: int | None = None

    @property
    def run_id(self) -> str:
        return self._meta["run_id"]

    @property
    def start_time(self) -> datetime:
        return parse_to_datetime(self._meta["start_time"])

    def log(self, kind: MetricKind, value: float, timestamp: datetime | int | None = None) -> None:
        """Append one sample."""
        self.log_many(kind, [(timestamp if timestamp is not None else utc_now(), value)])

    def log_many(self, kind: MetricKind, readings: Iterable[tuple[datetime | int, float]]) -> None:
        """Append several samples in one write.

        Args:
            kind: Metric of every reading
            readings: (timestamp, value) pairs
        """
        lines = []
        for timestamp, value in readings:
            ts_ms = parse_to_ms(timestamp)
            self._last_ms = ts_ms if self._last_ms is None else max(self._last_ms, ts_ms)
            lines.append(json.dumps({"timestamp": ts_ms, "metric": kind.value, "value": float(value)}) + "\n")
        if not lines:
            return

        with secure_open_append(self.files.log) as f:
            f.write("".join(lines))
            f.flush()
            datasync(f.fileno())

    def checkpoint(self, duration: float | None = None) -> None:
        """Persist the current duration without finishing the run."""
        self._meta["duration"] = self._resolve_duration(duration)
        atomic_write_json(self.files.meta, self._meta)

    def finish(self, duration: float | None = None) -> None:
        """Mark the run finished.

        Args:
            duration: Total duration in seconds; defaults to the time of the last logged sample
        """
        self._meta["duration"] = self._resolve_duration(duration)
        self._meta["is_finished"] = True
        atomic_write_json(self.files.meta, self._meta)

    def _resolve_duration(self, duration: float | None) -> float:
        if duration is not None:
            return float(duration)
        if self._last_ms is None:
            return float(self._meta.get("duration") or 0.0)
        return max(0.0, (self._last_ms - parse_to_ms(self.start_time)) / 1000)
