"""
AnchorStore - persisted resume positions of live subscriptions.

An anchor is the byte offset in a run's sample log up to which a metric's
live stream has delivered samples. Anchors are kept per run id in
``<anchors_dir>/<run_id>.json`` as ``{"heart_rate": 1234, "cadence": 987}``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from runstats.models import MetricKind
from runstats.utils import atomic_write_json, read_json
from runstats.utils.validators import validate_name

logger = logging.getLogger(__name__)


class AnchorStore:
    """JSON-file store of live stream anchors."""

    def __init__(self, anchors_dir: str | Path) -> None:
        self.anchors_dir = Path(anchors_dir)

    @classmethod
    def for_data_dir(cls, data_dir: str | Path) -> AnchorStore:
        return cls(Path(data_dir) / ".anchors")

    def _path(self, run_id: str) -> Path:
        validate_name(run_id, "run id")
        return self.anchors_dir / f"{run_id}.json"

    def load(self, run_id: str, kind: MetricKind) -> int | None:
        """Saved anchor of a metric stream, or None if there is none."""
        data = read_json(self._path(run_id))
        if data is None:
            return None
        value = data.get(kind.value)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None
        return value

    def save(self, run_id: str, kind: MetricKind, offset: int) -> None:
        """Persist the anchor of a metric stream."""
        path = self._path(run_id)
        data = read_json(path) or {}
        data[kind.value] = int(offset)
        try:
            atomic_write_json(path, data)
        except OSError as e:
            logger.warning(f"[Anchors] Could not save anchor for {run_id}/{kind.value}: {e}")

    def clear(self, run_id: str) -> None:
        """Forget every anchor of a run."""
        path = self._path(run_id)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
