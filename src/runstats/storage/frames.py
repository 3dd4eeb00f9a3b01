"""
Polars helpers turning sample logs and archives into sample models.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import polars as pl

from runstats.models import MetricKind, Sample
from runstats.utils.timestamp import parse_to_ms

logger = logging.getLogger(__name__)

SAMPLE_SCHEMA = {
    "timestamp": pl.Int64,
    "metric": pl.Utf8,
    "value": pl.Float64,
}

# Last unix ms a datetime can represent; bounds the Int64 timestamp column
MAX_TIMESTAMP_MS = int(datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc).timestamp() * 1000)


def empty_frame() -> pl.DataFrame:
    return pl.DataFrame(schema=SAMPLE_SCHEMA)


def parse_log_line(line: str) -> dict[str, Any] | None:
    """Parse one sample log line into a row of the sample schema.

    Returns:
        Row dict, or None for blank or malformed lines
    """
    if not line.strip():
        return None
    try:
        entry = json.loads(line)
        metric = entry["metric"]
        value = entry["value"]
        if not isinstance(metric, str) or isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        timestamp = parse_to_ms(entry["timestamp"])
        if not 0 <= timestamp <= MAX_TIMESTAMP_MS:
            logger.debug(f"[Frames] Timestamp out of range: {timestamp}")
            return None
        return {"timestamp": timestamp, "metric": metric, "value": float(value)}
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, OverflowError) as e:
        logger.debug(f"[Frames] Error parsing line: {e}")
        return None


def rows_to_frame(rows: list[dict[str, Any]]) -> pl.DataFrame:
    """Frame in the sample schema, sorted by timestamp."""
    if not rows:
        return empty_frame()
    return pl.from_dicts(rows, schema=SAMPLE_SCHEMA).sort("timestamp", maintain_order=True)


def read_log_frame(path: Path) -> pl.DataFrame:
    """Read a JSONL sample log into a frame sorted by timestamp.

    Malformed lines, including lines with invalid UTF-8, are ignored. A
    missing or unreadable log yields an empty frame.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            rows = [row for row in (parse_log_line(line) for line in f) if row is not None]
    except FileNotFoundError:
        return empty_frame()
    except OSError as e:
        logger.warning(f"[Frames] Could not read sample log {path}: {e}")
        return empty_frame()

    return rows_to_frame(rows)


def read_archive_frame(path: Path) -> pl.DataFrame:
    """Read an archived Parquet sample file.

    Raises:
        FileNotFoundError: If the archive does not exist
        ValueError: If the archive is not a readable sample archive
    """
    if not path.exists():
        raise FileNotFoundError(path)
    try:
        frame = pl.read_parquet(path).select(list(SAMPLE_SCHEMA)).cast(SAMPLE_SCHEMA)
    except pl.exceptions.PolarsError as e:
        raise ValueError(f"Corrupt sample archive {path}: {e}") from e
    return frame.drop_nulls().sort("timestamp", maintain_order=True)


def frame_to_samples(
    frame: pl.DataFrame,
    kind: MetricKind,
    run_start: datetime,
    since: datetime | None = None,
) -> list[Sample]:
    """Convert the rows of one metric into sample models.

    Rows before the run start (negative relative time) and non-finite values
    are malformed and skipped.

    Args:
        frame: Frame with ``timestamp`` (unix ms), ``metric`` and ``value`` columns
        kind: Metric to extract
        run_start: Start of the run, used for relative times
        since: Optional lower bound on the sample timestamp
    """
    start_ms = parse_to_ms(run_start)
    lower_ms = max(start_ms, parse_to_ms(since)) if since is not None else start_ms

    selected = frame.filter(
        (pl.col("metric") == kind.value) & (pl.col("timestamp") >= lower_ms) & pl.col("value").is_finite()
    ).with_columns(((pl.col("timestamp") - start_ms) / 1000).alias("relative_time"))

    sample_type = kind.sample_type
    samples: list[Sample] = []
    for row in selected.iter_rows(named=True):
        try:
            samples.append(sample_type(timestamp=row["timestamp"], relative_time=row["relative_time"], value=row["value"]))
        except ValueError as e:
            logger.debug(f"[Frames] Skipping malformed {kind.value} row: {e}")
    return samples

