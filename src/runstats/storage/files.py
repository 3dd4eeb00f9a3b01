"""
On-disk layout of a run inside the data directory.

    <data_dir>/<project>/<run>.jsonl       append-only sample log (one JSON object per line)
    <data_dir>/<project>/<run>.meta.json   run metadata (id, start, duration, finished flag)
    <data_dir>/<project>/<run>.parquet     archived samples of a finished run

Sample log lines look like ``{"timestamp": <unix ms>, "metric": "heart_rate", "value": 151.0}``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from runstats.utils.validators import validate_project_name, validate_run_name, validate_safe_path

LOG_SUFFIX = ".jsonl"
META_SUFFIX = ".meta.json"
ARCHIVE_SUFFIX = ".parquet"


@dataclass(frozen=True)
class RunFiles:
    """Paths of every file belonging to one run."""

    project: str
    name: str
    log: Path
    meta: Path
    archive: Path


def run_files(data_dir: str | Path, project: str, name: str) -> RunFiles:
    """Resolve the files of a run, validating names and containment.

    Raises:
        ValueError: If a name is invalid or a path escapes the data directory
    """
    validate_project_name(project)
    validate_run_name(name)

    base_dir = Path(data_dir)
    project_dir = base_dir / project
    files = RunFiles(
        project=project,
        name=name,
        log=project_dir / f"{name}{LOG_SUFFIX}",
        meta=project_dir / f"{name}{META_SUFFIX}",
        archive=project_dir / f"{name}{ARCHIVE_SUFFIX}",
    )
    for path in (files.log, files.meta, files.archive):
        validate_safe_path(path, base_dir)
    return files
