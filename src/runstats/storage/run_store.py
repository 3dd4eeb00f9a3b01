"""
RunStore - read access to runs in the data directory.

Loads run contexts from metadata files, stored run records from Parquet
archives, and archives finished sample logs.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from runstats.exceptions import ArchiveNotFoundError, RunNotFoundError
from runstats.models import CadenceSample, HeartRateSample, MetricKind, RunContext, RunRecord
from runstats.utils.file import read_json

from .files import RunFiles, run_files
from .frames import frame_to_samples, read_archive_frame, read_log_frame

logger = logging.getLogger(__name__)


class RunStore:
    """Run lookup over a data directory."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def files(self, project: str, name: str) -> RunFiles:
        """Resolve the files of a run.

        Raises:
            ValueError: If the project or run name is invalid
        """
        return run_files(self.data_dir, project, name)

    def load_context(self, project: str, name: str) -> RunContext:
        """Load the context of a run from its metadata file.

        Raises:
            RunNotFoundError: If the metadata file is missing or invalid
        """
        files = self.files(project, name)
        meta = read_json(files.meta)
        if meta is None:
            raise RunNotFoundError(f"Run '{name}' not found in project '{project}'")

        try:
            return RunContext(
                run_id=meta.get("run_id") or f"{project}-{name}",
                project=project,
                name=name,
                start_time=meta["start_time"],
                duration=meta.get("duration") or 0.0,
                is_finished=bool(meta.get("is_finished", False)),
            )
        except (KeyError, ValidationError) as e:
            raise RunNotFoundError(f"Run '{name}' in project '{project}' has invalid metadata: {e}") from e

    def load_record(self, project: str, name: str) -> RunRecord:
        """Load a stored run from its Parquet archive.

        Raises:
            RunNotFoundError: If the run has no metadata
            ArchiveNotFoundError: If the run was never archived
        """
        context = self.load_context(project, name)
        files = self.files(project, name)
        try:
            frame = read_archive_frame(files.archive)
        except FileNotFoundError as e:
            raise ArchiveNotFoundError(f"Run '{name}' in project '{project}' has no archive") from e

        heart_rate = frame_to_samples(frame, MetricKind.HEART_RATE, context.start_time)
        cadence = frame_to_samples(frame, MetricKind.CADENCE, context.start_time)
        return RunRecord(
            context=context,
            heart_rate=[s for s in heart_rate if isinstance(s, HeartRateSample)],
            cadence=[s for s in cadence if isinstance(s, CadenceSample)],
        )

    def archive_run(self, project: str, name: str) -> Path:
        """Write the run's sample log to its Parquet archive.

        Returns:
            Path of the archive file

        Raises:
            RunNotFoundError: If the run has no metadata or no sample log
            ValueError: If the sample log has content but no readable samples
        """
        self.load_context(project, name)
        files = self.files(project, name)
        if not files.log.exists():
            raise RunNotFoundError(f"Run '{name}' in project '{project}' has no sample log")

        frame = read_log_frame(files.log)
        if frame.is_empty() and files.log.read_bytes().strip():
            raise ValueError(f"Sample log of {project}/{name} has no readable samples; not archiving")
        frame.write_parquet(files.archive)
        logger.info(f"Archived {len(frame)} samples of {project}/{name} to {files.archive}")
        return files.archive
