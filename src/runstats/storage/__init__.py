"""Run storage: on-disk layout, recording, lookup and archiving."""

from .files import RunFiles, run_files
from .frames import frame_to_samples, parse_log_line, read_log_frame, rows_to_frame
from .run_store import RunStore
from .writer import RunWriter

__all__ = [
    "RunFiles",
    "RunStore",
    "RunWriter",
    "frame_to_samples",
    "parse_log_line",
    "read_log_frame",
    "rows_to_frame",
    "run_files",
]
