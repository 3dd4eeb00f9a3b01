"""Utility modules for runstats."""

from runstats.utils.file import atomic_write_json, datasync, read_json, secure_open_append
from runstats.utils.timestamp import parse_to_datetime, parse_to_ms, utc_now
from runstats.utils.validators import (
    validate_name,
    validate_project_name,
    validate_run_name,
    validate_safe_path,
)

__all__ = [
    "atomic_write_json",
    "datasync",
    "parse_to_datetime",
    "parse_to_ms",
    "read_json",
    "secure_open_append",
    "utc_now",
    "validate_name",
    "validate_project_name",
    "validate_run_name",
    "validate_safe_path",
]
