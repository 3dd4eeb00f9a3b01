"""Timestamps of samples and runs.

Sample log lines carry unix milliseconds; run metadata may carry either
milliseconds or an ISO 8601 start time written by another recorder. Both are
normalised to UTC here. All functions raise ValueError for invalid input.
"""

from __future__ import annotations

from datetime import datetime, timezone


def parse_to_datetime(ts_value: str | int | float | datetime) -> datetime:
    """Parse a sample or run timestamp to a UTC datetime.

    Args:
        ts_value: One of
            - datetime: naive values are taken as UTC
            - int/float: unix milliseconds, as in the sample log
            - str: ISO 8601, with or without a ``Z`` suffix

    Raises:
        ValueError: If the value is None, a boolean, empty, out of range or unparseable
    """
    if ts_value is None:
        raise ValueError("Timestamp cannot be None")

    # bool is an int subclass; a JSON true is never a timestamp
    if isinstance(ts_value, bool):
        raise ValueError("Timestamp cannot be a boolean")

    if isinstance(ts_value, datetime):
        if ts_value.tzinfo is None:
            return ts_value.replace(tzinfo=timezone.utc)
        return ts_value.astimezone(timezone.utc)

    if isinstance(ts_value, (int, float)):
        try:
            return datetime.fromtimestamp(ts_value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"Timestamp out of range: {ts_value}") from exc

    if isinstance(ts_value, str):
        ts_str = ts_value.strip()
        if not ts_str:
            raise ValueError("Timestamp string cannot be empty")

        # fromisoformat before 3.11 rejects the 'Z' suffix
        if ts_str.endswith("Z"):
            ts_str = ts_str[:-1] + "+00:00"

        try:
            parsed = datetime.fromisoformat(ts_str)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format. Expected ISO 8601 string or UNIX milliseconds.") from exc

        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    raise ValueError(f"Unsupported timestamp type: {type(ts_value)}. Expected datetime, int, float, or ISO 8601 string.")


def parse_to_ms(ts_value: str | int | float | datetime) -> int:
    """Normalise a timestamp to unix milliseconds, the sample log's unit.

    Numbers are taken as milliseconds already and only truncated.

    Raises:
        ValueError: If the value is None or cannot be parsed
        OverflowError: If a number is infinite
    """
    if ts_value is None:
        raise ValueError("Timestamp cannot be None")

    if isinstance(ts_value, (int, float)) and not isinstance(ts_value, bool):
        return int(ts_value)

    dt = parse_to_datetime(ts_value)
    return int(round(dt.timestamp() * 1000))


def utc_now() -> datetime:
    """Current wall-clock time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
