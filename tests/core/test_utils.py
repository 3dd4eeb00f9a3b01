"""Tests for validators, timestamp parsing and file helpers."""

import os
import stat
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from runstats.utils import (
    atomic_write_json,
    parse_to_datetime,
    parse_to_ms,
    read_json,
    secure_open_append,
    validate_project_name,
    validate_run_name,
    validate_safe_path,
)


class TestValidators:
    """Tests for name and path validation."""

    @pytest.mark.parametrize("name", ["athlete", "morning_10k", "run-2024-05-04", "A1"])
    def test_valid_names(self, name):
        validate_project_name(name)
        validate_run_name(name)

    @pytest.mark.parametrize("name", ["", "../etc", "a/b", "run 1", "run.jsonl", "ümlaut"])
    def test_invalid_names(self, name):
        """Test that names outside [a-zA-Z0-9_-] are rejected."""
        with pytest.raises(ValueError, match="Only alphanumeric"):
            validate_run_name(name)

    def test_safe_path_inside_base(self, tmp_path):
        validate_safe_path(tmp_path / "athlete" / "run.jsonl", tmp_path)

    def test_safe_path_traversal(self, tmp_path):
        """Test that path traversal attempts raise ValueError."""
        base_dir = tmp_path / "data"
        base_dir.mkdir()

        with pytest.raises(ValueError):
            validate_safe_path(base_dir / ".." / "etc" / "passwd", base_dir)

    def test_safe_path_symlink_escape(self, tmp_path):
        """Test that symlinks escaping the base directory raise ValueError."""
        base_dir = tmp_path / "data"
        base_dir.mkdir()
        outside = tmp_path / "outside"
        outside.mkdir()
        (base_dir / "escape").symlink_to(outside)

        with pytest.raises(ValueError):
            validate_safe_path(base_dir / "escape", base_dir)


class TestTimestamps:
    """Tests for timestamp parsing utilities."""

    def test_int_is_unix_ms(self):
        result = parse_to_datetime(1714807800000)

        assert result == datetime(2024, 5, 4, 7, 30, tzinfo=timezone.utc)

    def test_naive_datetime_gets_utc(self):
        result = parse_to_datetime(datetime(2024, 5, 4, 7, 30))

        assert result.tzinfo == timezone.utc

    def test_offset_is_converted_to_utc(self):
        """Test that ISO strings with an offset are normalised to UTC."""
        result = parse_to_datetime("2024-05-04T09:30:00+02:00")

        assert result == datetime(2024, 5, 4, 7, 30, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_z_suffix(self):
        assert parse_to_datetime("2024-05-04T07:30:00Z") == datetime(2024, 5, 4, 7, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday", True])
    def test_invalid_input_raises(self, value):
        with pytest.raises(ValueError):
            parse_to_datetime(value)

    def test_parse_to_ms_round_trip(self):
        dt = datetime(2024, 5, 4, 7, 30, 0, 250000, tzinfo=timezone.utc)

        assert parse_to_ms(dt) == 1714807800250
        assert parse_to_ms(1714807800250) == 1714807800250


class TestFileHelpers:
    """Tests for JSON and append helpers."""

    def test_atomic_write_json_creates_private_file(self, tmp_path):
        """Test that the written file is readable back and owner-only."""
        target = tmp_path / "nested" / "meta.json"

        atomic_write_json(target, {"run_id": "abc", "duration": 1.5})

        assert read_json(target) == {"run_id": "abc", "duration": 1.5}
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600
        assert [p.name for p in target.parent.iterdir()] == ["meta.json"]

    def test_read_json_missing_or_invalid(self, tmp_path):
        """Test that missing, malformed and non-object documents read as None."""
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")
        array = tmp_path / "array.json"
        array.write_text("[1, 2]")

        assert read_json(tmp_path / "missing.json") is None
        assert read_json(broken) is None
        assert read_json(array) is None

    def test_secure_open_append(self, tmp_path):
        """Test that appends accumulate in a 0600 file."""
        path = Path(tmp_path) / "athlete" / "run.jsonl"

        with secure_open_append(path) as f:
            f.write("a\n")
        with secure_open_append(path) as f:
            f.write("b\n")

        assert path.read_text() == "a\nb\n"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
