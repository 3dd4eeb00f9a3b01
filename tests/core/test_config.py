"""Tests for config module."""

from pathlib import Path

import pytest

from runstats.config import MetricLimits, StatsSettings, get_data_dir, get_settings, is_dev_mode, reset_settings
from runstats.models import MetricKind


class TestGetDataDir:
    """Tests for get_data_dir function."""

    def test_runstats_data_dir_takes_priority(self, monkeypatch, tmp_path):
        """Test that RUNSTATS_DATA_DIR has highest priority."""
        monkeypatch.setenv("RUNSTATS_DATA_DIR", str(tmp_path / "custom"))
        monkeypatch.setenv("XDG_DATA_HOME", "/should/not/be/used")

        assert get_data_dir() == (tmp_path / "custom").resolve()

    def test_xdg_data_home_used_when_data_dir_not_set(self, monkeypatch):
        """Test that XDG_DATA_HOME/runstats is used when RUNSTATS_DATA_DIR is not set."""
        monkeypatch.setenv("XDG_DATA_HOME", "/home/user/.local/share")

        assert get_data_dir() == Path("/home/user/.local/share/runstats")

    def test_fallback_to_home_local_share(self):
        """Test fallback to ~/.local/share/runstats when no env vars set."""
        assert get_data_dir() == Path.home() / ".local" / "share" / "runstats"

    def test_empty_data_dir_uses_xdg(self, monkeypatch):
        """Test that an empty RUNSTATS_DATA_DIR falls through to XDG_DATA_HOME."""
        monkeypatch.setenv("RUNSTATS_DATA_DIR", "")
        monkeypatch.setenv("XDG_DATA_HOME", "/home/user/.local/share")

        assert get_data_dir() == Path("/home/user/.local/share/runstats")

    @pytest.mark.parametrize("forbidden", ["/", "/etc", "/usr"])
    def test_system_directories_are_rejected(self, monkeypatch, forbidden):
        """Test that system directories cannot be used as data directory."""
        monkeypatch.setenv("RUNSTATS_DATA_DIR", forbidden)

        with pytest.raises(ValueError, match="system directory"):
            get_data_dir()


class TestStatsSettings:
    """Tests for StatsSettings."""

    def test_defaults(self):
        """Test the default limits of both metrics."""
        settings = StatsSettings()

        assert settings.heart_rate == MetricLimits(downsample_threshold=5000, downsample_limit=2000, min_samples=1)
        assert settings.cadence == MetricLimits(downsample_threshold=4000, downsample_limit=2000, min_samples=3)
        assert settings.flush_interval == pytest.approx(0.35)

    def test_limits_for_accepts_kind_and_name(self):
        """Test that limits are found by MetricKind or metric name."""
        settings = StatsSettings()

        assert settings.limits_for(MetricKind.CADENCE) is settings.cadence
        assert settings.limits_for("heart_rate") is settings.heart_rate

    def test_limits_for_unknown_metric(self):
        """Test that an unknown metric name raises ValueError."""
        with pytest.raises(ValueError, match="Unknown metric"):
            StatsSettings().limits_for("power")

    @pytest.mark.parametrize(
        ("duration", "expected"),
        [(0, 30), (12.5, 30), (45, 45), (120, 120), (3600, 120)],
    )
    def test_prewarm_window_is_clamped(self, duration, expected):
        """Test that the prewarm lookback is clamped to [30, 120] seconds."""
        assert StatsSettings().prewarm_window(duration) == expected

    def test_from_env(self, monkeypatch):
        """Test that environment variables override the defaults."""
        monkeypatch.setenv("RUNSTATS_HR_DOWNSAMPLE_THRESHOLD", "100")
        monkeypatch.setenv("RUNSTATS_HR_DOWNSAMPLE_LIMIT", "50")
        monkeypatch.setenv("RUNSTATS_CADENCE_DOWNSAMPLE_LIMIT", "25")
        monkeypatch.setenv("RUNSTATS_FLUSH_INTERVAL_MS", "0")

        settings = StatsSettings.from_env()

        assert settings.heart_rate.downsample_threshold == 100
        assert settings.heart_rate.downsample_limit == 50
        assert settings.cadence.downsample_threshold == 4000
        assert settings.cadence.downsample_limit == 25
        assert settings.cadence.min_samples == 3
        assert settings.flush_interval_ms == 0

    def test_get_settings_is_cached_until_reset(self, monkeypatch):
        """Test that get_settings caches and reset_settings re-reads the environment."""
        first = get_settings()
        monkeypatch.setenv("RUNSTATS_FLUSH_INTERVAL_MS", "10")

        assert get_settings() is first

        reset_settings()
        assert get_settings().flush_interval_ms == 10


class TestIsDevMode:
    """Tests for is_dev_mode."""

    def test_enabled_with_one(self, monkeypatch):
        monkeypatch.setenv("RUNSTATS_DEV_MODE", "1")
        assert is_dev_mode() is True

    def test_disabled_by_default(self):
        assert is_dev_mode() is False
