"""Configuration and environment handling for runstats."""

import os
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

__all__ = [
    "MetricLimits",
    "StatsSettings",
    "get_data_dir",
    "get_settings",
    "is_dev_mode",
    "reset_settings",
]


class MetricLimits(BaseModel):
    """Per-metric series limits.

    A series longer than ``downsample_threshold`` is reduced to roughly
    ``downsample_limit`` points for display. ``min_samples`` is the number of
    displayed samples below which the metric's advisory message is shown.
    """

    downsample_threshold: int = Field(default=5_000, ge=0, description="Series length above which display samples are downsampled")
    downsample_limit: int = Field(default=2_000, ge=0, description="Target number of display samples after downsampling")
    min_samples: int = Field(default=1, ge=0, description="Minimum displayed samples before the no-data message is cleared")


def _default_heart_rate_limits() -> MetricLimits:
    return MetricLimits(downsample_threshold=5_000, downsample_limit=2_000, min_samples=1)


def _default_cadence_limits() -> MetricLimits:
    return MetricLimits(downsample_threshold=4_000, downsample_limit=2_000, min_samples=3)


class StatsSettings(BaseModel):
    """Construction-time settings of the statistics pipeline.

    All values can be customised via environment variables, see ``from_env``.
    """

    heart_rate: MetricLimits = Field(default_factory=_default_heart_rate_limits)
    cadence: MetricLimits = Field(default_factory=_default_cadence_limits)

    flush_interval_ms: int = Field(
        default=350,
        ge=0,
        description="Minimum interval between two flushes of pending live samples into a series",
    )

    prewarm_min_seconds: float = Field(default=30.0, ge=0, description="Lower bound of the prewarm lookback window")
    prewarm_max_seconds: float = Field(default=120.0, ge=0, description="Upper bound of the prewarm lookback window")

    event_queue_size: int = Field(
        default=256,
        ge=1,
        description="Maximum number of undelivered display events kept per board",
    )

    @property
    def flush_interval(self) -> float:
        """Flush interval in seconds."""
        return self.flush_interval_ms / 1000

    def limits_for(self, metric: str | Enum) -> MetricLimits:
        """Limits of a metric, by name (``heart_rate``/``cadence``) or MetricKind."""
        name = metric.value if isinstance(metric, Enum) else metric
        if name not in ("heart_rate", "cadence"):
            raise ValueError(f"Unknown metric: {name}")
        return getattr(self, name)

    def prewarm_window(self, duration: float) -> float:
        """Clamp a run duration into the prewarm lookback bounds."""
        return min(max(duration, self.prewarm_min_seconds), self.prewarm_max_seconds)

    @classmethod
    def from_env(cls) -> "StatsSettings":
        """Create StatsSettings from environment variables.

        Environment variables:
        - RUNSTATS_HR_DOWNSAMPLE_THRESHOLD: Heart rate downsample threshold (default: 5000)
        - RUNSTATS_HR_DOWNSAMPLE_LIMIT: Heart rate downsample limit (default: 2000)
        - RUNSTATS_CADENCE_DOWNSAMPLE_THRESHOLD: Cadence downsample threshold (default: 4000)
        - RUNSTATS_CADENCE_DOWNSAMPLE_LIMIT: Cadence downsample limit (default: 2000)
        - RUNSTATS_FLUSH_INTERVAL_MS: Live flush interval in milliseconds (default: 350)
        """
        heart_rate = _default_heart_rate_limits()
        cadence = _default_cadence_limits()
        return cls(
            heart_rate=MetricLimits(
                downsample_threshold=int(os.environ.get("RUNSTATS_HR_DOWNSAMPLE_THRESHOLD", heart_rate.downsample_threshold)),
                downsample_limit=int(os.environ.get("RUNSTATS_HR_DOWNSAMPLE_LIMIT", heart_rate.downsample_limit)),
                min_samples=heart_rate.min_samples,
            ),
            cadence=MetricLimits(
                downsample_threshold=int(os.environ.get("RUNSTATS_CADENCE_DOWNSAMPLE_THRESHOLD", cadence.downsample_threshold)),
                downsample_limit=int(os.environ.get("RUNSTATS_CADENCE_DOWNSAMPLE_LIMIT", cadence.downsample_limit)),
                min_samples=cadence.min_samples,
            ),
            flush_interval_ms=int(os.environ.get("RUNSTATS_FLUSH_INTERVAL_MS", cls.model_fields["flush_interval_ms"].default)),
        )


# Global settings instance
_settings: StatsSettings | None = None


def get_settings() -> StatsSettings:
    """Get pipeline settings.

    Returns cached instance if already initialized.
    """
    global _settings
    if _settings is None:
        _settings = StatsSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


# Forbidden system directories that cannot be used as data directories
_FORBIDDEN_PATHS = frozenset(["/", "/etc", "/sys", "/dev", "/bin", "/sbin", "/usr", "/var", "/boot", "/proc"])


def _validate_data_dir(data_path: Path) -> None:
    """Validate that data directory is not a dangerous system path.

    Raises:
        ValueError: If path is a forbidden system directory
    """
    resolved_str = str(data_path.resolve())

    for forbidden in _FORBIDDEN_PATHS:
        if resolved_str == forbidden or resolved_str.rstrip("/") == forbidden:
            raise ValueError(f"RUNSTATS_DATA_DIR cannot be set to system directory: {forbidden}")


def get_data_dir() -> Path:
    """Get the default data directory for runstats.

    Resolution priority:
    1. RUNSTATS_DATA_DIR environment variable (if set)
    2. XDG_DATA_HOME/runstats (if XDG_DATA_HOME is set)
    3. ~/.local/share/runstats (fallback)

    Raises:
        ValueError: If RUNSTATS_DATA_DIR points to a system directory
    """
    runstats_data_dir = os.environ.get("RUNSTATS_DATA_DIR")
    if runstats_data_dir:
        data_path = Path(runstats_data_dir).expanduser().resolve()
        _validate_data_dir(data_path)
        return data_path

    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home).expanduser() / "runstats"

    return Path.home() / ".local" / "share" / "runstats"


def is_dev_mode() -> bool:
    """Check if running in development mode.

    Returns:
        True if RUNSTATS_DEV_MODE is set to "1", False otherwise.
    """
    return os.environ.get("RUNSTATS_DEV_MODE") == "1"
