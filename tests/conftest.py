"""
Pytest configuration and shared fixtures.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from runstats.config import reset_settings
from runstats.models import MetricKind, RunContext, Sample

RUN_START = datetime(2024, 5, 4, 7, 30, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_env_for_tests(monkeypatch):
    """Clean environment variables for test isolation.

    Ensures tests don't accidentally read from or write to the user's real
    data directory and that pipeline settings are re-read for every test.
    """
    for name in (
        "RUNSTATS_DATA_DIR",
        "XDG_DATA_HOME",
        "RUNSTATS_DEV_MODE",
        "RUNSTATS_HR_DOWNSAMPLE_THRESHOLD",
        "RUNSTATS_HR_DOWNSAMPLE_LIMIT",
        "RUNSTATS_CADENCE_DOWNSAMPLE_THRESHOLD",
        "RUNSTATS_CADENCE_DOWNSAMPLE_LIMIT",
        "RUNSTATS_FLUSH_INTERVAL_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def run_start() -> datetime:
    return RUN_START


@pytest.fixture
def make_samples():
    """Factory for samples with the given values, one every ``step_seconds``."""

    def _make(values, start_second=0, step_seconds=1.0, kind=MetricKind.HEART_RATE) -> list[Sample]:
        return [
            kind.sample_type.at(RUN_START, RUN_START + timedelta(seconds=start_second + i * step_seconds), value)
            for i, value in enumerate(values)
        ]

    return _make


@pytest.fixture
def make_run():
    """Factory for run contexts starting at ``RUN_START``."""

    def _make(duration=600.0, is_finished=False, run_id="run-0001", project="athlete", name="morning_10k") -> RunContext:
        return RunContext(
            run_id=run_id,
            project=project,
            name=name,
            start_time=RUN_START,
            duration=duration,
            is_finished=is_finished,
        )

    return _make


@pytest.fixture
def write_run_files():
    """Write a run's meta file and append readings to its sample log.

    Readings are ``(metric kind, seconds since start, value)`` tuples. Returns
    the path of the sample log.
    """

    def _write(data_dir: Path, run: RunContext, readings=(), finished: bool | None = None) -> Path:
        project_dir = data_dir / run.project
        project_dir.mkdir(parents=True, exist_ok=True)
        meta = {
            "run_id": run.run_id,
            "start_time": int(run.start_time.timestamp() * 1000),
            "duration": run.duration,
            "is_finished": run.is_finished if finished is None else finished,
        }
        (project_dir / f"{run.name}.meta.json").write_text(json.dumps(meta))

        log = project_dir / f"{run.name}.jsonl"
        with open(log, "a") as f:
            for kind, seconds, value in readings:
                ts = int((run.start_time + timedelta(seconds=seconds)).timestamp() * 1000)
                f.write(json.dumps({"timestamp": ts, "metric": kind.value, "value": value}) + "\n")
        return log

    return _write
