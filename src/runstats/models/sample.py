"""
Sample-level data models.

A sample is one reading of a metric at an absolute time. Samples are
immutable once created and two samples with the same ``timestamp`` are the
same sample as far as series merging is concerned.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from runstats.utils.timestamp import parse_to_datetime, utc_now


class MetricKind(Enum):
    """Metrics tracked per run."""

    HEART_RATE = "heart_rate"
    CADENCE = "cadence"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    @property
    def sample_type(self) -> type[Sample]:
        """Concrete sample model carrying this metric."""
        return HeartRateSample if self is MetricKind.HEART_RATE else CadenceSample


class Sample(BaseModel):
    """One reading of a metric.

    ``relative_time`` is the number of seconds since the run started; a
    negative value only appears in malformed input and is rejected.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Absolute time of the reading (UTC)")
    relative_time: float = Field(..., ge=0, allow_inf_nan=False, description="Seconds elapsed since the run started")
    value: float = Field(..., allow_inf_nan=False, description="Metric magnitude (beats or steps per minute)")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, value: Any) -> datetime:
        return parse_to_datetime(value)

    @classmethod
    def at(cls, run_start: datetime, timestamp: Any, value: float) -> Sample:
        """Build a sample whose relative time is measured from ``run_start``.

        Raises:
            ValueError: If the timestamp precedes the run start or the value is not finite.
        """
        ts = parse_to_datetime(timestamp)
        start = parse_to_datetime(run_start)
        return cls(timestamp=ts, relative_time=(ts - start).total_seconds(), value=value)

    def __str__(self) -> str:
        return f"{type(self).__name__}(t={self.relative_time:.1f}s, value={self.value})"


class HeartRateSample(Sample):
    """Heart rate reading in beats per minute."""

    @property
    def bpm(self) -> float:
        return self.value


class CadenceSample(Sample):
    """Running cadence reading in steps per minute."""

    @property
    def spm(self) -> float:
        return self.value


class SampleBatch(BaseModel):
    """Samples delivered together by a live subscription."""

    samples: list[Sample] = Field(default_factory=list)
    received_at: datetime = Field(default_factory=utc_now, description="Wall-clock time the batch was received")

    def __len__(self) -> int:
        return len(self.samples)


class RunContext(BaseModel):
    """Identifies the run being observed. Read-only for the pipeline."""

    model_config = ConfigDict(frozen=True)

    run_id: str = Field(..., description="Stable identity shared by all metric streams of the run")
    project: str = Field(..., description="Project (athlete or device) the run belongs to")
    name: str = Field(..., description="Run name")
    start_time: datetime = Field(..., description="Run start (UTC)")
    duration: float = Field(default=0.0, ge=0, description="Total duration in seconds")
    is_finished: bool = Field(default=False, description="Whether the run has ended")

    @field_validator("start_time", mode="before")
    @classmethod
    def _normalize_start(cls, value: Any) -> datetime:
        return parse_to_datetime(value)

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(seconds=self.duration)


class RunRecord(BaseModel):
    """A stored run: its context plus the persisted metric series."""

    context: RunContext
    heart_rate: list[HeartRateSample] = Field(default_factory=list)
    cadence: list[CadenceSample] = Field(default_factory=list)

    def samples_for(self, kind: MetricKind) -> list[Sample]:
        if kind is MetricKind.HEART_RATE:
            return list(self.heart_rate)
        return list(self.cadence)
