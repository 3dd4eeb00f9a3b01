"""
Series-level data models: aggregate statistics and display projections.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

from runstats.models.sample import Sample

SampleT = TypeVar("SampleT", bound=Sample)


class SeriesStats(BaseModel):
    """Min/max/sum/count over every value of a series.

    Instances are immutable; ``including`` returns a new instance with more
    values folded in, touching only those values.
    """

    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    sum: float
    count: int = Field(..., ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def average(self) -> float:
        if self.count == 0:
            return 0.0
        return self.sum / self.count

    @classmethod
    def from_values(cls, values: Iterable[float]) -> SeriesStats | None:
        """Compute statistics from scratch. Returns None for no values."""
        iterator = iter(values)
        try:
            first = float(next(iterator))
        except StopIteration:
            return None
        stats = cls(min=first, max=first, sum=first, count=1)
        return stats.including(iterator)

    def including(self, values: Iterable[float]) -> SeriesStats:
        """Return statistics with ``values`` folded in."""
        low, high, total, count = self.min, self.max, self.sum, self.count
        for raw in values:
            value = float(raw)
            if count == 0:
                low = high = total = value
                count = 1
                continue
            if value < low:
                low = value
            if value > high:
                high = value
            total += value
            count += 1
        if count == self.count:
            return self
        return SeriesStats(min=low, max=high, sum=total, count=count)


class SeriesUpdate(BaseModel, Generic[SampleT]):
    """Display projection of a series delivered after each merge.

    ``dropped_points`` counts the samples elided by downsampling in this
    projection only, not cumulatively.
    """

    display_samples: list[SampleT] = Field(default_factory=list)
    stats: SeriesStats | None = None
    dropped_points: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return not self.display_samples
