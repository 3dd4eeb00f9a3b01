"""Downsample an ordered series for chart rendering.

The reduction keeps an evenly spaced grid of points across the timeline and
always keeps the first point, the last point and the points carrying the
global minimum and maximum values, so a rendered chart never loses its
endpoints or its extrema.

Algorithm
---------
1. Required indices: ``0``, ``n - 1``, ``argmin(values)``, ``argmax(values)``
   (ties resolve to the first occurrence).
2. Grid indices: ``round(bucket * (n - 1) / (limit - 1))`` for every bucket in
   ``[0, limit)``, rounded half away from zero.
3. While more than ``limit`` indices remain, drop the non-required index whose
   removal leaves the smallest gap between its neighbours. Ties go to the
   earliest position.

Because the required indices are never dropped, the output may exceed
``limit`` by at most the size of the required set.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

import numpy as np

from runstats.models import Sample

SampleT = TypeVar("SampleT", bound=Sample)


def _grid_indices(n: int, limit: int) -> np.ndarray:
    """Evenly spaced indices over ``[0, n - 1]``, ``limit`` buckets wide."""
    step = (n - 1) / (limit - 1)
    positions = np.arange(limit, dtype=np.float64) * step
    # np.round rounds half to even; the grid rounds half away from zero
    grid = np.floor(positions + 0.5).astype(np.int64)
    return np.minimum(grid, n - 1)


def _neighbour_gaps(indices: np.ndarray) -> np.ndarray:
    """Gap that would remain around each position if it were removed."""
    m = len(indices)
    gaps = np.zeros(m, dtype=np.float64)
    if m < 2:
        return gaps
    gaps[0] = indices[1] - indices[0]
    gaps[-1] = indices[-1] - indices[-2]
    if m > 2:
        gaps[1:-1] = indices[2:] - indices[:-2]
    return gaps


def select_indices(values: np.ndarray, limit: int) -> np.ndarray:
    """Pick the sorted indices of the points kept for display.

    Args:
        values: 1-D array of sample values in series order
        limit: Target number of points (must be > 1)

    Returns:
        Sorted array of unique indices into ``values``
    """
    n = len(values)
    last_index = n - 1
    required = np.unique(np.array([0, last_index, int(np.argmin(values)), int(np.argmax(values))], dtype=np.int64))

    indices = np.union1d(required, _grid_indices(n, limit))
    removable = ~np.isin(indices, required)

    while len(indices) > limit:
        gaps = _neighbour_gaps(indices)
        gaps[~removable] = np.inf
        position = int(np.argmin(gaps))
        if not np.isfinite(gaps[position]):
            break
        indices = np.delete(indices, position)
        removable = np.delete(removable, position)

    return indices


def downsample(samples: Sequence[SampleT], threshold: int, limit: int) -> tuple[list[SampleT], int]:
    """Reduce ``samples`` to about ``limit`` display points.

    Args:
        samples: Series ordered by timestamp
        threshold: Series length at or below which no reduction happens
        limit: Target number of display points

    Returns:
        Tuple of (display samples ordered by timestamp, number of dropped samples)
    """
    n = len(samples)
    if n <= threshold or limit <= 1:
        return list(samples), 0

    values = np.fromiter((sample.value for sample in samples), dtype=np.float64, count=n)
    indices = select_indices(values, limit)

    result = sorted((samples[i] for i in indices.tolist()), key=lambda sample: sample.timestamp)
    return result, max(0, n - len(result))
