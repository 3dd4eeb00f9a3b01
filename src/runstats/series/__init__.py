"""Series reduction: ordered merge, incremental statistics and display downsampling."""

from .downsampler import downsample, select_indices
from .reducer import SeriesReducer, merge_series

__all__ = ["SeriesReducer", "downsample", "merge_series", "select_indices"]
