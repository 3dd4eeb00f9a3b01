"""Sample sources feeding the ingestion pipeline."""

from .anchors import AnchorStore
from .base import SampleSource
from .fallback import FallbackSampleSource, default_sample_source, prewarm_with_fallback, stream_with_fallback
from .live import LiveFileSampleSource
from .stored import StoredSampleSource

__all__ = [
    "AnchorStore",
    "FallbackSampleSource",
    "LiveFileSampleSource",
    "SampleSource",
    "StoredSampleSource",
    "default_sample_source",
    "prewarm_with_fallback",
    "stream_with_fallback",
]
