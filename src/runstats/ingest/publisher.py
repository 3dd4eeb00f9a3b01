"""
Display side of the pipeline.

Metric streams publish fire-and-forget to a ``DisplayConsumer``. The
``DisplayBoard`` keeps the most recent state per metric and buffers events
for an async reader such as an SSE response.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from runstats.models import MetricKind, SeriesUpdate
from runstats.utils import utc_now

logger = logging.getLogger(__name__)


class DisplayConsumer(Protocol):
    """Receiver of series updates and advisory messages."""

    def publish(self, kind: MetricKind, update: SeriesUpdate | None, message: str | None) -> None: ...


@dataclass
class DisplayEvent:
    """One publication of a metric stream."""

    kind: MetricKind
    update: SeriesUpdate | None
    message: str | None
    published_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric": self.kind.value,
            "update": self.update.model_dump(mode="json") if self.update is not None else None,
            "message": self.message,
            "published_at": self.published_at.isoformat(),
        }


class DisplayBoard:
    """Latest-value display state with a bounded event buffer.

    When the buffer is full the oldest undelivered event is discarded; the
    latest state per metric is always available from ``latest``.
    """

    def __init__(self, max_events: int = 256) -> None:
        self.latest: dict[MetricKind, DisplayEvent] = {}
        self._queue: asyncio.Queue[DisplayEvent | None] = asyncio.Queue(maxsize=max_events)
        self._closed = False

    def publish(self, kind: MetricKind, update: SeriesUpdate | None, message: str | None) -> None:
        if self._closed:
            return
        event = DisplayEvent(kind=kind, update=update, message=message)
        self.latest[kind] = event
        self._put(event)

    def _put(self, item: DisplayEvent | None) -> None:
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            dropped = self._queue.get_nowait()
            logger.debug(f"[Board] Event buffer full, discarding {dropped.kind.value if dropped else 'sentinel'} event")
            self._queue.put_nowait(item)

    def update_for(self, kind: MetricKind) -> SeriesUpdate | None:
        event = self.latest.get(kind)
        return event.update if event is not None else None

    def message_for(self, kind: MetricKind) -> str | None:
        event = self.latest.get(kind)
        return event.message if event is not None else None

    def close(self) -> None:
        """Stop accepting events and end ``events()`` after the buffered ones."""
        if self._closed:
            return
        self._closed = True
        self._put(None)  # Sentinel for end of stream

    async def events(self) -> AsyncIterator[DisplayEvent]:
        """Yield published events in order until the board is closed."""
        while True:
            event = await self._queue.get()
            if event is None:
                break
            yield event
