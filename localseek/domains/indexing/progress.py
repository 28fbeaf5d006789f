"""
Progress Broadcaster - One-way notification port for indexing events.

Publishing never fails observably: subscribers that are gone or too slow
simply miss events.
"""

from __future__ import annotations

import asyncio
import logging

from .models import IndexingComplete, IndexingProgress, ProgressEvent

logger = logging.getLogger(__name__)

__all__ = ["ProgressBroadcaster"]


class ProgressBroadcaster:
    """
    Fan out progress events to any number of queue subscribers.

    Example:
        >>> events = ProgressBroadcaster()
        >>> queue = events.subscribe()
        >>> events.progress(1, 10, "/docs/a.md")
        >>> queue.get_nowait().current
        1
    """

    def __init__(self, max_queue_size: int = 1000) -> None:
        self._subscribers: set[asyncio.Queue[ProgressEvent]] = set()
        self._max_queue_size = max_queue_size

    def subscribe(self) -> asyncio.Queue[ProgressEvent]:
        queue: asyncio.Queue[ProgressEvent] = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ProgressEvent]) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: ProgressEvent) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug("Dropping %s event for a full subscriber queue", event.event)

    def progress(self, current: int, total: int, path: str) -> None:
        """Callback-shaped entry point for ``index_directory``."""
        self.publish(IndexingProgress(current=current, total=total, path=path))

    def complete(self, message: str) -> None:
        self.publish(IndexingComplete(message=message))
