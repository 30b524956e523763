"""In-process channel backed by an asyncio queue."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional, Sequence, Tuple

from ..discovery.entities import TargetGroup
from .base import BaseChannel

_CLOSED = object()


class QueueChannel(BaseChannel):
    """Deliver group lists to a single in-process consumer."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    async def publish(self, groups: Sequence[TargetGroup]) -> None:
        """Enqueue ``groups`` as one item."""
        if self._closed:
            raise RuntimeError("cannot publish on a closed channel")
        item: Tuple[TargetGroup, ...] = tuple(groups)
        await self._queue.put(item)

    async def get(self, timeout: Optional[float] = None) -> List[TargetGroup]:
        """Return the next published list, waiting at most ``timeout`` seconds."""
        item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            # Keep the marker visible to any other waiter.
            self._queue.put_nowait(_CLOSED)
            raise EOFError("channel closed")
        return list(item)

    async def subscribe(
        self, lifespan: Optional[float] = None
    ) -> AsyncIterator[List[TargetGroup]]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + lifespan if lifespan else None

        while True:
            timeout = None
            if deadline is not None:
                timeout = deadline - loop.time()
                if timeout <= 0:
                    break
            try:
                groups = await self.get(timeout)
            except (asyncio.TimeoutError, EOFError):
                break
            yield groups

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            await self._queue.put(_CLOSED)
