"""Base channel interface between the reconciler and the file writer."""

from __future__ import annotations

import abc
from typing import AsyncIterator, List, Optional, Sequence

from ..discovery.entities import TargetGroup


class BaseChannel(metaclass=abc.ABCMeta):
    """Abstract handoff carrying one complete group list per cycle."""

    @abc.abstractmethod
    async def publish(self, groups: Sequence[TargetGroup]) -> None:
        """Send the full list produced by one reconciliation cycle."""
        raise NotImplementedError

    @abc.abstractmethod
    async def subscribe(
        self, lifespan: Optional[float] = None
    ) -> AsyncIterator[List[TargetGroup]]:
        """Yield published lists in order until the channel is closed.

        Args:
            lifespan: Maximum time in seconds to keep listening. If None, runs
                until :meth:`close` is called.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Stop subscribers once pending lists are consumed (no-op by default)."""
        pass
