"""Periodic snapshot/diff loop feeding the discovery channel."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, List, Optional

from ..errors import CycleError
from ..registry.models import AgentRegistration
from .builder import DEFAULT_LABEL_PREFIX, DEFAULT_METRICS_PATH, build_live_groups
from .entities import TargetGroup

if TYPE_CHECKING:
    from ..channels import BaseChannel
    from ..registry import Registry

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    IDLE = "idle"
    RECONCILING = "reconciling"
    TERMINATED = "terminated"


class Reconciler:
    """Rebuild the full discovery state on every tick and publish it.

    Each cycle emits every live group plus a tombstone for each source that
    was live in the previous successful cycle but produced no group in this
    one. Stop requests are honored only between cycles.
    """

    def __init__(
        self,
        registry: Registry,
        channel: BaseChannel,
        refresh_interval: float = 30.0,
        label_prefix: str = DEFAULT_LABEL_PREFIX,
        default_metrics_path: str = DEFAULT_METRICS_PATH,
        name: str = "autogenerate_sd",
    ) -> None:
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")
        self._registry = registry
        self._channel = channel
        self._refresh_interval = refresh_interval
        self._label_prefix = label_prefix
        self._default_metrics_path = default_metrics_path
        self.name = name
        self._known_sources: FrozenSet[str] = frozenset()
        self._stop_event = asyncio.Event()
        self._external_stop: Optional[asyncio.Event] = None
        self.state = ReconcilerState.IDLE
        self.cycles = 0

    @property
    def known_sources(self) -> FrozenSet[str]:
        return self._known_sources

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    async def _take_snapshot(self) -> List[AgentRegistration]:
        try:
            return await self._registry.snapshot()
        except Exception as exc:
            raise CycleError(f"failed to read registry snapshot: {exc}") from exc

    async def run_cycle(self) -> Optional[List[TargetGroup]]:
        """Run one reconciliation pass.

        Returns the published list, or ``None`` when the cycle was skipped.
        A skipped cycle publishes nothing and keeps the known sources.
        """
        try:
            entries = await self._take_snapshot()
        except CycleError as exc:
            logger.error("[%s] Skipping cycle: %s", self.name, exc, exc_info=exc)
            return None

        live = build_live_groups(
            entries,
            label_prefix=self._label_prefix,
            default_metrics_path=self._default_metrics_path,
            name=self.name,
        )

        current = frozenset(live)
        gone = sorted(self._known_sources - current)
        groups = list(live.values())
        groups.extend(TargetGroup.tombstone(source) for source in gone)

        try:
            await self._channel.publish(groups)
        except Exception as exc:
            logger.error(
                "[%s] Failed to publish %d target groups: %s",
                self.name,
                len(groups),
                exc,
            )
            return None

        self._known_sources = current
        self.cycles += 1
        if gone:
            logger.info("[%s] Sources gone since last cycle: %s", self.name, gone)
        logger.debug(
            "[%s] Cycle %d published %d live groups and %d tombstones",
            self.name,
            self.cycles,
            len(live),
            len(gone),
        )
        return groups

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Reconcile now and then every ``refresh_interval`` until stopped.

        Args:
            stop_event: External shutdown signal, watched alongside
                :meth:`stop`. Setting either one ends the loop.
        """
        self._external_stop = stop_event
        logger.info(
            "[%s] Reconciler started (refresh every %ss)",
            self.name,
            self._refresh_interval,
        )
        try:
            while not self.stop_requested:
                self.state = ReconcilerState.RECONCILING
                cycle = asyncio.ensure_future(self.run_cycle())
                try:
                    await asyncio.shield(cycle)
                except asyncio.CancelledError:
                    # Let the in-flight cycle publish its list before terminating.
                    await cycle
                    raise
                self.state = ReconcilerState.IDLE
                if await self._wait_for_tick():
                    break
        finally:
            self.state = ReconcilerState.TERMINATED
            logger.info("[%s] Reconciler stopped after %d cycles", self.name, self.cycles)

    @property
    def stop_requested(self) -> bool:
        if self._stop_event.is_set():
            return True
        return self._external_stop is not None and self._external_stop.is_set()

    def stop(self) -> None:
        """Request termination; an in-progress cycle still completes."""
        self._stop_event.set()

    async def _wait_for_tick(self) -> bool:
        """Wait for the next tick. Returns ``True`` if stop was requested."""
        events = [self._stop_event]
        if self._external_stop is not None:
            events.append(self._external_stop)
        waiters = [asyncio.ensure_future(event.wait()) for event in events]
        try:
            await asyncio.wait(
                waiters,
                timeout=self._refresh_interval,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters:
                waiter.cancel()
        return self.stop_requested
