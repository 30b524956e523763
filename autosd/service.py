"""Wire registry, reconciler, channel and writer into one service."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .channels import FileSDWriter, QueueChannel
from .config import AutoSDConfig, load_config
from .discovery import Reconciler
from .registry import Registry
from .server import create_app

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Owns every long-lived component of a running feeder."""

    def __init__(self, config: Optional[AutoSDConfig] = None) -> None:
        self.config = config or load_config()
        self.registry = Registry()
        self.channel = QueueChannel()
        self.reconciler = Reconciler(
            self.registry,
            self.channel,
            refresh_interval=self.config.discovery.refresh_interval,
            label_prefix=self.config.discovery.label_prefix,
            default_metrics_path=self.config.discovery.default_metrics_path,
            name=self.config.output.name,
        )
        self.writer = FileSDWriter(self.config.output.path, self.channel)
        self._stop_event: Optional[asyncio.Event] = None
        self._reconciler_task: Optional[asyncio.Task] = None
        self._writer_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._reconciler_task is not None and not self._reconciler_task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._writer_task = asyncio.create_task(self.writer.run())
        self._reconciler_task = asyncio.create_task(
            self.reconciler.run(self._stop_event)
        )
        logger.info(
            "Discovery %s writing to %s", self.config.output.name, self.writer.path
        )

    async def stop(self) -> None:
        """Let the current cycle finish, flush the writer, then return."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._reconciler_task is not None:
            await self._reconciler_task
            self._reconciler_task = None
        await self.channel.close()
        if self._writer_task is not None:
            await self._writer_task
            self._writer_task = None

    @asynccontextmanager
    async def lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        await self.start()
        try:
            yield
        finally:
            await self.stop()

    def create_app(self) -> FastAPI:
        return create_app(
            self.registry, discovery=self.config.discovery, lifespan=self.lifespan
        )
