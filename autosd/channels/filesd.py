"""Persist channel output as a Prometheus file_sd document."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..discovery.entities import TargetGroup
from .base import BaseChannel

logger = logging.getLogger(__name__)


class FileSDWriter:
    """Apply published group lists to a file_sd JSON file.

    Groups are tracked by source. A live group replaces whatever was known
    for its source, a tombstone drops the source. The file is rewritten
    atomically and only when its content changes.
    """

    def __init__(self, path: str | os.PathLike[str], channel: Optional[BaseChannel] = None) -> None:
        self.path = Path(path)
        self._channel = channel
        self._groups: Dict[str, TargetGroup] = {}
        self._last_written: Optional[str] = None
        self.writes = 0

    @property
    def groups(self) -> List[TargetGroup]:
        return [self._groups[source] for source in sorted(self._groups)]

    def apply(self, groups: Iterable[TargetGroup]) -> None:
        """Merge one cycle's list into the tracked state."""
        for group in groups:
            if group.is_tombstone:
                self._groups.pop(group.source, None)
            else:
                self._groups[group.source] = group

    def render(self) -> List[Dict[str, Any]]:
        return [group.to_file_sd() for group in self.groups]

    def write(self) -> bool:
        """Write the tracked state to disk. Returns ``True`` if the file changed."""
        content = json.dumps(self.render(), indent=4, sort_keys=True)
        if content == self._last_written:
            return False

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        self._last_written = content
        self.writes += 1
        logger.debug("Wrote %d target groups to %s", len(self._groups), self.path)
        return True

    def update(self, groups: Iterable[TargetGroup]) -> bool:
        self.apply(groups)
        return self.write()

    async def run(self, lifespan: Optional[float] = None) -> None:
        """Consume the channel until it is closed."""
        if self._channel is None:
            raise ValueError("FileSDWriter.run requires a channel")

        async for groups in self._channel.subscribe(lifespan=lifespan):
            try:
                self.update(groups)
            except OSError as exc:
                logger.error("Failed to write discovery file %s: %s", self.path, exc)


def read_file_sd(path: str | os.PathLike[str]) -> List[Dict[str, Any]]:
    """Load a file_sd document written by :class:`FileSDWriter`."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of target groups")
    return data
