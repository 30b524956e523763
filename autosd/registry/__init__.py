"""In-memory registry of agents that asked to be scraped."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from .models import (
    AgentRegistration,
    check_required_fields,
    validate_identity,
    validate_registration,
)

logger = logging.getLogger(__name__)


class Registry:
    """Keeps the latest registration for each agent key.

    All access goes through a single lock that is held only while inserting,
    removing or copying entries. Readers work on the list returned by
    :meth:`snapshot` and never hold the lock while doing so.
    """

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], AgentRegistration] = {}
        self._lock = asyncio.Lock()

    async def register(self, entry: AgentRegistration) -> None:
        """Insert ``entry`` or replace the one sharing its key.

        Raises:
            RegistrationValidationError: if ``app`` or ``targets`` is empty.
                The registry is left untouched.
        """
        check_required_fields(entry.app, entry.targets)
        async with self._lock:
            replaced = entry.key in self._entries
            # Re-inserting keeps snapshot order equal to latest registration order.
            self._entries.pop(entry.key, None)
            self._entries[entry.key] = entry
        logger.debug(
            "%s registration for %s targets=%s",
            "Replaced" if replaced else "Accepted",
            entry.display_name,
            entry.targets,
        )

    async def deregister(self, app: str, instance_name: Optional[str] = None) -> bool:
        """Remove the registration for ``app``/``instance_name`` if present."""
        key = (app, instance_name or "")
        async with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.debug("Removed registration for %s", removed.display_name)
        return removed is not None

    async def snapshot(self) -> List[AgentRegistration]:
        """Return a point-in-time copy of all registrations."""
        async with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "AgentRegistration",
    "Registry",
    "check_required_fields",
    "validate_identity",
    "validate_registration",
]
