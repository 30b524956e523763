"""Translate registry entries into target groups."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

from ..errors import BuildError
from ..registry.models import AgentRegistration
from .entities import ADDRESS_LABEL, TargetGroup

logger = logging.getLogger(__name__)

DEFAULT_LABEL_PREFIX = "__meta_"
DEFAULT_METRICS_PATH = "/metrics"


def split_address(address: str) -> Tuple[str, Optional[str]]:
    """Split ``host:port`` into its parts, keeping bracketed IPv6 hosts intact."""
    address = address.strip()
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else None
        return host, port or None
    if address.count(":") == 1:
        host, _, port = address.partition(":")
        return host, port or None
    return address, None


def source_for(
    entry: AgentRegistration, default_metrics_path: str = DEFAULT_METRICS_PATH
) -> str:
    """Return the source identity of ``entry``.

    The identity is the ``host:port`` of the first target. A non-default
    metrics path is appended so two exporters behind one address stay apart.
    """
    if not entry.targets:
        raise BuildError(f"registration {entry.display_name} has no targets")
    host, port = split_address(entry.targets[0])
    if not host:
        raise BuildError(
            f"registration {entry.display_name} has no host in {entry.targets[0]!r}"
        )
    if ":" in host:
        host = f"[{host}]"
    source = f"{host}:{port}" if port else host
    path = entry.metrics_path or default_metrics_path
    if path != default_metrics_path:
        source += path if path.startswith("/") else f"/{path}"
    return source


def build_target_group(
    entry: AgentRegistration,
    label_prefix: str = DEFAULT_LABEL_PREFIX,
    default_metrics_path: str = DEFAULT_METRICS_PATH,
) -> TargetGroup:
    """Return the target group advertising ``entry``.

    Raises:
        BuildError: if the entry has no usable first target.
    """
    source = source_for(entry, default_metrics_path)

    labels = {f"{label_prefix}app": entry.app}
    if entry.instance_name:
        labels[f"{label_prefix}instance_name"] = entry.instance_name
    labels[f"{label_prefix}metrics_path"] = entry.metrics_path or default_metrics_path

    targets = [{ADDRESS_LABEL: address.strip()} for address in entry.targets]
    return TargetGroup(source=source, labels=labels, targets=targets)


def build_live_groups(
    entries: Iterable[AgentRegistration],
    label_prefix: str = DEFAULT_LABEL_PREFIX,
    default_metrics_path: str = DEFAULT_METRICS_PATH,
    name: str = "autogenerate_sd",
) -> Dict[str, TargetGroup]:
    """Build one group per source from ``entries``, in snapshot order.

    Entries that cannot be built are logged and skipped. When two entries
    map to the same source the later one wins.
    """
    live: Dict[str, TargetGroup] = {}
    for entry in entries:
        try:
            group = build_target_group(
                entry,
                label_prefix=label_prefix,
                default_metrics_path=default_metrics_path,
            )
        except Exception as exc:
            logger.error(
                "[%s] Error building target group for %s: %s",
                name,
                entry.display_name,
                exc,
            )
            continue
        if group.source in live:
            logger.warning(
                "[%s] Source %s claimed by more than one registration, keeping %s",
                name,
                group.source,
                entry.display_name,
            )
            # Re-insert so the kept group sits where the winning entry does.
            del live[group.source]
        live[group.source] = group
    return live
