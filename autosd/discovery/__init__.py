"""Target group construction and the reconciliation loop."""

from __future__ import annotations

from .builder import build_live_groups, build_target_group, source_for, split_address
from .entities import ADDRESS_LABEL, TargetGroup
from .reconciler import Reconciler, ReconcilerState

__all__ = [
    "ADDRESS_LABEL",
    "Reconciler",
    "ReconcilerState",
    "TargetGroup",
    "build_live_groups",
    "build_target_group",
    "source_for",
    "split_address",
]
