"""Handoff between the reconciler and the discovery file writer."""

from __future__ import annotations

from .base import BaseChannel
from .filesd import FileSDWriter, read_file_sd
from .inmemory import QueueChannel

__all__ = ["BaseChannel", "FileSDWriter", "QueueChannel", "read_file_sd"]
