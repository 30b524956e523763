"""Target group records handed to the file_sd writer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ADDRESS_LABEL = "__address__"


class TargetGroup(BaseModel):
    """A set of scrape addresses sharing one label set.

    ``source`` identifies the group across reconciliation cycles. A group
    with no labels and no targets is a tombstone: it tells the writer that
    the source is gone.
    """

    source: str
    labels: dict[str, str] = Field(default_factory=dict)
    targets: list[dict[str, str]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def tombstone(cls, source: str) -> "TargetGroup":
        return cls(source=source)

    @property
    def is_tombstone(self) -> bool:
        return not self.targets and not self.labels

    @property
    def addresses(self) -> list[str]:
        return [t[ADDRESS_LABEL] for t in self.targets if ADDRESS_LABEL in t]

    def to_file_sd(self) -> dict[str, Any]:
        """Render in the Prometheus ``file_sd``/``http_sd`` shape."""
        return {"targets": self.addresses, "labels": dict(self.labels)}
