"""Pydantic models describing registered agents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..errors import RegistrationValidationError


class AgentRegistration(BaseModel):
    """An agent that asked to be scraped."""

    app: str
    targets: List[str] = Field(default_factory=list)
    instance_name: Optional[str] = None
    metrics_path: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> Tuple[str, str]:
        """Identity used to replace an earlier registration of the same agent."""
        return (self.app, self.instance_name or "")

    @property
    def display_name(self) -> str:
        if self.instance_name:
            return f"{self.app}/{self.instance_name}"
        return self.app

    def to_payload(self) -> dict[str, Any]:
        """Return the wire body an agent would POST for this registration."""
        labels: dict[str, str] = {"app": self.app}
        if self.instance_name:
            labels["instance_name"] = self.instance_name
        if self.metrics_path:
            labels["metrics_path"] = self.metrics_path
        return {"targets": list(self.targets), "labels": labels}


def _optional_label(labels: Mapping[str, Any], name: str) -> Optional[str]:
    value = labels.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise RegistrationValidationError(name, f"`{name}` must be a string")
    return value


def check_required_fields(app: Any, targets: Any) -> None:
    """Raise if ``targets`` or ``app`` is missing, empty or of the wrong type.

    Fields are checked in wire order so the first missing one is reported.
    """

    if not targets:
        raise RegistrationValidationError("targets")
    if isinstance(targets, (str, bytes)) or not isinstance(targets, (list, tuple)):
        raise RegistrationValidationError(
            "targets", "`targets` must be a list of addresses"
        )
    for target in targets:
        if not isinstance(target, str) or not target.strip():
            raise RegistrationValidationError(
                "targets", "`targets` must only contain non-empty addresses"
            )
    if not app:
        raise RegistrationValidationError("app")
    if not isinstance(app, str) or not app.strip():
        raise RegistrationValidationError("app", "`app` must be a non-empty string")


def validate_registration(payload: Any) -> AgentRegistration:
    """Validate a registration body and return the entry it describes.

    The body has the shape::

        {"targets": ["10.0.0.1:9100"],
         "labels": {"app": "svc-a", "instance_name": "a-1", "metrics_path": "/m"}}

    Raises:
        RegistrationValidationError: naming the first offending field.
    """

    if not isinstance(payload, Mapping):
        raise RegistrationValidationError("body", "request body must be a JSON object")

    labels = payload.get("labels")
    if labels is None:
        labels = {}
    if not isinstance(labels, Mapping):
        raise RegistrationValidationError("labels", "`labels` must be an object")

    targets = payload.get("targets")
    app = labels.get("app")
    check_required_fields(app, targets)

    return AgentRegistration(
        app=app,
        targets=list(targets),
        instance_name=_optional_label(labels, "instance_name"),
        metrics_path=_optional_label(labels, "metrics_path"),
    )


def validate_identity(payload: Any) -> Tuple[str, Optional[str]]:
    """Return the ``(app, instance_name)`` named by a withdrawal body.

    Raises:
        RegistrationValidationError: naming the first offending field.
    """

    if not isinstance(payload, Mapping):
        raise RegistrationValidationError("body", "request body must be a JSON object")
    labels = payload.get("labels")
    if not isinstance(labels, Mapping):
        raise RegistrationValidationError("labels", "`labels` must be an object")

    app = labels.get("app")
    if not app:
        raise RegistrationValidationError("app")
    if not isinstance(app, str) or not app.strip():
        raise RegistrationValidationError("app", "`app` must be a non-empty string")
    return app, _optional_label(labels, "instance_name")
