"""Exception types raised by autosd components."""

from __future__ import annotations


class AutoSDError(Exception):
    """Base class for autosd errors."""


class RegistrationValidationError(AutoSDError, ValueError):
    """A registration is missing a required field or carries a bad value.

    ``field`` names the offending attribute using the wire name the agent
    sent (``app``, ``targets``, ``labels`` or ``body``) so the HTTP layer can
    report it back verbatim.
    """

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        self.message = message or f"`{field}` is required"
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "field": self.field}


class BuildError(AutoSDError):
    """A registry entry could not be turned into a target group."""


class CycleError(AutoSDError):
    """A reconciliation cycle could not read the registry."""
