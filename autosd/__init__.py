"""autosd: dynamic Prometheus file_sd feeder for self-registering agents."""

from .channels import BaseChannel, QueueChannel
from .discovery import Reconciler, ReconcilerState, TargetGroup, build_target_group
from .errors import AutoSDError, BuildError, CycleError, RegistrationValidationError
from .registry import AgentRegistration, Registry, validate_registration

__version__ = "0.1.0"
__all__ = [
    "AgentRegistration",
    "AutoSDError",
    "BaseChannel",
    "BuildError",
    "CycleError",
    "QueueChannel",
    "Reconciler",
    "ReconcilerState",
    "Registry",
    "RegistrationValidationError",
    "TargetGroup",
    "build_target_group",
    "validate_registration",
]
