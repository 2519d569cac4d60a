"""Domain enums."""

from dshub.core.domain.datastore import (
    CONVERGE_TERMINAL_STATES,
    ConvergeState,
    ProvisionStep,
    ResourceOperation,
    StepOutcome,
    VolumeType,
)

__all__ = [
    "ConvergeState",
    "ProvisionStep",
    "ResourceOperation",
    "StepOutcome",
    "VolumeType",
    "CONVERGE_TERMINAL_STATES",
]
