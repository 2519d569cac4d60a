"""Datastore domain enums."""

from enum import StrEnum


class VolumeType(StrEnum):
    """Filesystem type reported in the datastore summary."""

    VMFS = "VMFS"
    NFS = "NFS"
    NFS41 = "NFS41"
    VSAN = "vsan"
    VVOL = "VVOL"


class ResourceOperation(StrEnum):
    """Resource lifecycle operation."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    IMPORT = "import"


class ProvisionStep(StrEnum):
    """Steps of the provisioning pipeline after the initial create."""

    MOVE = "move"
    EXTEND_SPEC = "extend_spec"
    EXTEND = "extend"
    READ = "read"


class StepOutcome(StrEnum):
    """Result of one provisioning step."""

    SUCCESS = "success"
    ROLLED_BACK = "rolled_back"  # step failed, datastore removed again
    DANGLING = "dangling"  # step failed, removal failed too


class ConvergeState(StrEnum):
    """Convergence loop state."""

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"
    TIMEOUT = "timeout"


# States that end a convergence loop
CONVERGE_TERMINAL_STATES = frozenset({
    ConvergeState.COMPLETED,
    ConvergeState.ERROR,
    ConvergeState.TIMEOUT,
})
