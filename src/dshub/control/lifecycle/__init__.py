"""Lifecycle module - create, read, update, delete and import of VMFS datastores."""

from dshub.control.lifecycle.converge import (
    ConvergeLoop,
    LoopConfig,
    RefreshResult,
    advance,
    converge,
    next_wait,
)
from dshub.control.lifecycle.deletion import DeletionConverger
from dshub.control.lifecycle.extent_planner import DiskSpec, ExtentPlanner
from dshub.control.lifecycle.importer import ImportResolver, parse_import_id
from dshub.control.lifecycle.provisioning import ProvisioningPipeline, StepResult
from dshub.control.lifecycle.reader import ReconciliationReader
from dshub.control.lifecycle.resource import VmfsDatastoreResource
from dshub.control.lifecycle.updater import ExtentDiff, UpdateDiffer, diff_extents

__all__ = [
    "VmfsDatastoreResource",
    # Components
    "ExtentPlanner",
    "DiskSpec",
    "ProvisioningPipeline",
    "StepResult",
    "ReconciliationReader",
    "UpdateDiffer",
    "ExtentDiff",
    "diff_extents",
    "DeletionConverger",
    "ImportResolver",
    "parse_import_id",
    # Convergence
    "ConvergeLoop",
    "LoopConfig",
    "RefreshResult",
    "advance",
    "converge",
    "next_wait",
]
