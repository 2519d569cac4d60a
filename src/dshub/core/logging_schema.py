"""Logging field schema - v1.0

Standard fields (added to all logs):
- schema_version: Log schema version
- service: Service name (dshub-datastore)
- component: Component name (PLANNER, PROVISION, READER, UPDATE, DELETE, IMPORT)
- event: Event type (operation_started, rollback_failed, etc.)
- trace_id: Operation trace ID

High cardinality fields (OK in logs, NOT in metric labels):
- ds_id: Datastore ID
- host_id: Host system ID
- disk: Disk canonical name
"""

from enum import StrEnum


class LogEvent(StrEnum):
    """Standard log event types.

    Use these event types in the 'event' extra field for consistent
    log filtering and analysis.
    """

    # Application lifecycle events
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # Resource operation events
    OPERATION_STARTED = "operation_started"
    OPERATION_SUCCESS = "operation_success"
    OPERATION_FAILED = "operation_failed"

    # Provisioning events
    DATASTORE_CREATED = "datastore_created"
    DATASTORE_EXTENDED = "datastore_extended"
    DATASTORE_MOVED = "datastore_moved"
    DATASTORE_RENAMED = "datastore_renamed"
    ROLLBACK_STARTED = "rollback_started"
    ROLLBACK_COMPLETE = "rollback_complete"
    ROLLBACK_FAILED = "rollback_failed"

    # Convergence events
    CONVERGE_PENDING = "converge_pending"
    CONVERGE_COMPLETE = "converge_complete"
    CONVERGE_FAILED = "converge_failed"
    CONVERGE_TIMEOUT = "converge_timeout"

    # Policy events
    SHRINK_REJECTED = "shrink_rejected"
    IMPORT_REJECTED = "import_rejected"


class ErrorClass(StrEnum):
    """Error classification for structured error logging.

    Use these in the 'error_class' extra field to enable
    filtering by error type and setting up alerts.
    """

    NOT_FOUND = "not_found"  # Object absent
    RESOURCE_IN_USE = "resource_in_use"  # Transient conflict, retried during delete
    OTHER = "other"  # Anything else, never retried


class Component(StrEnum):
    """Component identifiers for log filtering."""

    PLANNER = "planner"  # ExtentPlanner
    PROVISION = "provision"  # ProvisioningPipeline
    READER = "reader"  # ReconciliationReader
    UPDATE = "update"  # UpdateDiffer
    DELETE = "delete"  # DeletionConverger
    IMPORT = "import"  # ImportResolver
    GATEWAY = "gateway"  # HTTP gateway client
