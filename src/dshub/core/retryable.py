"""Remote error classification.

Classifies gateway failures as not-found, resource-in-use (transient
conflict), or other. The delete loops are the only callers that act on the
classification; everywhere else remote errors propagate as-is.

Usage:
    from dshub.core.retryable import is_resource_in_use, is_not_found

    if is_resource_in_use(exc):
        # stay pending, try again
"""

import httpx

from dshub.core.errors import GatewayError
from dshub.core.logging_schema import ErrorClass

# =============================================================================
# httpx error classification
# =============================================================================

# 409 Conflict / 423 Locked: object busy (mounted, has open handles, ...)
HTTP_IN_USE_STATUSES = frozenset({409, 423})


def classify_http_status(status: int) -> ErrorClass:
    """Classify an HTTP status code returned by the gateway."""
    if status == 404:
        return ErrorClass.NOT_FOUND
    if status in HTTP_IN_USE_STATUSES:
        return ErrorClass.RESOURCE_IN_USE
    return ErrorClass.OTHER


# =============================================================================
# Unified classification
# =============================================================================


def classify_error(exc: BaseException) -> ErrorClass:
    """Classify error as not_found, resource_in_use or other.

    Args:
        exc: Exception to classify

    Returns:
        ErrorClass of the exception. Unknown errors are OTHER (never retried).
    """
    if isinstance(exc, GatewayError):
        return exc.kind

    if isinstance(exc, httpx.HTTPStatusError):
        return classify_http_status(exc.response.status_code)

    return ErrorClass.OTHER


def is_not_found(exc: BaseException) -> bool:
    """Check if error means the object does not exist."""
    return classify_error(exc) == ErrorClass.NOT_FOUND


def is_resource_in_use(exc: BaseException) -> bool:
    """Check if error is a transient "resource in use" conflict."""
    return classify_error(exc) == ErrorClass.RESOURCE_IN_USE
