"""
Router utility functions.

Translates domain exceptions into HTTPException so endpoints stay thin.

Dependencies: fastapi, docqa.core.exceptions
System role: Error mapping for every router
"""

from fastapi import HTTPException

from docqa.core.exceptions import (
    DocQAException,
    DocumentNotFoundError,
    InvalidTransitionError,
    JobConflictError,
    JobNotFoundError,
    OverloadedError,
    OwnerNotFoundError,
    RegistryError,
    TransientProviderError,
    ValidationError,
)


def overloaded_http_error(error: OverloadedError) -> HTTPException:
    """503 with a Retry-After header and the controller load."""
    return HTTPException(
        status_code=503,
        detail={
            "message": error.message,
            "retryAfter": error.retry_after,
            "load": error.load,
        },
        headers={"Retry-After": str(error.retry_after)},
    )


def http_error_for(error: DocQAException) -> HTTPException:
    """
    Map a domain exception to its HTTP status.

    Args:
        error: Raised domain exception

    Returns:
        HTTPException: Ready to raise
    """
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail={"message": error.message, "code": error.code})
    if isinstance(error, OverloadedError):
        return overloaded_http_error(error)
    if isinstance(error, (DocumentNotFoundError, OwnerNotFoundError, JobNotFoundError)):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, (JobConflictError, InvalidTransitionError)):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, RegistryError):
        return HTTPException(status_code=503, detail=error.message)
    if isinstance(error, TransientProviderError):
        return HTTPException(status_code=502, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)
