"""
Exception hierarchy for the DocQA engine.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class DocQAException(Exception):
    """Base exception for all DocQA application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(DocQAException):
    """Raised when input validation fails. Surfaced verbatim, never retried."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            code: Machine-readable error code for clients
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        if code:
            details["code"] = code
        self.code = code
        super().__init__(message, details)


class DocumentNotFoundError(DocQAException):
    """Raised when a selector does not resolve to an active document."""

    def __init__(self, selector: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["selector"] = selector
        self.selector = selector
        super().__init__(f"Document not found: {selector}", details)


class OwnerNotFoundError(DocQAException):
    """Raised when an owner slug or id cannot be found."""

    def __init__(self, owner: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["owner"] = owner
        super().__init__(f"Owner not found: {owner}", details)


class JobNotFoundError(DocQAException):
    """Raised when a processing job cannot be found."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["job_id"] = job_id
        super().__init__(f"Job {job_id} does not exist", details)


class JobConflictError(DocQAException):
    """Raised when a job operation would interrupt active work."""

    def __init__(
        self,
        message: str,
        job_id: str | None = None,
        status: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize job conflict error.

        Args:
            message: Reason shown to the caller
            job_id: ID of the job in conflict
            status: Current job status
            details: Additional context
        """
        details = details or {}
        if job_id:
            details["job_id"] = job_id
        if status:
            details["status"] = status
        super().__init__(message, details)


class InvalidTransitionError(DocQAException):
    """Raised when a job status change is not in the transition table."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Illegal job transition: {current} -> {target}",
            {"current": current, "target": target},
        )


class TransientProviderError(DocQAException):
    """
    Raised when an external collaborator fails during processing.

    Recorded on the job with the stage name; the job becomes eligible
    for manual or stale-auto retry.
    """

    stage: str = "unknown"

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        is_retryable: bool = True,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize provider error.

        Args:
            message: Error message
            stage: Pipeline stage that failed (defaults to the class stage)
            is_retryable: Whether retrying the call may succeed
            details: Additional context
        """
        details = details or {}
        self.stage = stage or self.stage
        self.is_retryable = is_retryable
        details["stage"] = self.stage
        super().__init__(message, details)


class ExtractionError(TransientProviderError):
    """Raised when text extraction fails or yields no text."""

    stage = "extract"


class EmbeddingError(TransientProviderError):
    """Raised when embedding generation fails."""

    stage = "embed"


class DatastoreError(TransientProviderError):
    """Raised when a datastore read or write fails mid-pipeline."""

    stage = "store"


class IntegrityViolationError(DocQAException):
    """Raised when a chunk write is attempted for a document that does not exist."""

    def __init__(self, document_id: str) -> None:
        super().__init__(
            f"Refusing to write chunks for missing document {document_id}",
            {"document_id": document_id},
        )


class OverloadedError(DocQAException):
    """Raised by the admission controller when all slots are taken."""

    def __init__(
        self,
        message: str,
        retry_after: int = 30,
        load: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize overload signal.

        Args:
            message: Message shown to the caller
            retry_after: Suggested back-off in seconds
            load: Current controller load snapshot
        """
        self.retry_after = retry_after
        self.load = load or {}
        super().__init__(message, {"retry_after": retry_after, "load": self.load})


class RegistryError(DocQAException):
    """Raised when the document registry cannot be (re)built."""

    pass
