"""Custom exception hierarchy for the rules backend."""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Document errors
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"

    # Version errors
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"

    # Release / environment / workflow errors
    RELEASE_NOT_FOUND = "RELEASE_NOT_FOUND"
    ENVIRONMENT_NOT_FOUND = "ENVIRONMENT_NOT_FOUND"
    WORKFLOW_NOT_FOUND = "WORKFLOW_NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Evaluation errors
    EVALUATION_FAILED = "EVALUATION_FAILED"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"

    # Concurrency errors
    CONFLICT = "CONFLICT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class BrmsException(Exception):
    """
    Base exception for all service errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, code, and details fields
        """
        return {
            "error": self.message,
            "code": self.error_code.value,
            "details": self.details
        }


class NotFoundError(BrmsException):
    """Base for lookups that found nothing (or only soft-deleted rows)."""

    def __init__(self, message: str, error_code: ErrorCode, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, status_code=404, details=details)


class DocumentNotFoundError(NotFoundError):
    """Document not found. Lists the keys that do exist to ease debugging."""

    def __init__(self, key: str, available_keys: Optional[List[str]] = None):
        super().__init__(
            f"Document not found: {key}",
            ErrorCode.DOCUMENT_NOT_FOUND,
            details={"key": key, "available_keys": available_keys or []}
        )


class VersionNotFoundError(NotFoundError):
    """Version not found, or not a version of the requested document."""

    def __init__(self, version_ref: str, key: Optional[str] = None):
        details: Dict[str, Any] = {"version": version_ref}
        if key is not None:
            details["key"] = key
        super().__init__(
            f"Version not found: {version_ref}",
            ErrorCode.VERSION_NOT_FOUND,
            details=details
        )


class ReleaseNotFoundError(NotFoundError):
    """Release not found in the project."""

    def __init__(self, release_id: str):
        super().__init__(
            f"Release not found: {release_id}",
            ErrorCode.RELEASE_NOT_FOUND,
            details={"release_id": release_id}
        )


class EnvironmentNotFoundError(NotFoundError):
    """Environment not found in the project."""

    def __init__(self, environment_id: str):
        super().__init__(
            f"Environment not found: {environment_id}",
            ErrorCode.ENVIRONMENT_NOT_FOUND,
            details={"environment_id": environment_id}
        )


class WorkflowNotFoundError(NotFoundError):
    """Deployment workflow run not found in the project."""

    def __init__(self, run_id: str):
        super().__init__(
            f"Workflow run not found: {run_id}",
            ErrorCode.WORKFLOW_NOT_FOUND,
            details={"workflow_run_id": run_id}
        )


class ValidationError(BrmsException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class InvalidTransitionError(BrmsException):
    """A workflow run or job was asked to move to a status it cannot reach."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot transition from {current} to {target}",
            ErrorCode.INVALID_TRANSITION,
            status_code=409,
            details={"current": current, "target": target}
        )


class ConflictError(BrmsException):
    """A concurrent writer claimed the same unique number. Safe to retry."""

    def __init__(self, resource: str, message: str = "Concurrent modification, please retry"):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details={"resource": resource, "retryable": True}
        )


class EvaluationError(BrmsException):
    """The decision engine rejected the graph or failed while evaluating it."""

    def __init__(self, message: str):
        super().__init__(
            message,
            ErrorCode.EVALUATION_FAILED,
            status_code=502,
        )


class AuthenticationError(BrmsException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class DatabaseError(BrmsException):
    """Database operation failed. Never carries query text."""

    def __init__(self, message: str = "Database operation failed", retryable: bool = False):
        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=503 if retryable else 500,
            details={"retryable": retryable}
        )
