"""
Custom exceptions for the SkyCart Supplier Backend.
"""

from typing import Any, Dict, Optional
from fastapi import status


class SkyCartException(Exception):
    """Base exception for all SkyCart-specific errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERIC_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(SkyCartException):
    """Draft fields are missing or contradictory; carries the full field error mapping."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None, details: Optional[Dict[str, Any]] = None):
        self.errors = dict(errors or {})
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"errors": self.errors, **(details or {})}
        )


class UploadException(SkyCartException):
    """Exception raised when the object store rejects or fails a single image."""

    def __init__(self, message: str, filename: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="UPLOAD_ERROR",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"filename": filename, **(details or {})}
        )


class IncompleteUploadException(SkyCartException):
    """Submit attempted while images are still pending or uploading."""

    def __init__(self, in_flight: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Please wait for images to finish uploading",
            error_code="UPLOADS_IN_PROGRESS",
            status_code=status.HTTP_409_CONFLICT,
            details={"in_flight": in_flight, **(details or {})}
        )


class SubmissionException(SkyCartException):
    """The product service rejected the composed payload."""

    def __init__(self, message: str = "Save failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="SUBMISSION_FAILED",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details
        )


class ImageLimitExceededException(SkyCartException):
    """A file selection would push the draft past its image cap."""

    def __init__(self, limit: int, current: int, requested: int):
        super().__init__(
            message=f"Maximum {limit} images allowed",
            error_code="IMAGE_LIMIT_EXCEEDED",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"limit": limit, "current": current, "requested": requested}
        )


class InvalidTransitionException(SkyCartException):
    """An image item was asked to move along an edge its lifecycle does not have."""

    def __init__(self, local_id: str, current: str, target: str):
        super().__init__(
            message=f"Image {local_id} cannot move from {current} to {target}",
            error_code="INVALID_TRANSITION",
            status_code=status.HTTP_409_CONFLICT,
            details={"local_id": local_id, "current": current, "target": target}
        )


class DraftClosedException(SkyCartException):
    """The draft session was already torn down."""

    def __init__(self, draft_id: str):
        super().__init__(
            message=f"Draft {draft_id} is closed",
            error_code="DRAFT_CLOSED",
            status_code=status.HTTP_410_GONE,
            details={"draft_id": draft_id}
        )


class ResourceNotFoundException(SkyCartException):
    """Exception raised when a resource is not found."""

    def __init__(self, resource: str, identifier: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            error_code="RESOURCE_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": identifier, **(details or {})}
        )


class ExternalServiceException(SkyCartException):
    """Exception raised when external service calls fail."""

    def __init__(self, service: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{service} service error: {message}",
            error_code="EXTERNAL_SERVICE_ERROR",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"service": service, **(details or {})}
        )


class DatabaseException(SkyCartException):
    """Exception raised for database-related errors."""

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"operation": operation, **(details or {})}
        )
