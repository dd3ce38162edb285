"""
Custom exceptions for the application.

API exceptions inherit from APIException for consistent error responses.
Pipeline exceptions inherit from PipelineError; they never reach HTTP
callers and are retried (or not) by the queue layer.
"""
from typing import Optional, Any


class APIException(Exception):
    """
    Base exception for all API errors.
    Provides consistent error response format.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Any] = None,
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(self.message)


class BadRequestException(APIException):
    """400 Bad Request"""

    def __init__(self, message: str = "Bad request", code: str = "BAD_REQUEST"):
        super().__init__(400, code, message)


class UnauthorizedException(APIException):
    """401 Unauthorized"""

    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED"):
        super().__init__(401, code, message)


class ForbiddenException(APIException):
    """403 Forbidden"""

    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN"):
        super().__init__(403, code, message)


class NotFoundException(APIException):
    """404 Not Found"""

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        super().__init__(404, code, message)


class ConflictException(APIException):
    """409 Conflict"""

    def __init__(self, message: str = "Resource conflict", code: str = "CONFLICT"):
        super().__init__(409, code, message)


class ValidationException(APIException):
    """422 Validation Error"""

    def __init__(
        self,
        message: str = "Validation error",
        code: str = "VALIDATION_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(422, code, message, details)


class InvalidTokenException(UnauthorizedException):
    """Token is invalid"""

    def __init__(self):
        super().__init__(
            message="Invalid token",
            code="INVALID_TOKEN",
        )


# Job alert exceptions
class JobAlertNotFoundException(NotFoundException):
    """Job alert not found (or owned by someone else)"""

    def __init__(self):
        super().__init__(message="Job alert not found", code="JOB_ALERT_NOT_FOUND")


class AlertValidationException(ValidationException):
    """Alert criteria rejected at creation/update time"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message=message, code="INVALID_ALERT_CRITERIA", details=details)


class AlertLimitExceededException(ConflictException):
    """User already owns the maximum number of active alerts"""

    def __init__(self, limit: int):
        super().__init__(
            message=f"You can have at most {limit} active job alerts",
            code="ALERT_LIMIT_EXCEEDED",
        )


class QueueNotFoundException(NotFoundException):
    """Unknown queue name"""

    def __init__(self, queue_name: str):
        super().__init__(message=f"Queue {queue_name} not found", code="QUEUE_NOT_FOUND")


# Background pipeline exceptions
class PipelineError(Exception):
    """Base class for failures confined to the background pipeline."""


class SearchIndexError(PipelineError):
    """Search index unreachable or request rejected. Transient: retried."""


class EmailDeliveryError(PipelineError):
    """Email dispatch failed. Transient: retried; matches stay unsent."""


class InvalidJobPayloadError(PipelineError):
    """Queue payload failed validation. Unrecoverable: never retried."""


class UnsupportedDatabaseError(PipelineError):
    """The configured database cannot run a required statement. Not retried."""

    def __init__(self, dialect: str, operation: str):
        super().__init__(f"{operation} is not supported on the {dialect} dialect")
        self.dialect = dialect
        self.operation = operation
