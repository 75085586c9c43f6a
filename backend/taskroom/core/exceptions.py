"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class TaskroomError(Exception):
    """Base exception for taskroom."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(TaskroomError):
    """Resource not found."""

    pass


class ValidationError(TaskroomError):
    """Validation error."""

    pass


class InvalidFormatError(ValidationError, ValueError):
    """A clock-time value could not be parsed."""

    pass


class OutOfRangeError(ValidationError, ValueError):
    """A minute-of-day value is outside [0, 1440)."""

    pass


class ExtractionError(TaskroomError):
    """Time extraction service error."""

    pass


class ExtractionFormatError(ExtractionError):
    """Extraction output failed schema validation."""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        super().__init__(message, details={"raw_output": raw_output})
        self.raw_output = raw_output


class ExtractionUnavailableError(ExtractionError):
    """Extraction call failed, timed out, or returned nothing."""

    pass


class InfrastructureError(TaskroomError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class PersistenceError(InfrastructureError):
    """Storage-layer failure on upsert or delete."""

    pass
