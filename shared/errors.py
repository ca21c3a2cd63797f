"""
Shared error handling for the vishing simulation access layer.
"""

from typing import Any, Dict, NamedTuple, Optional

from pydantic import BaseModel


UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    code: str
    error: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for access layer services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            error=self.message,
            details=self.details
        )


class AuthenticationError(AccessLayerException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Invalid request format", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(AccessLayerException):
    """Referenced content is absent."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class ServiceError(AccessLayerException):
    """Service-related errors."""

    def __init__(self, message: str = "Service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_ERROR", message, details)


class ConfigurationError(AccessLayerException):
    """A required setting is missing or inconsistent."""

    def __init__(self, message: str = "Service misconfigured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class NormalizedError(NamedTuple):
    """Message and code extracted from anything that was raised."""

    message: str
    code: str


def normalize_error(error: Any) -> NormalizedError:
    """Reduce a caught value to a ``NormalizedError``.

    Exceptions keep their message (the class name when the message is empty);
    access layer exceptions also keep their code. Anything else collapses to
    ``"Unknown error"``.
    """
    if isinstance(error, AccessLayerException):
        return NormalizedError(error.message or type(error).__name__, error.code)
    if isinstance(error, BaseException):
        return NormalizedError(str(error) or type(error).__name__, "INTERNAL_ERROR")
    return NormalizedError(UNKNOWN_ERROR_MESSAGE, "UNKNOWN_ERROR")
