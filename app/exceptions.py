"""
Custom Exception Classes for the Repression Archive API

This module defines custom exceptions for better error handling and
consistent error responses across the application.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned in every error body."""

    AUTH_FAILED = "AUTH_FAILED"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CASE_NOT_FOUND = "RESOURCE_CASE_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_INVALID_DATE_RANGE = "VALIDATION_INVALID_DATE_RANGE"
    ANALYTICS_UNAVAILABLE = "ANALYTICS_UNAVAILABLE"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ArchiveError(Exception):
    """Base exception class for all archive-related exceptions"""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(ArchiveError):
    """Raised when authentication fails"""

    error_code = ErrorCode.AUTH_FAILED

    def __init__(self, message: str = "Not authorized, no token", details: dict[str, Any] | None = None):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED, details=details or {})


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer token is invalid, expired or names an unknown user"""

    error_code = ErrorCode.AUTH_INVALID_TOKEN

    def __init__(self, message: str = "Not authorized, token failed"):
        super().__init__(message=message)


class AuthorizationError(ArchiveError):
    """Raised when user lacks permission for an action"""

    error_code = ErrorCode.AUTH_PERMISSION_DENIED

    def __init__(self, message: str = "Access denied. Moderator or Admin only.", required_roles: list[str] | None = None):
        details = {"required_roles": required_roles} if required_roles else {}
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN, details=details)


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(ArchiveError):
    """Base class for resource not found errors"""

    error_code = ErrorCode.RESOURCE_NOT_FOUND

    def __init__(self, resource_type: str, resource_id: Any | None = None):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class CaseNotFoundError(ResourceNotFoundError):
    """Raised when a case or memory is not found"""

    error_code = ErrorCode.RESOURCE_CASE_NOT_FOUND

    def __init__(self, case_id: Any | None = None):
        super().__init__(resource_type="Case", resource_id=case_id)


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(ArchiveError):
    """Raised when input validation fails"""

    error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=error_details)


class InvalidDateRangeError(ValidationError):
    """Raised when a reporting period cannot be resolved to a valid date range"""

    error_code = ErrorCode.VALIDATION_INVALID_DATE_RANGE


# ============================================================================
# Service Exceptions
# ============================================================================


class ServiceError(ArchiveError):
    """Raised when a service layer operation fails"""

    def __init__(self, message: str, service: str | None = None, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        details = {"service": service} if service else {}
        super().__init__(message=message, status_code=status_code, details=details)


class AnalyticsQueryError(ServiceError):
    """Raised when a reporting query cannot be answered by the store"""

    error_code = ErrorCode.ANALYTICS_UNAVAILABLE

    def __init__(self, query: str):
        super().__init__(
            message=f"Analytics query '{query}' failed",
            service="analytics",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
        self.details["query"] = query
