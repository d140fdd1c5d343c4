"""
Custom exceptions for the fitness league service.

This module defines a hierarchy of exceptions that provide clear error
handling throughout the application. Each exception includes:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    BAD_REQUEST = "BAD_REQUEST"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"

    # Submission errors
    SUBMISSION_NOT_FOUND = "SUBMISSION_NOT_FOUND"
    SUBMISSION_VALIDATION_ERROR = "SUBMISSION_VALIDATION_ERROR"
    SUBMISSION_ALREADY_EXISTS = "SUBMISSION_ALREADY_EXISTS"
    SUBMISSION_STATE_CONFLICT = "SUBMISSION_STATE_CONFLICT"
    REUPLOAD_NOT_ALLOWED = "REUPLOAD_NOT_ALLOWED"
    SELF_VALIDATION = "SELF_VALIDATION"

    # League configuration errors
    LEAGUE_NOT_FOUND = "LEAGUE_NOT_FOUND"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"
    FREQUENCY_VALIDATION_ERROR = "FREQUENCY_VALIDATION_ERROR"
    THRESHOLD_CONFIG_ERROR = "THRESHOLD_CONFIG_ERROR"

    # Data/Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class FitLeagueError(Exception):
    """
    Base exception for all fitness league errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors (400)
# ============================================================================

class ValidationError(FitLeagueError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class SubmissionValidationError(ValidationError):
    """Raised when a submission or validation request is malformed."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, field=field, details=details)
        self.code = ErrorCode.SUBMISSION_VALIDATION_ERROR


class FrequencyValidationError(ValidationError):
    """Raised when a frequency cap configuration is out of range."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = "frequency",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, field=field, details=details)
        self.code = ErrorCode.FREQUENCY_VALIDATION_ERROR


class ThresholdConfigError(ValidationError):
    """Raised when activity minimums or age-group overrides are invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, field=field, details=details)
        self.code = ErrorCode.THRESHOLD_CONFIG_ERROR


# ============================================================================
# Permission Errors (403)
# ============================================================================

class PermissionDeniedError(FitLeagueError):
    """Raised when an actor lacks the role required for an operation."""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.FORBIDDEN,
            status_code=403,
            details=details,
        )


class SelfValidationError(PermissionDeniedError):
    """Raised when an actor tries to validate their own submission."""

    def __init__(
        self,
        submission_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["submission_id"] = submission_id
        super().__init__(
            message="You cannot validate your own submission",
            details=error_details,
        )
        self.code = ErrorCode.SELF_VALIDATION


# ============================================================================
# Not Found Errors (404)
# ============================================================================

class NotFoundError(FitLeagueError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=error_details,
        )


class SubmissionNotFoundError(NotFoundError):
    """Raised when a submission is not found."""

    def __init__(self, submission_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Submission",
            resource_id=submission_id,
            details=details,
        )
        self.code = ErrorCode.SUBMISSION_NOT_FOUND


class LeagueNotFoundError(NotFoundError):
    """Raised when a league is not found."""

    def __init__(self, league_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="League",
            resource_id=league_id,
            details=details,
        )
        self.code = ErrorCode.LEAGUE_NOT_FOUND


class MembershipNotFoundError(NotFoundError):
    """Raised when a user has no membership in the league."""

    def __init__(self, league_id: str, user_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        error_details = details or {}
        error_details["user_id"] = user_id
        super().__init__(
            resource_type="League membership",
            resource_id=league_id,
            details=error_details,
        )
        self.message = "You are not a member of this league"
        self.code = ErrorCode.MEMBERSHIP_NOT_FOUND


# ============================================================================
# Conflict Errors (409)
# ============================================================================

class ConflictError(FitLeagueError):
    """Raised when there's a resource conflict."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            status_code=409,
            details=details,
        )


class StateConflictError(ConflictError):
    """Raised when a submission's status no longer matches the expected one.

    Callers should refresh the submission rather than retry blindly.
    """

    def __init__(
        self,
        submission_id: str,
        expected_status: str,
        actual_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["submission_id"] = submission_id
        error_details["expected_status"] = expected_status
        if actual_status:
            error_details["actual_status"] = actual_status
        super().__init__(
            message="Submission was already validated by another reviewer. Refresh and try again.",
            details=error_details,
        )
        self.code = ErrorCode.SUBMISSION_STATE_CONFLICT


class DuplicateSubmissionError(ConflictError):
    """Raised when a member already has a current submission for the date."""

    def __init__(
        self,
        date: str,
        submission_type: str,
        existing_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["date"] = date
        error_details["type"] = submission_type
        error_details["existing_id"] = existing_id
        super().__init__(
            message=f"A {submission_type} submission already exists for {date}",
            details=error_details,
        )
        self.code = ErrorCode.SUBMISSION_ALREADY_EXISTS


class ReuploadNotAllowedError(ConflictError):
    """Raised when a rejected submission cannot be resubmitted."""

    def __init__(
        self,
        message: str,
        submission_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["submission_id"] = submission_id
        super().__init__(message=message, details=error_details)
        self.code = ErrorCode.REUPLOAD_NOT_ALLOWED


# ============================================================================
# Database Errors
# ============================================================================

class DatabaseError(FitLeagueError):
    """Raised when a database operation fails."""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=error_details,
        )
