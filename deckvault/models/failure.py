"""
Error Taxonomy and Response Envelope.

Every API response, successful or not, is expressed through `ApiResponse`.
Failures are raised as typed `DeckError` subclasses and translated into the
envelope by the exception handlers in `deckvault.api.errors`.

Error kinds:
- ValidationError: malformed, missing or out-of-range input (400)
- NotFoundError: the target deck does not exist (404)
- ConflictError: deck name uniqueness violation (409)
- InternalError: anything else (500, details never leaked)

Handlers select the HTTP status from the error TYPE. Messages are for
humans only and are never inspected by code.
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    """Machine-readable error classification returned in the envelope."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


T = TypeVar("T")


class FieldViolation(BaseModel):
    """A single rejected input field."""

    field: str = Field(..., description="Dotted path of the offending field")
    message: str = Field(..., description="Why the value was rejected")


class PaginationInfo(BaseModel):
    """Pagination block attached to list responses."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")


class ApiResponse(BaseModel, Generic[T]):
    """
    Universal response envelope for all deck endpoints.

    Optional keys are omitted from the serialized body when unset
    (endpoints serialize with ``exclude_none``).
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str | None = None
    data: T | None = None
    pagination: PaginationInfo | None = None
    count: int | None = None
    error: ErrorCode | None = None
    details: list[FieldViolation] | None = None

    @classmethod
    def ok(
        cls,
        data: T | None = None,
        message: str | None = None,
        pagination: PaginationInfo | None = None,
        count: int | None = None,
    ) -> "ApiResponse[T]":
        """Create a success response."""
        return cls(
            success=True,
            message=message,
            data=data,
            pagination=pagination,
            count=count,
        )

    @classmethod
    def failure(
        cls,
        code: ErrorCode,
        message: str,
        details: list[FieldViolation] | None = None,
    ) -> "ApiResponse[Any]":
        """Create a failure response."""
        return cls(success=False, message=message, error=code, details=details or None)


# =============================================================================
# ERRORS
# =============================================================================


class DeckError(Exception):
    """
    Base class for every failure the API knows how to explain.

    Subclasses fix the error code and HTTP status; callers only supply
    the message and, where relevant, structured context.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: list[FieldViolation] | None = None):
        self.message = message
        self.details = details or []
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.failure(code=self.code, message=self.message, details=self.details)


class ValidationError(DeckError):
    """Input failed one or more validation rules."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, details: list[FieldViolation], message: str = "Validation failed"):
        super().__init__(message, details)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        """Shortcut for a failure on exactly one field."""
        return cls([FieldViolation(field=field, message=message)], message=message)


class NotFoundError(DeckError):
    """The referenced deck does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, deck_id: str):
        self.deck_id = deck_id
        super().__init__(f"Deck with id '{deck_id}' not found")


class ConflictError(DeckError):
    """A uniqueness constraint would be violated."""

    code = ErrorCode.CONFLICT
    status_code = 409

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Deck with {field} '{value}' already exists")


class InternalError(DeckError):
    """
    Unexpected failure.

    The message sent to the client is fixed; the cause is only logged.
    """

    code = ErrorCode.INTERNAL_ERROR
    status_code = 500

    def __init__(self, cause: Exception | None = None):
        self.cause = cause
        super().__init__("Internal server error")
