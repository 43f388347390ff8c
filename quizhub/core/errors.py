"""Domain error taxonomy.

Every expected failure of the contest core is a ``ContestError``. They are
``HTTPException`` subclasses, so services raise them directly and FastAPI
renders ``{"detail": {"code": ..., "message": ...}}`` with the matching
status. None of them is fatal: each one only aborts the current operation.
"""

from typing import Any

from fastapi import HTTPException, status


class ContestError(HTTPException):
    default_code: str = "CONTEST_ERROR"
    default_message: str = "Request failed"
    http_status: int = status.HTTP_400_BAD_REQUEST
    default_headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None, *, extra: dict[str, Any] | None = None):
        self.code = self.default_code
        self.message = message or self.default_message
        self.extra = extra or {}
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.extra:
            detail.update(self.extra)
        super().__init__(status_code=self.http_status, detail=detail, headers=self.default_headers)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class Unauthenticated(ContestError):
    default_code = "UNAUTHENTICATED"
    default_message = "Missing or invalid credential"
    http_status = status.HTTP_401_UNAUTHORIZED
    default_headers = {"WWW-Authenticate": "Bearer"}


class Unauthorized(ContestError):
    default_code = "UNAUTHORIZED"
    default_message = "Role does not permit this action"
    http_status = status.HTTP_403_FORBIDDEN


class NotFound(ContestError):
    default_code = "NOT_FOUND"
    default_message = "Resource not found"
    http_status = status.HTTP_404_NOT_FOUND


class InvalidSchedule(ContestError):
    default_code = "INVALID_SCHEDULE"
    default_message = "Start date must be before end date"
    http_status = status.HTTP_400_BAD_REQUEST


class ImmutableField(ContestError):
    default_code = "IMMUTABLE_FIELD"
    default_message = "Field is locked once the contest has started"
    http_status = status.HTTP_409_CONFLICT


class ContestNotActive(ContestError):
    default_code = "CONTEST_NOT_ACTIVE"
    default_message = "Contest is not active"
    http_status = status.HTTP_409_CONFLICT


class DuplicateAttempt(ContestError):
    default_code = "DUPLICATE_ATTEMPT"
    default_message = "You have already submitted this contest"
    http_status = status.HTTP_409_CONFLICT


class RateLimited(ContestError):
    default_code = "RATE_LIMITED"
    default_message = "Rate limit exceeded"
    http_status = status.HTTP_429_TOO_MANY_REQUESTS


class InvalidContest(ContestError):
    default_code = "INVALID_CONTEST"
    default_message = "Contest definition is invalid"
    http_status = status.HTTP_400_BAD_REQUEST
