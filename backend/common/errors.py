"""
Dispatch Errors

Error taxonomy for the SOS notification dispatch. Every failure surfaced to a
caller is one of three kinds; the codes match the ones used by Firebase
callable functions so mobile clients can handle them the same way.
"""

from enum import Enum
from typing import Optional

from fastapi import HTTPException


class ErrorKind(str, Enum):
    """Failure kinds returned to callers."""
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    INTERNAL = "internal"

    @property
    def callable_status(self) -> str:
        """Status string used in the callable protocol error envelope."""
        return self.value.replace("-", "_").upper()


class DispatchError(HTTPException):
    """Base class for failures returned by the dispatch service."""

    kind: ErrorKind
    status: int

    def __init__(self, message: str, **extra):
        detail = {"error": self.kind.value, "message": message}
        detail.update(extra)
        super().__init__(status_code=self.status, detail=detail)
        self.message = message


class UnauthenticatedError(DispatchError):
    """Raised when the caller is not an authenticated principal."""

    kind = ErrorKind.UNAUTHENTICATED
    status = 401

    def __init__(self):
        super().__init__("Only authenticated users can send notifications")


class InvalidArgumentError(DispatchError):
    """Raised when the request is missing a field or has a malformed one."""

    kind = ErrorKind.INVALID_ARGUMENT
    status = 400

    def __init__(self, field: str):
        super().__init__(
            f"Missing or invalid required field: {field}",
            field=field,
        )
        self.field = field


class InternalError(DispatchError):
    """Raised when the push provider call fails. Never carries provider detail."""

    kind = ErrorKind.INTERNAL
    status = 500

    def __init__(self):
        super().__init__("Failed to send notifications")


class PushProviderError(Exception):
    """Raised by provider adapters when a whole batch is rejected or malformed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
