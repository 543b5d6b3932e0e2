"""Errors and the result envelope returned by the scheduling service.

Domain code raises ``SchedulingError`` subclasses; the service boundary
converts every failure into a ``ServiceResult`` so no exception reaches
the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Failure classes reported in a ServiceResult."""

    BAD_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    UNKNOWN = "unknown"


class SchedulingError(Exception):
    """Base class for errors raised by the scheduling domain."""

    kind = ErrorKind.UNKNOWN


class BadRequestError(SchedulingError):
    """Missing group, non-member actor, or missing record."""

    kind = ErrorKind.BAD_REQUEST


class ForbiddenError(SchedulingError):
    """Requester lacks access to the group."""

    kind = ErrorKind.FORBIDDEN


@dataclass
class ServiceResult(Generic[T]):
    """Uniform envelope for every public scheduling operation.

    Attributes:
        success: Whether the operation succeeded.
        data: Payload on success.
        error: Human-readable failure message.
        error_kind: Failure class, set whenever success is False.
        message: Optional informational message.
        warnings: Non-fatal issues encountered.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def ok(
        cls,
        data: Optional[T] = None,
        message: Optional[str] = None,
        warnings: Optional[list[str]] = None,
    ) -> "ServiceResult[T]":
        """Create a successful result."""
        return cls(success=True, data=data, message=message, warnings=list(warnings or []))

    @classmethod
    def fail(
        cls,
        error: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
    ) -> "ServiceResult[T]":
        """Create a failed result."""
        return cls(success=False, error=error, error_kind=kind)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServiceResult[T]":
        """Convert an exception into a failed result."""
        kind = exc.kind if isinstance(exc, SchedulingError) else ErrorKind.UNKNOWN
        return cls.fail(str(exc) or "Unknown error", kind)
