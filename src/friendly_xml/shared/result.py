"""Result objects and problem types shared by the friendly XML services.

Diagnostics report ``ParseProblem`` lists; entry and field edits report an
``OperationResult`` instead of raising, so callers can show the message inline.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ProblemSeverity(Enum):
    """Severity levels for parse problems."""

    ERROR = auto()      # Document is not well-formed
    WARNING = auto()    # Well-formed but suspicious content


@dataclass(frozen=True)
class ParseProblem:
    """Single parse problem localised by offset and 1-based line/column."""

    message: str
    offset: int
    line: int
    column: int
    severity: ProblemSeverity

    def __post_init__(self) -> None:
        """Validate problem location."""
        if self.offset < 0:
            raise ValueError("Problem offset must be >= 0")
        if self.line < 1 or self.column < 1:
            raise ValueError("Problem line and column must be >= 1")

    @property
    def is_error(self) -> bool:
        """Check if this problem makes the document unusable."""
        return self.severity is ProblemSeverity.ERROR

    def to_dict(self) -> dict:
        """Convert problem to dictionary representation."""
        return {
            "message": self.message,
            "offset": self.offset,
            "line": self.line,
            "column": self.column,
            "severity": self.severity.name,
        }


class OperationErrorKind(Enum):
    """Reasons an entry or field operation can be refused."""

    INVALID_ARGUMENT = auto()
    MISSING_PARENT = auto()
    FIELD_NOT_FOUND = auto()
    FIELD_NOT_UPDATABLE = auto()


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a mutation on the live tree.

    ``value`` is only meaningful when ``success`` is True; otherwise ``error``
    holds a human-readable message and ``error_kind`` the reason.
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[OperationErrorKind] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "OperationResult[T]":
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, kind: OperationErrorKind, message: str) -> "OperationResult[T]":
        """Create a failed result."""
        if not message:
            raise ValueError("Failure message cannot be empty")
        return cls(success=False, error=message, error_kind=kind)

    def __bool__(self) -> bool:
        return self.success
