"""Exception hierarchy for friendly XML services."""


class FriendlyXmlError(Exception):
    """Base exception for friendly XML services."""


class OperationCancelledError(FriendlyXmlError):
    """Raised when a cancellation token fires during a long-running operation."""

    def __init__(self, message: str = "Operation was cancelled.") -> None:
        super().__init__(message)
