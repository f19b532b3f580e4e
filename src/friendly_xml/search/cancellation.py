"""Cooperative cancellation for long-running searches."""

import threading

from friendly_xml.shared import OperationCancelledError


class CancellationToken:
    """Thread-safe flag checked by search loops at every boundary.

    Examples:
        >>> token = CancellationToken()
        >>> token.is_cancelled
        False
        >>> token.cancel()
        >>> token.is_cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation; idempotent."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError once cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError()
