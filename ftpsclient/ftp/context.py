"""Deadline and cancellation for blocking FTP operations."""

import threading
import time
from typing import Optional

from ftpsclient.ftp.exceptions import FTPCancelledError, FTPTimeoutError


# Upper bound for a single blocking socket wait, so cancellation is noticed
POLL_INTERVAL = 0.25


class OperationContext:
    """
    Deadline and cancellation signal for one or more operations.

    Usage:
        cancel = threading.Event()
        context = OperationContext(timeout=60, cancel_event=cancel)
        session.download("big.iso", sink, context=context)

        # From another thread:
        cancel.set()
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None
    ):
        """
        Initialize the context.

        Args:
            timeout: Seconds from now until the deadline (None for no deadline)
            cancel_event: Event that cancels the operation when set
        """
        self._timeout = timeout
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._cancel_event = cancel_event or threading.Event()

    @property
    def timeout(self) -> Optional[float]:
        return self._timeout

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel_event

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self) -> None:
        """Request cancellation of every operation using this context."""
        self._cancel_event.set()

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self, operation: str = "Operation") -> None:
        """
        Raise if the context is cancelled or past its deadline.

        Raises:
            FTPCancelledError: If cancellation was requested
            FTPTimeoutError: If the deadline elapsed
        """
        if self._cancel_event.is_set():
            raise FTPCancelledError(operation)
        if self.expired:
            raise FTPTimeoutError(operation, self._timeout)

    def socket_timeout(self, default: float) -> float:
        """
        Timeout to apply to a single blocking socket call.

        Args:
            default: Connection timeout used without a tighter deadline

        Returns:
            Seconds to wait, never more than the remaining deadline
        """
        remaining = self.remaining()
        if remaining is None:
            return default
        return max(0.001, min(default, remaining))

    def poll_timeout(self) -> float:
        """Short wait used by loops that must notice cancellation."""
        remaining = self.remaining()
        if remaining is None:
            return POLL_INTERVAL
        return max(0.001, min(POLL_INTERVAL, remaining))


def ensure_context(context: Optional[OperationContext]) -> OperationContext:
    """Return the given context or a fresh one without deadline."""
    return context if context is not None else OperationContext()
