"""Cancellation context for requests.

A Context carries an optional deadline and a cancel flag. Attaching one to a
request bounds the transport timeout by the time remaining and stops the
request from being sent once the context is done. Rate-limiter waits do not
observe the context.
"""

from __future__ import annotations

import threading
import time

from fluent_fetch.errors import Cancelled, ContextDeadlineExceeded


class Context:
    """Cancellation token with an optional monotonic deadline.

    Usage:
        ctx = Context.with_timeout(5.0)
        data = fluent_fetch.get(url).context(ctx).read()

    Contexts are thread-safe and may be shared by many requests; cancel()
    affects all of them.
    """

    def __init__(self, deadline: float | None = None) -> None:
        """Initialize the context.

        Args:
            deadline: Absolute time.monotonic() value after which the context
                      is done. None means no deadline.
        """
        self._deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float) -> "Context":
        """Create a context whose deadline is *seconds* from now."""
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> Cancelled | ContextDeadlineExceeded | None:
        """Return the reason this context is done, or None if it is not."""
        if self.cancelled:
            return Cancelled("context cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return ContextDeadlineExceeded("context deadline exceeded")
        return None

    def raise_if_done(self) -> None:
        err = self.error()
        if err is not None:
            raise err
