"""Rate limiting for request admission.

Any object with a blocking ``wait()`` method can be attached to a request
with Request.limit(). The executor calls it once before every dispatch and
never passes a deadline, so admission is not cancellable.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable

from fluent_fetch.errors import LimiterError
from fluent_fetch.models import RateLimitConfig


@runtime_checkable
class Limiter(Protocol):
    """Blocking admission primitive shared between requests."""

    def wait(self) -> None:
        """Block until one request may proceed.

        Raises:
            Exception: Any error signals a hard rejection; the request is
                       not sent.
        """
        ...


class RateLimiter:
    """Thread-safe token bucket.

    Tokens refill at ``rate`` per second up to ``burst``. A full bucket lets
    ``burst`` requests through at once, after which requests are spaced
    ``1 / rate`` seconds apart.

    Usage:
        limiter = RateLimiter(rate=10.0, burst=5)
        for url in urls:
            fluent_fetch.get(url).limit(limiter).err()
    """

    def __init__(self, rate: float, burst: int = 1) -> None:
        """Initialize the limiter.

        Args:
            rate: Tokens added per second. Must be positive.
            burst: Bucket capacity. Zero means every wait() is rejected.
        """
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        if burst < 0:
            raise ValueError(f"burst must not be negative, got {burst}")
        self.rate = rate
        self.burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: RateLimitConfig) -> "RateLimiter":
        return cls(rate=config.requests_per_second, burst=config.burst)

    def wait(self, n: int = 1) -> None:
        """Take *n* tokens, sleeping until they are available.

        Raises:
            LimiterError: If *n* exceeds the bucket capacity and could
                          never be satisfied.
        """
        if n > self.burst:
            raise LimiterError(f"wait({n}) exceeds limiter burst {self.burst}")

        while True:
            with self._lock:
                now = time.monotonic()
                elapsed = now - self._last_refill
                self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
                self._last_refill = now

                if self._tokens >= n:
                    self._tokens -= n
                    return

                wait_time = (n - self._tokens) / self.rate

            # Sleep outside the lock so other threads can refill and take tokens
            time.sleep(wait_time)
