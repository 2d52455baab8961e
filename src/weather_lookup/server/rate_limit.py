"""Fixed-window, per-client request counter for the weather routes."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

UNKNOWN_CLIENT = "unknown"
CLEANUP_THRESHOLD = 1000


def epoch_ms() -> float:
    return time.time() * 1000.0


@dataclass(slots=True)
class RateLimitCounter:
    count: int
    reset_at_ms: float


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of one gate check."""

    allowed: bool
    count: int
    retry_after_seconds: int = 0


def client_key(headers: Mapping[str, str], remote_addr: str | None) -> str:
    """Pick the bucket key for a request.

    The first ``X-Forwarded-For`` entry is trusted as-is, so a client talking
    to the server directly can choose its own bucket. Requests whose address
    cannot be resolved all share the ``unknown`` bucket.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return remote_addr or UNKNOWN_CLIENT


class RateLimiter:
    """Count requests per key in discrete windows of ``window_ms``."""

    def __init__(
        self,
        *,
        window_ms: int = 60_000,
        max_requests: int = 5,
        clock: Callable[[], float] = epoch_ms,
        cleanup_threshold: int = CLEANUP_THRESHOLD,
    ) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        if max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.cleanup_threshold = cleanup_threshold
        self._clock = clock
        self._counters: dict[str, RateLimitCounter] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)

    def check(self, key: str) -> RateLimitDecision:
        """Record one request for ``key`` and decide whether it may proceed."""
        with self._lock:
            now = self._clock()
            if len(self._counters) >= self.cleanup_threshold:
                self._prune(now)

            counter = self._counters.get(key)
            if counter is None or now >= counter.reset_at_ms:
                self._counters[key] = RateLimitCounter(count=1, reset_at_ms=now + self.window_ms)
                return RateLimitDecision(allowed=True, count=1)

            if counter.count >= self.max_requests:
                retry_after = max(1, math.ceil((counter.reset_at_ms - now) / 1000.0))
                return RateLimitDecision(
                    allowed=False,
                    count=counter.count,
                    retry_after_seconds=retry_after,
                )

            counter.count += 1
            return RateLimitDecision(allowed=True, count=counter.count)

    def _prune(self, now: float) -> None:
        expired = [key for key, counter in self._counters.items() if now >= counter.reset_at_ms]
        for key in expired:
            del self._counters[key]
