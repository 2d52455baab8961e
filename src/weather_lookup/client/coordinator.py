"""In-flight deduplication and per-key throttling of backend calls."""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal

from .cache import epoch_ms

DEFAULT_THROTTLE_MS = 1200

SkipReason = Literal["in_flight", "throttled"]


class RequestCoordinator:
    """Decide whether a call for a key may start, and track it while it runs.

    ``try_begin`` is synchronous so the check and the in-flight mark happen
    without a suspension point between them.
    """

    def __init__(
        self,
        *,
        throttle_ms: int = DEFAULT_THROTTLE_MS,
        clock: Callable[[], float] = epoch_ms,
    ) -> None:
        self.throttle_ms = throttle_ms
        self._clock = clock
        self._in_flight: set[str] = set()
        self._last_started: dict[str, float] = {}

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def should_throttle(self, key: str, *, force: bool = False) -> bool:
        """Return True when a call for ``key`` started too recently.

        A non-throttled, non-forced check records ``now`` as the key's last
        start, so the next call within the interval is suppressed.
        """
        if force:
            return False
        now = self._clock()
        last = self._last_started.get(key)
        if last is not None and now - last < self.throttle_ms:
            return True
        self._last_started[key] = now
        return False

    def try_begin(self, key: str, *, force: bool = False) -> SkipReason | None:
        """Mark ``key`` in flight and return None, or return why it must skip."""
        if self.is_in_flight(key):
            return "in_flight"
        if self.should_throttle(key, force=force):
            return "throttled"
        self._in_flight.add(key)
        return None

    def finish(self, key: str) -> None:
        self._in_flight.discard(key)
