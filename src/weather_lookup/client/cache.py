"""Time-to-live cache of backend responses, keyed by location."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

DEFAULT_TTL_MS = 5 * 60 * 1000


def epoch_ms() -> float:
    return time.time() * 1000.0


def parse_cached_at(entry: Any) -> float:
    """Read an entry's cache time in epoch ms; 0 when it cannot be determined.

    ``cachedAt`` may be a number or an ISO string; older entries without it
    fall back to ``fetchedAt``.
    """
    if not isinstance(entry, Mapping):
        return 0.0
    cached_at = entry.get("cachedAt")
    if isinstance(cached_at, (int, float)) and not isinstance(cached_at, bool):
        return float(cached_at)
    for candidate in (cached_at, entry.get("fetchedAt")):
        if isinstance(candidate, str):
            parsed = _parse_iso_ms(candidate)
            if parsed:
                return parsed
    return 0.0


def _parse_iso_ms(value: str) -> float:
    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        return 0.0
    return parsed.timestamp() * 1000.0


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    value: T
    cached_at_ms: float

    def age_ms(self, now_ms: float) -> float:
        return now_ms - self.cached_at_ms


class ResponseCache(Generic[T]):
    """Per-location cache; stale entries are evicted lazily when looked up."""

    def __init__(
        self,
        model: type[T],
        *,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], float] = epoch_ms,
    ) -> None:
        self.model = model
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def is_fresh(self, entry: CacheEntry[T] | None) -> bool:
        if entry is None or entry.cached_at_ms <= 0:
            return False
        return entry.age_ms(self._clock()) < self.ttl_ms

    def lookup(self, key: str) -> tuple[CacheEntry[T] | None, bool]:
        """Return ``(entry, fresh)``, evicting the entry when it is stale.

        A stale entry is still handed back so callers may show it as a
        placeholder, but it is never reported fresh and is gone afterwards.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None, False
        if self.is_fresh(entry):
            return entry, True
        del self._entries[key]
        return entry, False

    def get_fresh(self, key: str) -> T | None:
        entry, fresh = self.lookup(key)
        return entry.value if entry is not None and fresh else None

    def put(self, key: str, value: T) -> CacheEntry[T]:
        entry = CacheEntry(value=value, cached_at_ms=self._clock())
        self._entries[key] = entry
        return entry

    def prune(self) -> int:
        """Drop every stale entry; return how many were removed."""
        stale = [key for key, entry in self._entries.items() if not self.is_fresh(entry)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def dump(self) -> dict[str, dict[str, Any]]:
        """Serialize to the stored shape: wire payload plus ``cachedAt``."""
        dumped: dict[str, dict[str, Any]] = {}
        for key, entry in self._entries.items():
            payload = entry.value.model_dump(mode="json", by_alias=True)
            payload["cachedAt"] = entry.cached_at_ms
            dumped[key] = payload
        return dumped

    def load(self, raw: Any) -> None:
        """Replace contents from the stored shape, skipping unusable entries."""
        self._entries = {}
        if not isinstance(raw, Mapping):
            return
        for key, payload in raw.items():
            cached_at = parse_cached_at(payload)
            if not cached_at:
                continue
            try:
                value = self.model.model_validate(
                    {k: v for k, v in payload.items() if k != "cachedAt"}
                )
            except ValidationError:
                continue
            entry = CacheEntry(value=value, cached_at_ms=cached_at)
            if self.is_fresh(entry):
                self._entries[str(key)] = entry
