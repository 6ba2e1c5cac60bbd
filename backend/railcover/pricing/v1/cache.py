from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Awaitable, Callable, Optional

from railcover.journeys.types import Journey

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[float]]


def fingerprint(journey: Journey) -> str:
    """Stable cache key: identical journeys hash identically no matter where the request came from."""
    canonical = json.dumps(journey.as_mapping(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class _ProbabilityEntry:
    inserted_at: float
    probability: float


class ProbabilityCache:
    """
    LRU + TTL store of delay probabilities (percent) keyed by journey fingerprint.

    Expired entries are dropped lazily on lookup and swept on every insert.
    get_or_fetch() adds single-flight on top: while a fetch for a key is in
    progress, concurrent misses for that key await the same task instead of
    calling upstream again.

    Stats: a lookup with no live entry counts as a miss even when it then joins
    an in-flight fetch; those joins are also counted under "joins".
    """

    def __init__(
        self,
        *,
        ttl_s: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_s = max(0.0, float(ttl_s))
        self._max_entries = max(1, int(max_entries))
        self._clock = clock
        self._lock = Lock()
        self._items: OrderedDict[str, _ProbabilityEntry] = OrderedDict()
        self._inflight: dict[str, asyncio.Task] = {}

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0
        self._fetches = 0
        self._joins = 0

    def _is_expired(self, entry: _ProbabilityEntry, now: float) -> bool:
        return (now - entry.inserted_at) >= self._ttl_s

    def get(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry, self._clock()):
                self._items.pop(key, None)
                self._expirations += 1
                self._misses += 1
                return None

            self._items.move_to_end(key)
            self._hits += 1
            return entry.probability

    def put(self, key: str, probability: float) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired_locked(now)

            if key in self._items:
                self._items.move_to_end(key)
            self._items[key] = _ProbabilityEntry(inserted_at=now, probability=float(probability))

            while len(self._items) > self._max_entries:
                self._items.popitem(last=False)
                self._evictions += 1

    def _purge_expired_locked(self, now: float) -> None:
        expired = [k for k, e in self._items.items() if self._is_expired(e, now)]
        for k in expired:
            del self._items[k]
        self._expirations += len(expired)

    def purge_expired(self) -> int:
        with self._lock:
            before = self._expirations
            self._purge_expired_locked(self._clock())
            return self._expirations - before

    async def get_or_fetch(self, key: str, fetch: Fetch) -> tuple[float, bool]:
        """
        Returns (probability, from_cache). At most one fetch per key is in flight;
        a failed fetch is not cached and its exception reaches every waiter.
        """
        cached = self.get(key)
        if cached is not None:
            return cached, True

        task = self._inflight.get(key)
        if task is not None:
            with self._lock:
                self._joins += 1
            logger.debug("Joining in-flight probability fetch key=%s", key[:12])
            return await asyncio.shield(task), False

        task = asyncio.ensure_future(self._fetch_and_store(key, fetch))
        self._inflight[key] = task
        task.add_done_callback(lambda t: self._forget(key, t))
        return await asyncio.shield(task), False

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Probability fetch failed key=%s: %r", key[:12], task.exception())

    async def _fetch_and_store(self, key: str, fetch: Fetch) -> float:
        with self._lock:
            self._fetches += 1
        probability = await fetch()
        self.put(key, probability)
        return probability

    def clear(self) -> int:
        with self._lock:
            cleared = len(self._items)
            self._items.clear()
            return cleared

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def snapshot(self) -> dict[str, float]:
        with self._lock:
            return {
                "size": len(self._items),
                "in_flight": len(self._inflight),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "fetches": self._fetches,
                "joins": self._joins,
                "ttl_s": self._ttl_s,
                "max_entries": self._max_entries,
            }
