# src/cineplan/services/result_cache.py

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
import weakref
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from cineplan.core.errors import ItineraryNotFoundError
from cineplan.core.models import CacheEntry, ScheduledItinerary

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 2 * 60 * 60

# (due on the monotonic clock, tie-breaker, itinerary ids, expires_at on the cache clock)
_Scheduled = Tuple[float, int, List[str], float]


def _reap(
    cache_ref: "weakref.ref[ItineraryCache]",
    lock: threading.Lock,
    heap: List[_Scheduled],
    wake: threading.Event,
) -> None:
    """
    Reaper thread body. Sleeps until the earliest batch is due, expires it,
    and exits once nothing is scheduled or the cache has been collected.
    Only `cache_ref` points back at the cache.
    """
    while True:
        with lock:
            if not heap:
                cache = cache_ref()
                if cache is not None:
                    cache._reaper = None
                return
            due, _, ids, expires_at = heap[0]
            delay = due - time.monotonic()
            if delay <= 0:
                heapq.heappop(heap)

        if delay > 0:
            wake.wait(delay)
            wake.clear()
            if cache_ref() is None:
                return
            continue

        cache = cache_ref()
        if cache is None:
            return
        cache._expire(ids, expires_at)
        del cache


class ItineraryCache:
    """
    In-memory store for generated itineraries, keyed by itinerary id.

    Contract:
      - put(itinerary) keeps it for `ttl_seconds`
      - get(id) -> the itinerary, or None once `now >= expires_at`
      - require(id) -> the itinerary, or ItineraryNotFoundError

    Expired batches are also dropped by one daemon reaper thread per cache,
    started on the first put and stopped when nothing is left to expire, so
    memory stays bounded without an external sweep and the thread count does
    not grow with traffic. The reaper only holds a weak reference to the
    cache. Not a source of truth: saved schedules live in the schedule store.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        background_expiry: bool = True,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = float(ttl_seconds)
        self.background_expiry = background_expiry
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._heap: List[_Scheduled] = []
        self._tokens = itertools.count()
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._reaper: Optional[threading.Thread] = None
        # Wakes a sleeping reaper when the cache is collected so it can exit.
        weakref.finalize(self, self._wake.set).atexit = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, itinerary_id: object) -> bool:
        return isinstance(itinerary_id, str) and self.entry(itinerary_id) is not None

    def put(self, itinerary: ScheduledItinerary) -> CacheEntry:
        return self.put_many([itinerary])[0]

    def put_many(self, itineraries: Iterable[ScheduledItinerary]) -> List[CacheEntry]:
        """
        Store a batch with a shared expiry, scheduled as one reaper entry.
        """
        now = self._clock()
        expires_at = now + self.ttl_seconds
        entries = [
            CacheEntry(itinerary=it, created_at=now, expires_at=expires_at)
            for it in itineraries
        ]
        if not entries:
            return []

        ids = [e.itinerary.id for e in entries]
        with self._lock:
            for e in entries:
                self._entries[e.itinerary.id] = e
            if self.background_expiry:
                self._schedule(ids, expires_at)

        logger.debug("Cached %d itineraries until %.0f", len(entries), expires_at)
        return entries

    def entry(self, itinerary_id: str) -> Optional[CacheEntry]:
        now = self._clock()
        with self._lock:
            e = self._entries.get(itinerary_id)
            if e is None:
                return None
            if e.is_expired(now):
                del self._entries[itinerary_id]
                return None
            return e

    def get(self, itinerary_id: str) -> Optional[ScheduledItinerary]:
        e = self.entry(itinerary_id)
        return e.itinerary if e else None

    def require(self, itinerary_id: str) -> ScheduledItinerary:
        itinerary = self.get(itinerary_id)
        if itinerary is None:
            raise ItineraryNotFoundError(itinerary_id)
        return itinerary

    def discard(self, itinerary_id: str) -> bool:
        with self._lock:
            return self._entries.pop(itinerary_id, None) is not None

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.is_expired(now)]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.info("Purged %d expired itineraries", len(stale))
        return len(stale)

    def close(self) -> None:
        """Drop every entry and let the reaper thread exit."""
        with self._lock:
            self._heap.clear()
            self._entries.clear()
        self._wake.set()

    def _schedule(self, ids: List[str], expires_at: float) -> None:
        # Caller holds the lock.
        due = time.monotonic() + self.ttl_seconds
        heapq.heappush(self._heap, (due, next(self._tokens), ids, expires_at))
        if self._reaper is None:
            self._reaper = threading.Thread(
                target=_reap,
                args=(weakref.ref(self), self._lock, self._heap, self._wake),
                name="itinerary-cache-reaper",
                daemon=True,
            )
            self._reaper.start()

    def _expire(self, ids: List[str], expires_at: float) -> None:
        with self._lock:
            removed = 0
            for k in ids:
                e = self._entries.get(k)
                # A later put() of the same id carries a later expiry; leave it.
                if e is not None and e.expires_at <= expires_at:
                    del self._entries[k]
                    removed += 1
        logger.debug("Reaper expired %d cached itineraries", removed)
