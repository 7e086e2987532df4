"""Request-keyed cache with single-flight recomputation and grace on failure."""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Last successfully computed value for a key."""
    value: Any
    fresh_until: float
    grace_until: Optional[float] = None

    @property
    def expires_at(self) -> float:
        return self.grace_until if self.grace_until is not None else self.fresh_until

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class _Flight:
    """An in-progress computation that other callers can wait on."""

    def __init__(self):
        self.done = threading.Event()
        self.value = None
        self.error = None


class RequestCache:
    """
    Cache for expensive upstream requests.

    Fresh values are served without recomputing. Expired or missing
    values are recomputed once per key no matter how many callers ask
    concurrently; the others wait for that computation. When a
    recomputation fails and an older value exists, the old value is
    served and kept valid for a grace period.
    """

    DEFAULT_TTL = 1200  # 20 minutes
    DEFAULT_GRACE = 300  # 5 minutes

    def __init__(
        self,
        store=None,
        ttl: int = DEFAULT_TTL,
        grace: int = DEFAULT_GRACE,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the cache.

        Args:
            store: Entry store with ``get``/``put``/``delete``
                (default: a new InMemoryCacheStore)
            ttl: Seconds a computed value stays fresh
            grace: Seconds a stale value is extended after a failed refresh
            clock: Source of the current time in epoch seconds
        """
        if store is None:
            from storage.memory_store import InMemoryCacheStore
            store = InMemoryCacheStore()
        self.store = store
        self.ttl = ttl
        self.grace = grace
        self.clock = clock
        self._lock = threading.Lock()
        self._flights: Dict[str, _Flight] = {}

    def get_or_compute(
        self,
        key: str,
        compute_fn: Callable[[], Any],
        force_refresh: bool = False
    ) -> Any:
        """
        Return the cached value for ``key``, computing it if needed.

        Args:
            key: Cache key
            compute_fn: Zero-argument callable producing the value
            force_refresh: Recompute even if the cached value is fresh

        Returns:
            The cached or newly computed value

        Raises:
            Exception: Whatever ``compute_fn`` raised, when no earlier
                value exists to fall back on
        """
        if not force_refresh:
            entry = self.store.get(key)
            if entry is not None and entry.is_fresh(self.clock()):
                logger.debug(f"Cache hit for {key}")
                return entry.value

        with self._lock:
            flight = self._flights.get(key)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._flights[key] = flight

        if not leader:
            logger.debug(f"Waiting for in-flight computation of {key}")
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.value

        try:
            flight.value = self._refresh(key, compute_fn, force_refresh)
        except Exception as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                del self._flights[key]
            flight.done.set()

        return flight.value

    def _refresh(self, key: str, compute_fn: Callable[[], Any], force_refresh: bool) -> Any:
        entry = self.store.get(key)

        # A previous flight may have finished between the freshness
        # check and becoming leader
        if not force_refresh and entry is not None and entry.is_fresh(self.clock()):
            return entry.value

        logger.info(f"Computing cache value for {key}")
        try:
            value = compute_fn()
        except Exception as e:
            if entry is None:
                logger.error(f"Computing {key} failed with no cached value: {e}")
                raise
            entry.grace_until = self.clock() + self.grace
            self.store.put(key, entry)
            logger.warning(
                f"Computing {key} failed, serving stale value for "
                f"{self.grace} more seconds: {e}"
            )
            return entry.value

        self.store.put(key, CacheEntry(value=value, fresh_until=self.clock() + self.ttl))
        return value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the raw entry for ``key`` without computing."""
        return self.store.get(key)

    def evict(self, key: str) -> None:
        """Remove ``key``; the next access recomputes."""
        self.store.delete(key)
        logger.info(f"Evicted cache entry {key}")
