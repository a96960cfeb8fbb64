from __future__ import annotations

import logging
import time
from threading import RLock
from typing import Optional

from promguard.metadata.base import MetadataProvider, MetadataSnapshot
from promguard.timeutil import TimeRange

log = logging.getLogger(__name__)


class CachingMetadataProvider:
    """
    In-process TTL cache in front of another provider.

    - One snapshot is kept; it is reused until ``ttl_s`` has elapsed.
    - Failures are never cached: the next call goes to the backend again.
    - ``invalidate()`` drops the snapshot immediately.
    """

    def __init__(
        self,
        inner: MetadataProvider,
        ttl_s: float,
        *,
        clock=time.monotonic,
    ) -> None:
        if ttl_s <= 0:
            raise ValueError("ttl_s must be positive")
        self._inner = inner
        self._ttl = float(ttl_s)
        self._clock = clock
        self._lock = RLock()
        self._cached: Optional[tuple[MetadataSnapshot, float]] = None
        self.name = f"cached:{getattr(inner, 'name', 'provider')}"

    def _fresh(self, now: float) -> Optional[MetadataSnapshot]:
        with self._lock:
            if self._cached is None:
                return None
            snapshot, stored_at = self._cached
            if now - stored_at >= self._ttl:
                self._cached = None
                return None
            return snapshot

    async def fetch_stats(self, time_range: Optional[TimeRange] = None) -> MetadataSnapshot:
        hit = self._fresh(self._clock())
        if hit is not None:
            log.debug("metadata cache hit", extra={"provider": self.name})
            return hit

        snapshot = await self._inner.fetch_stats(time_range)
        with self._lock:
            self._cached = (snapshot, self._clock())
        return snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None
