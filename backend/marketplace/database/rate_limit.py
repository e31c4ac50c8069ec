"""Rate-limit counter stores.

``RateLimitMiddleware`` asks a store how many hits a client made inside the
current window. The in-memory store only sees one process; the MongoDB store
is shared by every instance pointed at the same database.
"""

import logging
import time
from collections import defaultdict
from datetime import UTC, datetime, timedelta
from typing import Optional, Protocol

from pymongo import ASCENDING

from marketplace.config import get_settings
from marketplace.database.mongodb import MongoDB, mongodb

logger = logging.getLogger(__name__)
settings = get_settings()

_STALE_CLIENT_THRESHOLD = 300  # seconds before a silent client's entry is evicted


class RateLimitStore(Protocol):
    async def hit(self, key: str, window_seconds: int, limit: Optional[int] = None) -> int:
        """Return the hits for ``key`` in the window, counting this request.

        The request is only recorded while the count stays within ``limit``,
        so rejected retries do not extend a block.
        """
        ...


class InMemoryRateLimitStore:
    """Sliding-window counters held in process memory."""

    def __init__(self) -> None:
        self._request_counts: dict[str, list[float]] = defaultdict(list)
        self._last_cleanup = time.monotonic()

    def _cleanup_stale_clients(self, now: float) -> None:
        """Remove entries for clients that have not sent requests recently."""
        if now - self._last_cleanup < _STALE_CLIENT_THRESHOLD:
            return
        cutoff = now - _STALE_CLIENT_THRESHOLD
        stale = [cid for cid, ts in self._request_counts.items() if not ts or ts[-1] < cutoff]
        for cid in stale:
            del self._request_counts[cid]
        self._last_cleanup = now

    async def hit(self, key: str, window_seconds: int, limit: Optional[int] = None) -> int:
        now = time.monotonic()
        window_start = now - window_seconds
        timestamps = [t for t in self._request_counts[key] if t > window_start]
        if limit is None or len(timestamps) < limit:
            timestamps.append(now)
            count = len(timestamps)
        else:
            count = len(timestamps) + 1
        self._request_counts[key] = timestamps
        self._cleanup_stale_clients(now)
        return count


class MongoRateLimitStore:
    """Sliding-window counters shared through MongoDB.

    Each accepted request inserts one hit document; a TTL index on
    ``expiresAt`` lets MongoDB drop hits once they fall out of the window.
    """

    def __init__(self, database: Optional[MongoDB] = None) -> None:
        self._database = database or mongodb
        self._indexes_ready = False

    def _collection(self):
        return self._database.collection(settings.mongodb_rate_limit_collection)

    async def _ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        collection = self._collection()
        await collection.create_index("expiresAt", expireAfterSeconds=0, name="expiresAt_ttl")
        await collection.create_index(
            [("key", ASCENDING), ("createdAt", ASCENDING)], name="key_created_index"
        )
        self._indexes_ready = True

    async def hit(self, key: str, window_seconds: int, limit: Optional[int] = None) -> int:
        await self._ensure_indexes()
        now = datetime.now(UTC)
        window = timedelta(seconds=window_seconds)
        collection = self._collection()
        recent = await collection.count_documents({"key": key, "createdAt": {"$gt": now - window}})
        if limit is not None and recent >= limit:
            return recent + 1
        await collection.insert_one({"key": key, "createdAt": now, "expiresAt": now + window})
        return recent + 1


def build_rate_limit_store(backend: Optional[str] = None) -> RateLimitStore:
    """Pick the store configured by ``rate_limit_backend``."""
    backend = backend or settings.rate_limit_backend
    if backend == "mongodb":
        logger.info("Using MongoDB rate-limit store")
        return MongoRateLimitStore()
    return InMemoryRateLimitStore()
