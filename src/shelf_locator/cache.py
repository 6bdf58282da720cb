"""
TTL cache over the shelf mapping feed.

The cache holds one immutable snapshot (records, index, fetch time) and
swaps it by reference after each successful refresh, so a lookup always
sees a complete index. Concurrent callers that find the snapshot expired
share a single in-flight fetch.

On a failed refresh the previous snapshot is kept; if there has never been
a successful fetch an empty snapshot is installed, meaning "no mapping
matches" rather than an error.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .feed import FeedError
from .index import MappingIndex
from .models import MappingRecord

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_RETRY_SECONDS = 30.0


class CacheState(str, Enum):
    """Freshness of the cached mappings."""

    EMPTY = "empty"  # no successful fetch yet
    FRESH = "fresh"
    STALE = "stale"  # TTL elapsed or invalidated; still served


class RecordSource(Protocol):
    """Anything that can load mapping records (see feed.FeedSource)."""

    def load(self) -> Awaitable[list[MappingRecord]]: ...


@dataclass(frozen=True)
class CacheSnapshot:
    """One complete generation of cached mappings."""

    records: tuple[MappingRecord, ...]
    index: MappingIndex
    fetched_at: float | None  # None for the empty fallback snapshot

    @classmethod
    def empty(cls) -> "CacheSnapshot":
        return cls(records=(), index=MappingIndex.empty(), fetched_at=None)

    @classmethod
    def from_records(cls, records: list[MappingRecord], fetched_at: float) -> "CacheSnapshot":
        records = tuple(records)
        return cls(records=records, index=MappingIndex.build(records), fetched_at=fetched_at)


class MappingCache:
    """
    Caches the mapping index for ``ttl_seconds``.

    State machine:
        EMPTY --fetch ok--> FRESH --ttl--> STALE --fetch ok--> FRESH
        STALE --fetch failed--> STALE (old data kept)
        EMPTY --fetch failed--> EMPTY
    """

    def __init__(
        self,
        source: RecordSource,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        retry_seconds: float = DEFAULT_RETRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            source: Record loader, normally a FeedSource
            ttl_seconds: How long a successful fetch stays fresh
            retry_seconds: Minimum wait before retrying after a failed fetch
            clock: Monotonic time function, injectable for tests
        """
        self.source = source
        self.ttl = ttl_seconds
        self.retry = retry_seconds
        self._clock = clock

        self._snapshot: CacheSnapshot | None = None
        self._next_refresh_at = 0.0
        self._invalidated = False
        self._inflight: asyncio.Task | None = None

    @property
    def snapshot(self) -> CacheSnapshot | None:
        """Current snapshot, or None before the first refresh attempt."""
        return self._snapshot

    @property
    def initialized(self) -> bool:
        """Whether at least one refresh attempt has completed."""
        return self._snapshot is not None

    @property
    def is_loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def state(self) -> CacheState:
        snapshot = self._snapshot
        if snapshot is None or snapshot.fetched_at is None:
            return CacheState.EMPTY
        if self._invalidated or self._clock() - snapshot.fetched_at >= self.ttl:
            return CacheState.STALE
        return CacheState.FRESH

    def current_index(self) -> MappingIndex:
        """Index of the current snapshot without refreshing."""
        if self._snapshot is None:
            return MappingIndex.empty()
        return self._snapshot.index

    def invalidate(self) -> None:
        """Force the next get() to fetch regardless of TTL."""
        logger.info("Shelf mapping cache invalidated")
        self._invalidated = True

    def _needs_refresh(self) -> bool:
        if self._snapshot is None or self._invalidated:
            return True
        return self._clock() >= self._next_refresh_at

    async def get(self) -> MappingIndex:
        """
        Return a usable index, refreshing it first if needed.

        Never raises for fetch or parse failures.
        """
        if not self._needs_refresh():
            return self._snapshot.index

        if self._inflight is None:
            self._inflight = asyncio.create_task(self._refresh())
        else:
            logger.debug("Joining in-flight feed fetch")

        # Shielded so a cancelled caller does not cancel the shared fetch
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> MappingIndex:
        try:
            records = await self.source.load()
            snapshot = CacheSnapshot.from_records(records, fetched_at=self._clock())
        except FeedError as e:
            return self._fallback(e)
        except Exception as e:
            logger.exception("Unexpected error refreshing shelf mappings")
            return self._fallback(e)
        finally:
            self._inflight = None

        self._snapshot = snapshot
        self._next_refresh_at = snapshot.fetched_at + self.ttl
        self._invalidated = False
        return snapshot.index

    def _fallback(self, error: Exception) -> MappingIndex:
        self._next_refresh_at = self._clock() + self.retry
        self._invalidated = False

        if self._snapshot is not None and self._snapshot.fetched_at is not None:
            logger.warning(
                f"Feed refresh failed, keeping {len(self._snapshot.records)} cached mappings: "
                f"{error}"
            )
        else:
            logger.warning(f"Feed refresh failed and no cached mappings exist: {error}")
            self._snapshot = CacheSnapshot.empty()
        return self._snapshot.index
