"""
Shelf resolver: the public entry point.

Callers pass what the catalog displays (library name, collection name and
call number, in whichever language is active) and get back every shelf
segment holding the item. Nothing here raises for bad data or network
trouble; the worst outcome is "no mapping", which callers treat as
"shelf map not available for this item".
"""

import asyncio
import logging

from .cache import CacheState, MappingCache
from .config import ResolverConfig
from .feed import FeedSource
from .index import MappingIndex
from .models import LocationQuery, MappingRecord, ShelfLocation

logger = logging.getLogger(__name__)


class ShelfResolver:
    """
    Resolves call numbers to shelf locations.

    One instance is meant to be shared per process or session so that all
    callers share the cache and its in-flight fetch.
    """

    def __init__(self, cache: MappingCache, config: ResolverConfig | None = None):
        self.cache = cache
        self.config = config or ResolverConfig()

    @classmethod
    def from_config(cls, config: ResolverConfig) -> "ShelfResolver":
        """Build a resolver fetching the feed described by config."""
        source = FeedSource(
            url=config.feed.get_url(),
            timeout_seconds=config.feed.timeout_seconds,
        )
        cache = MappingCache(
            source,
            ttl_seconds=config.cache.ttl_seconds,
            retry_seconds=config.cache.retry_seconds,
        )
        return cls(cache, config)

    @property
    def state(self) -> CacheState:
        return self.cache.state

    @property
    def is_initialized(self) -> bool:
        return self.cache.initialized

    @property
    def is_loading(self) -> bool:
        return self.cache.is_loading

    async def _index(self, timeout: float | None) -> MappingIndex:
        """Get a fresh index, or the current one if the wait times out."""
        if timeout is None:
            timeout = self.config.resolve_timeout_seconds
        if timeout is None:
            return await self.cache.get()

        try:
            # The fetch is shared with other callers, only this wait is bounded
            return await asyncio.wait_for(asyncio.shield(self.cache.get()), timeout)
        except TimeoutError:
            logger.warning(f"Mapping refresh exceeded {timeout}s, using cached mappings")
            return self.cache.current_index()

    async def resolve_query(
        self,
        query: LocationQuery,
        timeout: float | None = None,
    ) -> list[MappingRecord]:
        """Find every shelf segment holding the queried item."""
        try:
            index = await self._index(timeout)
            return index.all_mappings(
                query.library_name,
                query.collection_name,
                query.raw_call_number,
            )
        except Exception:
            logger.exception(f"Shelf resolution failed for {query}")
            return []

    async def resolve(
        self,
        library_name: str,
        collection_name: str,
        raw_call_number: str,
        timeout: float | None = None,
    ) -> list[MappingRecord]:
        """
        Find every shelf segment holding an item.

        Args:
            library_name: Library display name, either language
            collection_name: Collection display name, either language
            raw_call_number: Call number as displayed, cutter included
            timeout: Longest wait for a feed refresh, in seconds

        Returns:
            All matching records; empty when nothing matches
        """
        query = LocationQuery(library_name, collection_name, raw_call_number)
        return await self.resolve_query(query, timeout=timeout)

    async def has_mapping(
        self,
        library_name: str,
        collection_name: str,
        raw_call_number: str,
        timeout: float | None = None,
    ) -> bool:
        """Whether the item can be shown on a floor plan."""
        if not self.config.location_filter.allows(collection_name):
            logger.debug(f"Collection filtered out: {collection_name!r}")
            return False
        records = await self.resolve(library_name, collection_name, raw_call_number, timeout)
        return len(records) > 0

    async def locate(
        self,
        library_name: str,
        collection_name: str,
        raw_call_number: str,
        timeout: float | None = None,
    ) -> ShelfLocation | None:
        """Resolve and aggregate the matches for display, or None."""
        query = LocationQuery(library_name, collection_name, raw_call_number)
        records = await self.resolve_query(query, timeout=timeout)
        if not records:
            return None

        library = self.config.find_library(library_name)
        return ShelfLocation.from_records(
            query,
            records,
            floor_plan=library.floor_plan if library else None,
        )

    def force_refresh(self) -> None:
        """Make the next resolve fetch the feed regardless of TTL."""
        self.cache.invalidate()

    def all_records(self) -> list[MappingRecord]:
        """Records of the current snapshot, without refreshing."""
        return list(self.cache.current_index().records)
