"""Tests for the ShelfResolver facade."""

import asyncio

import pytest

from shelf_locator.cache import CacheState, MappingCache
from shelf_locator.config import (
    CollectionConfig,
    LibraryConfig,
    LocationFilterConfig,
    ResolverConfig,
)
from shelf_locator.models import LocationQuery
from shelf_locator.resolver import ShelfResolver

from feed_data import READING_ROOM, READING_ROOM_ALT, SOURASKY, SOURASKY_ALT


@pytest.fixture
def resolver(source, clock):
    cache = MappingCache(source, ttl_seconds=300, retry_seconds=30, clock=clock)
    return ShelfResolver(cache)


def codes(records):
    return [r.shelf_code for r in records]


class TestResolve:
    """Test resolve() and has_mapping()."""

    @pytest.mark.asyncio
    async def test_cutter_stripped_and_matched(self, resolver):
        """'150.5 XYZ' lands on the [100, 199] shelf."""
        records = await resolver.resolve("Sourasky", "General", "150.5 XYZ")
        assert "SHELF-04" in codes(records)

    @pytest.mark.asyncio
    async def test_overlapping_ranges(self, resolver):
        """892.4 sits on both overlapping shelves."""
        records = await resolver.resolve("Sourasky", "Literature", "892.4")
        assert codes(records) == ["SHELF-LIT-A", "SHELF-LIT-B"]

    @pytest.mark.asyncio
    async def test_unknown_collection(self, resolver):
        """Unknown collection: no records, no mapping, no exception."""
        assert await resolver.resolve("Sourasky", "Nonexistent", "150") == []
        assert await resolver.has_mapping("Sourasky", "Nonexistent", "150") is False

    @pytest.mark.asyncio
    async def test_has_mapping_true(self, resolver):
        """has_mapping() is True when any record matches."""
        assert await resolver.has_mapping("Sourasky", "General", "150") is True

    @pytest.mark.asyncio
    async def test_unparsable_call_number(self, resolver):
        """Garbage call numbers simply do not match."""
        assert await resolver.resolve("Sourasky", "General", "see librarian") == []

    @pytest.mark.asyncio
    async def test_language_symmetry(self, resolver):
        """Either display language gives identical results."""
        primary = await resolver.resolve(SOURASKY, READING_ROOM, "892.413 מאו")
        alternate = await resolver.resolve(SOURASKY_ALT, READING_ROOM_ALT, "892.413 מאו")
        assert codes(primary) == ["SHELF-09"]
        assert primary == alternate

    @pytest.mark.asyncio
    async def test_name_drift_tolerated(self, resolver):
        """Case and whitespace differences still match."""
        records = await resolver.resolve("  sourasky   CENTRAL library ", READING_ROOM.upper(), "250")
        assert codes(records) == ["SHELF-05"]

    @pytest.mark.asyncio
    async def test_resolve_query(self, resolver):
        """resolve_query() takes a LocationQuery."""
        query = LocationQuery(SOURASKY, "CK Science", "QA76.73 .P98")
        assert codes(await resolver.resolve_query(query)) == ["SHELF-20"]


class TestResolveFallback:
    """Test resolution when the feed fails."""

    @pytest.mark.asyncio
    async def test_failure_after_success_keeps_results(self, resolver, source, clock):
        """After a failed refresh, results equal those before it."""
        before = await resolver.resolve("Sourasky", "Literature", "892.4")

        source.fail_with()
        clock.advance(300)
        after = await resolver.resolve("Sourasky", "Literature", "892.4")

        assert source.calls == 2
        assert after == before
        assert resolver.state == CacheState.STALE

    @pytest.mark.asyncio
    async def test_failure_without_data(self, resolver, source):
        """No data yet and a failing feed: feature unavailable, no error."""
        source.fail_with()
        assert await resolver.resolve("Sourasky", "General", "150") == []
        assert await resolver.has_mapping("Sourasky", "General", "150") is False
        assert resolver.is_initialized is True

    @pytest.mark.asyncio
    async def test_unexpected_error_reported_as_no_mapping(self, resolver, monkeypatch):
        """Errors inside lookup never escape the public API."""

        async def broken_get():
            raise RuntimeError("boom")

        monkeypatch.setattr(resolver.cache, "get", broken_get)
        assert await resolver.resolve("Sourasky", "General", "150") == []

    @pytest.mark.asyncio
    async def test_force_refresh(self, resolver, source):
        """force_refresh() makes the next resolve fetch."""
        await resolver.resolve("Sourasky", "General", "150")
        resolver.force_refresh()
        await resolver.resolve("Sourasky", "General", "150")
        assert source.calls == 2

    @pytest.mark.asyncio
    async def test_force_refresh_failure_keeps_data(self, resolver, source):
        """A failed forced refresh still serves the previous data."""
        before = await resolver.resolve("Sourasky", "General", "150")
        source.fail_with()
        resolver.force_refresh()
        assert await resolver.resolve("Sourasky", "General", "150") == before


class TestResolveTimeout:
    """Test bounded waits on a slow feed."""

    @pytest.mark.asyncio
    async def test_timeout_without_data_returns_empty(self, resolver, source):
        """A hanging first fetch gives no mapping once the wait expires."""
        source.gate = asyncio.Event()

        records = await resolver.resolve("Sourasky", "General", "150", timeout=0.01)

        assert records == []
        assert resolver.is_loading is True

        source.gate.set()
        assert codes(await resolver.resolve("Sourasky", "General", "150"))

    @pytest.mark.asyncio
    async def test_timeout_serves_previous_snapshot(self, resolver, source, clock):
        """A hanging refresh serves the previous data after the wait."""
        before = await resolver.resolve("Sourasky", "General", "150")

        source.gate = asyncio.Event()
        clock.advance(300)
        after = await resolver.resolve("Sourasky", "General", "150", timeout=0.01)

        assert after == before
        source.gate.set()
        await resolver.resolve("Sourasky", "General", "150")

    @pytest.mark.asyncio
    async def test_config_timeout_used(self, source, clock):
        """resolve_timeout_seconds applies when no timeout is passed."""
        source.gate = asyncio.Event()
        cache = MappingCache(source, clock=clock)
        resolver = ShelfResolver(cache, ResolverConfig(resolve_timeout_seconds=0.01))

        assert await resolver.resolve("Sourasky", "General", "150") == []
        source.gate.set()
        await cache.get()


class TestLocate:
    """Test the aggregated location view."""

    @pytest.fixture
    def configured_resolver(self, source, clock):
        config = ResolverConfig(
            libraries=[
                LibraryConfig(
                    name=SOURASKY,
                    name_alt=SOURASKY_ALT,
                    floor_plan="assets/maps/sourasky-floor-2.svg",
                    collections=[CollectionConfig(READING_ROOM, READING_ROOM_ALT)],
                )
            ]
        )
        cache = MappingCache(source, clock=clock)
        return ShelfResolver(cache, config)

    @pytest.mark.asyncio
    async def test_locate_aggregates(self, resolver):
        """Overlapping shelves are gathered into one location."""
        location = await resolver.locate("Sourasky", "Literature", "892.4")
        assert location.shelf_codes == ["SHELF-LIT-A", "SHELF-LIT-B"]
        assert location.shelf_labels == ["Case 1", "Case 2"]
        assert location.floor == "2"
        assert location.description == "General literature"
        assert location.floor_plan is None

    @pytest.mark.asyncio
    async def test_locate_floor_plan_from_config(self, configured_resolver):
        """Floor plan comes from the library directory, either language."""
        location = await configured_resolver.locate(SOURASKY_ALT, READING_ROOM_ALT, "250")
        assert location.floor_plan == "assets/maps/sourasky-floor-2.svg"
        assert location.description_alt == "דת"
        assert location.query.call_number == "250"

    @pytest.mark.asyncio
    async def test_locate_none(self, resolver):
        """No match gives None."""
        assert await resolver.locate("Sourasky", "General", "5000") is None


class TestLocationFilter:
    """Test the optional collection filter."""

    @pytest.mark.asyncio
    async def test_filter_blocks_has_mapping(self, source, clock):
        """Filtered collections report no mapping."""
        config = ResolverConfig(
            location_filter=LocationFilterConfig(enabled=True, allowed_collections=["Literature"])
        )
        resolver = ShelfResolver(MappingCache(source, clock=clock), config)

        assert await resolver.has_mapping("Sourasky", "General", "150") is False
        assert await resolver.has_mapping("Sourasky", "literature", "892.4") is True

    @pytest.mark.asyncio
    async def test_filter_does_not_touch_resolve(self, source, clock):
        """resolve() ignores the filter."""
        config = ResolverConfig(
            location_filter=LocationFilterConfig(enabled=True, allowed_collections=["Literature"])
        )
        resolver = ShelfResolver(MappingCache(source, clock=clock), config)

        assert codes(await resolver.resolve("Sourasky", "General", "150"))


class TestIntrospection:
    """Test snapshot introspection."""

    @pytest.mark.asyncio
    async def test_all_records(self, resolver):
        """all_records() lists the current snapshot."""
        assert resolver.all_records() == []
        await resolver.resolve("Sourasky", "General", "150")
        assert len(resolver.all_records()) == 7

    def test_from_config(self):
        """from_config() wires feed and cache settings."""
        config = ResolverConfig.from_dict(
            {
                "feed": {"url": "https://example.org/feed.csv", "timeout_seconds": 3},
                "cache": {"ttl_seconds": 60, "retry_seconds": 5},
            }
        )
        resolver = ShelfResolver.from_config(config)

        assert resolver.cache.source.url == "https://example.org/feed.csv"
        assert resolver.cache.source.timeout == 3
        assert resolver.cache.ttl == 60
        assert resolver.cache.retry == 5
        assert resolver.state == CacheState.EMPTY
