"""Shared pytest fixtures for shelf-locator tests."""

import asyncio

import pytest

from shelf_locator.feed import FetchError, parse_feed

from feed_data import SAMPLE_FEED


class FakeSource:
    """Record source that serves canned feed text or raises."""

    def __init__(self, text: str = SAMPLE_FEED):
        self.text = text
        self.error: Exception | None = None
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def load(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return parse_feed(self.text).records

    def fail_with(self, error: Exception | None = None) -> None:
        self.error = error or FetchError("simulated outage")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sample_feed():
    return SAMPLE_FEED


@pytest.fixture
def records():
    return parse_feed(SAMPLE_FEED).records


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def make_source():
    """Factory for sources serving custom feed text."""
    return FakeSource


@pytest.fixture
def clock():
    return FakeClock()
