"""
Configuration for shelf-locator.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .index import normalize_key

CONFIG_SECTION = "shelf_locator"


@dataclass
class FeedConfig:
    """Shelf mapping feed location."""

    url: str = ""
    url_env: str | None = None  # env var that overrides url
    timeout_seconds: float = 10.0

    def get_url(self) -> str:
        """Get feed URL from environment or config."""
        if self.url_env:
            env_url = os.environ.get(self.url_env)
            if env_url:
                return env_url
        return self.url


@dataclass
class CacheConfig:
    """Mapping cache timing."""

    ttl_seconds: float = 300.0  # 5 minutes
    retry_seconds: float = 30.0  # wait after a failed fetch


@dataclass
class LocationFilterConfig:
    """Restrict which collections offer the shelf map at all."""

    enabled: bool = False
    allowed_collections: list[str] = field(default_factory=list)
    match_type: str = "exact"  # exact, contains

    def allows(self, collection_name: str) -> bool:
        """Check whether a collection passes the filter."""
        if not self.enabled:
            return True

        key = normalize_key(collection_name)
        allowed = [normalize_key(name) for name in self.allowed_collections]
        if self.match_type == "contains":
            return any(name and name in key for name in allowed)
        return key in allowed


@dataclass
class CollectionConfig:
    """A collection (sub-location) within a library."""

    name: str
    name_alt: str | None = None

    def matches(self, name: str) -> bool:
        key = normalize_key(name)
        return bool(key) and key in (normalize_key(self.name), normalize_key(self.name_alt))


@dataclass
class LibraryConfig:
    """A library and its floor plan."""

    name: str
    name_alt: str | None = None
    floor_plan: str | None = None  # path to the floor plan SVG
    collections: list[CollectionConfig] = field(default_factory=list)

    def matches(self, name: str) -> bool:
        key = normalize_key(name)
        return bool(key) and key in (normalize_key(self.name), normalize_key(self.name_alt))

    def find_collection(self, name: str) -> CollectionConfig | None:
        """Find a collection by name in either language."""
        for collection in self.collections:
            if collection.matches(name):
                return collection
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LibraryConfig":
        return cls(
            name=data["name"],
            name_alt=data.get("name_alt"),
            floor_plan=data.get("floor_plan"),
            collections=[
                CollectionConfig(name=c["name"], name_alt=c.get("name_alt"))
                for c in data.get("collections", [])
            ],
        )


@dataclass
class ResolverConfig:
    """Complete shelf-locator configuration."""

    feed: FeedConfig = field(default_factory=FeedConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    location_filter: LocationFilterConfig = field(default_factory=LocationFilterConfig)
    libraries: list[LibraryConfig] = field(default_factory=list)
    resolve_timeout_seconds: float | None = None

    def find_library(self, name: str) -> LibraryConfig | None:
        """Find a configured library by name in either language."""
        for library in self.libraries:
            if library.matches(name):
                return library
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResolverConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "feed" in data:
            feed = data["feed"]
            config.feed = FeedConfig(
                url=feed.get("url", ""),
                url_env=feed.get("url_env"),
                timeout_seconds=feed.get("timeout_seconds", 10.0),
            )

        if "cache" in data:
            cache = data["cache"]
            config.cache = CacheConfig(
                ttl_seconds=cache.get("ttl_seconds", 300.0),
                retry_seconds=cache.get("retry_seconds", 30.0),
            )

        if "location_filter" in data:
            lf = data["location_filter"]
            config.location_filter = LocationFilterConfig(
                enabled=lf.get("enabled", False),
                allowed_collections=lf.get("allowed_collections", []),
                match_type=lf.get("match_type", "exact"),
            )

        if "libraries" in data:
            config.libraries = [LibraryConfig.from_dict(lib) for lib in data["libraries"] or []]

        if "resolve_timeout_seconds" in data:
            config.resolve_timeout_seconds = data["resolve_timeout_seconds"]

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "ResolverConfig":
        """Load config from a YAML file."""
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Settings may live under a shelf_locator section or at the root
        return cls.from_dict(data.get(CONFIG_SECTION, data))

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "feed": {
                "url": self.feed.url,
                "url_env": self.feed.url_env,
                "timeout_seconds": self.feed.timeout_seconds,
            },
            "cache": {
                "ttl_seconds": self.cache.ttl_seconds,
                "retry_seconds": self.cache.retry_seconds,
            },
            "location_filter": {
                "enabled": self.location_filter.enabled,
                "allowed_collections": self.location_filter.allowed_collections,
                "match_type": self.location_filter.match_type,
            },
            "libraries": [
                {
                    "name": lib.name,
                    "name_alt": lib.name_alt,
                    "floor_plan": lib.floor_plan,
                    "collections": [
                        {"name": c.name, "name_alt": c.name_alt} for c in lib.collections
                    ],
                }
                for lib in self.libraries
            ],
            "resolve_timeout_seconds": self.resolve_timeout_seconds,
        }
