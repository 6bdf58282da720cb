"""
Library/collection index over mapping records.

The index is a two-level map, library key -> collection key -> records.
A record is reachable under every language variant of its names: it is
inserted under the cross product of its normalized library keys and
collection keys. Indexes are built once and never mutated.
"""

import logging
from collections.abc import Iterable

from .callnumber import in_range
from .models import MappingRecord

logger = logging.getLogger(__name__)


def normalize_key(name: str | None) -> str:
    """
    Normalize a display name for use as a lookup key.

    Trims, lowercases and collapses internal whitespace runs to one space.
    """
    if not name:
        return ""
    return " ".join(name.split()).lower()


def _keys(names: Iterable[str]) -> list[str]:
    """Distinct non-empty normalized keys, in first-seen order."""
    keys: list[str] = []
    for name in names:
        key = normalize_key(name)
        if key and key not in keys:
            keys.append(key)
    return keys


class MappingIndex:
    """Immutable lookup structure built from a flat record list."""

    def __init__(
        self,
        buckets: dict[str, dict[str, tuple[MappingRecord, ...]]],
        records: tuple[MappingRecord, ...],
    ):
        self._buckets = buckets
        self._records = records

    @classmethod
    def build(cls, records: Iterable[MappingRecord]) -> "MappingIndex":
        """Build an index in one pass over the records."""
        staging: dict[str, dict[str, list[MappingRecord]]] = {}
        all_records: list[MappingRecord] = []

        for record in records:
            all_records.append(record)
            library_keys = _keys(record.library_names())
            collection_keys = _keys(record.collection_names())
            for library_key in library_keys:
                collections = staging.setdefault(library_key, {})
                for collection_key in collection_keys:
                    collections.setdefault(collection_key, []).append(record)

        buckets = {
            library_key: {
                collection_key: tuple(bucket)
                for collection_key, bucket in collections.items()
            }
            for library_key, collections in staging.items()
        }

        logger.info(
            f"Built mapping index with {len(all_records)} records "
            f"across {len(buckets)} library keys"
        )
        return cls(buckets, tuple(all_records))

    @classmethod
    def empty(cls) -> "MappingIndex":
        """An index in which nothing ever matches."""
        return cls({}, ())

    @property
    def records(self) -> tuple[MappingRecord, ...]:
        """All indexed records in feed order."""
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def library_keys(self) -> list[str]:
        """Normalized library keys, in feed order."""
        return list(self._buckets)

    def collection_keys(self, library_name: str) -> list[str]:
        """Normalized collection keys for a library (either language)."""
        return list(self._buckets.get(normalize_key(library_name), {}))

    def lookup(self, library_name: str, collection_name: str) -> tuple[MappingRecord, ...]:
        """All records for a library and collection, regardless of range."""
        library_key = normalize_key(library_name)
        collections = self._buckets.get(library_key)
        if collections is None:
            logger.debug(f"No mappings for library: {library_name!r}")
            return ()

        bucket = collections.get(normalize_key(collection_name))
        if bucket is None:
            logger.debug(
                f"No mappings for collection: {collection_name!r} in library: {library_name!r}"
            )
            return ()
        return bucket

    def all_mappings(
        self,
        library_name: str,
        collection_name: str,
        raw_call_number: str,
    ) -> list[MappingRecord]:
        """
        Find every record whose range holds the call number.

        Overlapping ranges are legitimate: one item can sit on several
        shelves, so all matches are returned, in feed order.
        """
        return [
            record
            for record in self.lookup(library_name, collection_name)
            if in_range(raw_call_number, record.range_start, record.range_end)
        ]
