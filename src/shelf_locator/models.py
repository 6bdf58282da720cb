"""
Data models for shelf-locator.
"""

from dataclasses import dataclass, field
from typing import Any

from .callnumber import remove_cutter

# Feed column names, in the order they appear in the published sheet
FEED_COLUMNS = {
    "libraryName": "library_name",
    "libraryNameAlt": "library_name_alt",
    "collectionName": "collection_name",
    "collectionNameAlt": "collection_name_alt",
    "rangeStart": "range_start",
    "rangeEnd": "range_end",
    "shelfCode": "shelf_code",
    "shelfLabel": "shelf_label",
    "description": "description",
    "descriptionAlt": "description_alt",
    "floor": "floor",
    "notes": "notes",
}

REQUIRED_COLUMNS = ("libraryName", "collectionName", "rangeStart", "rangeEnd", "shelfCode")


@dataclass(frozen=True)
class MappingRecord:
    """One physical shelf segment and the call number range it holds."""

    library_name: str
    collection_name: str
    range_start: str  # raw string, keeps "892.413" formatting
    range_end: str
    shelf_code: str  # element id on the floor plan
    description: str = ""
    library_name_alt: str | None = None
    collection_name_alt: str | None = None
    floor: str | None = None
    shelf_label: str | None = None
    description_alt: str | None = None
    notes: str | None = None

    def library_names(self) -> list[str]:
        """Library display names in every language present."""
        return [n for n in (self.library_name, self.library_name_alt) if n]

    def collection_names(self) -> list[str]:
        """Collection display names in every language present."""
        return [n for n in (self.collection_name, self.collection_name_alt) if n]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary using feed column names."""
        result: dict[str, Any] = {}
        for column, attr in FEED_COLUMNS.items():
            value = getattr(self, attr)
            if value is not None:
                result[column] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MappingRecord":
        """Create from a dictionary keyed by feed column names."""
        return cls(
            library_name=data["libraryName"],
            collection_name=data["collectionName"],
            range_start=data["rangeStart"],
            range_end=data["rangeEnd"],
            shelf_code=data["shelfCode"],
            description=data.get("description", ""),
            library_name_alt=data.get("libraryNameAlt"),
            collection_name_alt=data.get("collectionNameAlt"),
            floor=data.get("floor"),
            shelf_label=data.get("shelfLabel"),
            description_alt=data.get("descriptionAlt"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class LocationQuery:
    """An item's location as shown in the catalog, in either display language."""

    library_name: str
    collection_name: str
    raw_call_number: str

    @property
    def call_number(self) -> str:
        """Call number without the cutter, used for range matching."""
        return remove_cutter(self.raw_call_number)


@dataclass
class ShelfLocation:
    """
    Display summary of every shelf an item occupies.

    Overlapping ranges can place one item on several shelves, so codes
    and labels are lists.
    """

    query: LocationQuery
    records: list[MappingRecord] = field(default_factory=list)
    shelf_codes: list[str] = field(default_factory=list)
    shelf_labels: list[str] = field(default_factory=list)
    floor: str | None = None
    description: str | None = None
    description_alt: str | None = None
    floor_plan: str | None = None

    @classmethod
    def from_records(
        cls,
        query: LocationQuery,
        records: list[MappingRecord],
        floor_plan: str | None = None,
    ) -> "ShelfLocation":
        """Aggregate matching records for display."""
        location = cls(query=query, records=list(records), floor_plan=floor_plan)
        for record in records:
            if record.shelf_code not in location.shelf_codes:
                location.shelf_codes.append(record.shelf_code)
            if record.shelf_label and record.shelf_label not in location.shelf_labels:
                location.shelf_labels.append(record.shelf_label)
            if location.floor is None and record.floor:
                location.floor = record.floor
            if location.description is None and record.description:
                location.description = record.description
            if location.description_alt is None and record.description_alt:
                location.description_alt = record.description_alt
        return location

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "library_name": self.query.library_name,
            "collection_name": self.query.collection_name,
            "raw_call_number": self.query.raw_call_number,
            "call_number": self.query.call_number,
            "shelf_codes": self.shelf_codes,
        }
        if self.shelf_labels:
            result["shelf_labels"] = self.shelf_labels
        if self.floor:
            result["floor"] = self.floor
        if self.description:
            result["description"] = self.description
        if self.description_alt:
            result["description_alt"] = self.description_alt
        if self.floor_plan:
            result["floor_plan"] = self.floor_plan
        return result
