"""Tests for shelf-locator data models."""

import dataclasses

import pytest

from shelf_locator.models import LocationQuery, MappingRecord, ShelfLocation


def make_record(**overrides) -> MappingRecord:
    values = {
        "library_name": "Sourasky",
        "collection_name": "General",
        "range_start": "100",
        "range_end": "199",
        "shelf_code": "SHELF-04",
    }
    values.update(overrides)
    return MappingRecord(**values)


class TestMappingRecord:
    """Test MappingRecord."""

    def test_immutable(self):
        """Records cannot be changed after creation."""
        record = make_record()
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.shelf_code = "OTHER"

    def test_names(self):
        """Alternate names are listed only when present."""
        assert make_record().library_names() == ["Sourasky"]
        record = make_record(library_name_alt="סוראסקי", collection_name_alt="כללי")
        assert record.library_names() == ["Sourasky", "סוראסקי"]
        assert record.collection_names() == ["General", "כללי"]

    def test_to_dict_minimal(self):
        """Absent optional fields are omitted."""
        assert make_record().to_dict() == {
            "libraryName": "Sourasky",
            "collectionName": "General",
            "rangeStart": "100",
            "rangeEnd": "199",
            "shelfCode": "SHELF-04",
            "description": "",
        }

    def test_to_dict_full(self):
        """Present optional fields use feed column names."""
        record = make_record(floor="2", shelf_label="Case 4", notes="Oversize")
        data = record.to_dict()
        assert data["floor"] == "2"
        assert data["shelfLabel"] == "Case 4"
        assert data["notes"] == "Oversize"

    def test_from_dict(self):
        """Should rebuild a record from feed column names."""
        record = make_record(library_name_alt="סוראסקי", description_alt="פילוסופיה")
        assert MappingRecord.from_dict(record.to_dict()) == record


class TestLocationQuery:
    """Test LocationQuery."""

    def test_call_number_strips_cutter(self):
        """call_number drops the cutter, raw stays intact."""
        query = LocationQuery("Sourasky", "General", "892.413 מאו")
        assert query.call_number == "892.413"
        assert query.raw_call_number == "892.413 מאו"


class TestShelfLocation:
    """Test ShelfLocation aggregation."""

    def test_from_records(self):
        """Codes and labels are gathered, first present values win."""
        query = LocationQuery("Sourasky", "General", "150 ABC")
        records = [
            make_record(shelf_code="A", shelf_label="Case 1", description="Philosophy"),
            make_record(shelf_code="B", floor="2", description_alt="פילוסופיה"),
            make_record(shelf_code="A", shelf_label="Case 1", floor="3"),
        ]

        location = ShelfLocation.from_records(query, records, floor_plan="plan.svg")

        assert location.shelf_codes == ["A", "B"]
        assert location.shelf_labels == ["Case 1"]
        assert location.floor == "2"
        assert location.description == "Philosophy"
        assert location.description_alt == "פילוסופיה"
        assert len(location.records) == 3

    def test_to_dict(self):
        """Should serialize for display."""
        query = LocationQuery("Sourasky", "General", "150 ABC")
        location = ShelfLocation.from_records(query, [make_record(floor="1")], floor_plan="plan.svg")

        data = location.to_dict()

        assert data["call_number"] == "150"
        assert data["raw_call_number"] == "150 ABC"
        assert data["shelf_codes"] == ["SHELF-04"]
        assert data["floor"] == "1"
        assert data["floor_plan"] == "plan.svg"
        assert "shelf_labels" not in data
        assert "description" not in data
