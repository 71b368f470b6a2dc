"""
Tests for db/entities.py - Entity Definitions.

Covers:
- Key composition
- Serialization of Decimal and list fields
- PropertyRecord derived properties
- Kind registry
"""
from decimal import Decimal

import pytest


class TestKeys:
    """Tests for the key composition helpers."""

    def test_property_record_key(self):
        from db.entities import property_record_key

        assert property_record_key("0xabc", 7) == "0xabc-7"

    def test_multi_part_keys(self):
        from db.entities import (
            label_pair_key,
            submitter_jurisdiction_key,
            submitter_jurisdiction_label_key,
            submitter_label_key,
            submitter_label_pair_key,
        )

        assert label_pair_key("0xr", "Seed") == "0xr-Seed"
        assert submitter_label_pair_key("0xr", "0xs", "Seed") == "0xr-0xs-Seed"
        assert submitter_label_key("0xs", "Seed") == "0xs-Seed"
        assert submitter_jurisdiction_key("0xs", "Travis") == "0xs-Travis"
        assert submitter_jurisdiction_label_key("0xs", "Travis", "Seed") == "0xs-Travis-Seed"


class TestSerialization:
    """Tests for Entity.to_dict / from_dict."""

    def test_decimal_serialized_as_string(self):
        from db.entities import SubmitterJurisdictionCounter

        counter = SubmitterJurisdictionCounter(
            id="0xs",
            submitter="0xs",
            first_activity_timestamp=10,
            last_activity_timestamp=20,
            last_activity_block=3,
            unique_jurisdictions=["Travis"],
            unique_jurisdiction_count=1,
            total_events=2,
            rate=Decimal("0.2"),
        )

        data = counter.to_dict()

        assert data["rate"] == "0.2"
        assert "kind" not in data
        assert SubmitterJurisdictionCounter.from_dict(data) == counter

    def test_from_dict_copies_lists(self):
        from db.entities import SubmitterJurisdictionCounter

        data = {
            "id": "0xs",
            "submitter": "0xs",
            "first_activity_timestamp": 1,
            "last_activity_timestamp": 1,
            "last_activity_block": 1,
            "unique_jurisdictions": ["Travis"],
        }

        counter = SubmitterJurisdictionCounter.from_dict(data)
        counter.unique_jurisdictions.append("Harris")

        assert data["unique_jurisdictions"] == ["Travis"]

    def test_defaults_fill_missing_fields(self):
        from db.entities import LabelCounter

        counter = LabelCounter.from_dict({"id": "Seed", "label": "Seed"})

        assert counter.unique_property_count == 0


class TestPropertyRecord:
    """Tests for PropertyRecord derived properties."""

    def _record(self, label=None):
        from core.cid import to_hex
        from db.entities import PropertyRecord

        return PropertyRecord(
            id="0xtx-0",
            root_hash="0x" + "11" * 32,
            group_hash="0x" + "22" * 32,
            submitter="0x" + "33" * 20,
            content_hash=to_hex(bytes(32)),
            owner="0x" + "33" * 20,
            block_timestamp=1,
            block_number=1,
            transaction_hash="0xtx",
            label=label,
        )

    def test_content_id_derived_from_content_hash(self):
        assert self._record().content_id == "bafkrei" + "a" * 52

    def test_content_id_is_not_persisted(self):
        assert "content_id" not in self._record().to_dict()

    @pytest.mark.parametrize("label, countable, timed_out", [
        ("Seed", True, False),
        ("TIMEOUT", False, True),
        ("", False, False),
        (None, False, False),
    ])
    def test_label_predicates(self, label, countable, timed_out):
        record = self._record(label)

        assert record.has_countable_label is countable
        assert record.timed_out is timed_out


class TestRegistry:
    """Tests for the kind registries."""

    def test_nine_aggregate_kinds(self):
        from db.entities import AGGREGATE_TYPES, ENTITY_TYPES

        assert len(AGGREGATE_TYPES) == 9
        assert set(ENTITY_TYPES) == set(AGGREGATE_TYPES) | {"PropertyRecord"}

    def test_entity_type_lookup(self):
        from db.entities import JurisdictionCounter, entity_type

        assert entity_type("JurisdictionCounter") is JurisdictionCounter

    def test_unknown_kind(self):
        from db.entities import entity_type

        with pytest.raises(KeyError, match="unknown entity kind"):
            entity_type("Deed")
