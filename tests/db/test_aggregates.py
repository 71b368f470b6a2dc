"""
Tests for db/aggregates.py - Aggregate Projection.

Covers:
- Dedup pairs are created once and never rewritten
- Unique-property counters count distinct root hashes only
- Activity counters count every event
- Submitter rate arithmetic
- Branch selection for timeout, missing label and missing jurisdiction
"""
from decimal import Decimal

import pytest

from tests.fakes import make_address, make_hash


def _record(
    root="parcel-1",
    submitter="alice",
    label="Seed",
    jurisdiction="Travis",
    block=1,
    log_index=0,
):
    from core.cid import to_hex
    from db.entities import PropertyRecord

    return PropertyRecord(
        id=f"0xtx{block}-{log_index}",
        root_hash=to_hex(make_hash(root)),
        group_hash=to_hex(make_hash("group")),
        submitter=to_hex(make_address(submitter)),
        content_hash=to_hex(make_hash(f"content:{root}")),
        owner=to_hex(make_address(submitter)),
        block_timestamp=0,
        block_number=block,
        transaction_hash=f"0xtx{block}",
        content="{}",
        label=label,
        jurisdiction=jurisdiction,
    )


@pytest.fixture
def updater(store):
    from db.aggregates import AggregateUpdater

    return AggregateUpdater(store)


def _hex_address(seed):
    from core.cid import to_hex

    return to_hex(make_address(seed))


# =============================================================================
# Label Branch
# =============================================================================

class TestLabelAggregates:
    """Tests for LabelDedupPair / LabelCounter and the submitter variants."""

    def test_first_event_creates_everything(self, store, updater):
        update = updater.update(_record(), timestamp=100, block_number=1)

        assert store.load("LabelCounter", "Seed").unique_property_count == 1
        key = f"{_hex_address('alice')}-Seed"
        assert store.load("SubmitterLabelCounter", key).unique_property_count == 1
        assert ("LabelDedupPair", _record().root_hash + "-Seed") in update.created

    def test_repeat_property_is_deduplicated(self, store, updater):
        """The same root hash and label never counts twice."""
        updater.update(_record(block=1), timestamp=100, block_number=1)
        update = updater.update(_record(block=2), timestamp=200, block_number=2)

        assert store.load("LabelCounter", "Seed").unique_property_count == 1
        assert not update.wrote("LabelCounter")
        assert not update.wrote("LabelDedupPair")

    def test_dedup_pair_keeps_first_seen(self, store, updater):
        record = _record()
        updater.update(record, timestamp=100, block_number=1)
        updater.update(_record(block=9), timestamp=900, block_number=9)

        pair = store.load("LabelDedupPair", f"{record.root_hash}-Seed")
        assert pair.first_seen_timestamp == 100
        assert pair.first_seen_block == 1

    def test_distinct_properties_count_separately(self, store, updater):
        updater.update(_record(root="parcel-1"), timestamp=100, block_number=1)
        updater.update(_record(root="parcel-2", block=2), timestamp=200, block_number=2)

        assert store.load("LabelCounter", "Seed").unique_property_count == 2

    def test_second_submitter_same_property(self, store, updater):
        """Global count stays at one; each submitter counts their own."""
        updater.update(_record(submitter="alice"), timestamp=100, block_number=1)
        updater.update(_record(submitter="bob", block=2), timestamp=200, block_number=2)

        assert store.load("LabelCounter", "Seed").unique_property_count == 1
        bob_key = f"{_hex_address('bob')}-Seed"
        assert store.load("SubmitterLabelCounter", bob_key).unique_property_count == 1

    def test_label_branch_without_jurisdiction(self, store, updater):
        update = updater.update(_record(jurisdiction=None), timestamp=100, block_number=1)

        assert update.wrote("LabelCounter", "Seed")
        assert not update.wrote("SubmitterJurisdictionCounter")
        assert not update.wrote("JurisdictionCounter")


# =============================================================================
# Jurisdiction Branch
# =============================================================================

class TestJurisdictionAggregates:
    """Tests for the submitter/jurisdiction leaderboard entities."""

    def test_activity_counters_count_every_event(self, store, updater):
        """Repeat submissions of one property are not deduplicated here."""
        alice = _hex_address("alice")
        for block in (1, 2, 3):
            updater.update(_record(block=block), timestamp=block * 10, block_number=block)

        assert store.load("JurisdictionCounter", "Travis").total_events == 3
        label_counter = store.load("SubmitterJurisdictionLabelCounter", f"{alice}-Travis-Seed")
        assert label_counter.properties_mined == 3
        assert label_counter.last_activity_block == 3
        assert label_counter.last_activity_timestamp == 30
        assert store.load("SubmitterJurisdictionCounter", alice).total_events == 3

    def test_unique_jurisdictions(self, store, updater):
        alice = _hex_address("alice")
        updater.update(_record(jurisdiction="Travis", block=1), timestamp=10, block_number=1)
        updater.update(_record(jurisdiction="Harris", block=2), timestamp=20, block_number=2)
        updater.update(_record(jurisdiction="Travis", block=3), timestamp=30, block_number=3)

        counter = store.load("SubmitterJurisdictionCounter", alice)
        assert counter.unique_jurisdictions == ["Travis", "Harris"]
        assert counter.unique_jurisdiction_count == 2
        assert counter.first_activity_timestamp == 10
        assert counter.last_activity_timestamp == 30

    def test_rate(self, store, updater):
        """Two events ten seconds apart give a rate of 0.2."""
        alice = _hex_address("alice")
        updater.update(_record(block=1), timestamp=100, block_number=1)
        updater.update(_record(block=2), timestamp=110, block_number=2)

        assert store.load("SubmitterJurisdictionCounter", alice).rate == Decimal("0.2")

    def test_rate_unchanged_without_elapsed_time(self, store, updater):
        alice = _hex_address("alice")
        updater.update(_record(block=1), timestamp=100, block_number=1)
        updater.update(_record(block=1, log_index=1), timestamp=100, block_number=1)

        assert store.load("SubmitterJurisdictionCounter", alice).rate == Decimal("0")

    def test_jurisdiction_dedup_pair_once(self, store, updater):
        alice = _hex_address("alice")
        first = updater.update(_record(block=1), timestamp=10, block_number=1)
        second = updater.update(_record(block=2), timestamp=20, block_number=2)

        assert first.wrote("SubmitterJurisdictionDedupPair", f"{alice}-Travis")
        assert not second.wrote("SubmitterJurisdictionDedupPair")

    def test_timeout_skips_label_entities(self, store, updater):
        """A TIMEOUT record still counts towards jurisdiction activity."""
        update = updater.update(_record(label="TIMEOUT"), timestamp=10, block_number=1)

        assert update.wrote("JurisdictionCounter", "Travis")
        assert update.wrote("SubmitterJurisdictionCounter")
        assert not update.wrote("SubmitterJurisdictionLabelCounter")
        assert not update.wrote("SubmitterJurisdictionLabelDedupPair")
        assert not update.wrote("LabelCounter")
        assert store.count("LabelDedupPair") == 0

    @pytest.mark.parametrize("label", [None, ""])
    def test_missing_label_skips_label_entities(self, store, updater, label):
        update = updater.update(_record(label=label), timestamp=10, block_number=1)

        assert update.wrote("JurisdictionCounter")
        assert not update.wrote("LabelCounter")
        assert not update.wrote("SubmitterJurisdictionLabelCounter")

    def test_empty_jurisdiction_skipped(self, store, updater):
        update = updater.update(_record(jurisdiction=""), timestamp=10, block_number=1)

        assert not update.wrote("JurisdictionCounter")
        assert not update.wrote("SubmitterJurisdictionCounter")
        assert update.wrote("LabelCounter")

    def test_nothing_applies(self, store, updater):
        update = updater.update(
            _record(label="TIMEOUT", jurisdiction=None), timestamp=10, block_number=1
        )

        assert update.writes == []


class TestAggregateMetrics:
    """Tests for aggregate write metrics."""

    def test_every_write_recorded(self, store, updater):
        from unittest.mock import patch

        with patch("db.aggregates.record_aggregate_write") as record:
            update = updater.update(_record(), timestamp=10, block_number=1)

        assert [c.args[0] for c in record.call_args_list] == [k for k, _ in update.writes]
