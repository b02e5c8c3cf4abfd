"""Tests for clustering and deduplication."""

from datetime import datetime, timezone

import pytest

from leadmerge.config import DedupeConfig, MergeEngineConfig
from leadmerge.dedupe import Deduplicator, UnionFind, deduplicate, pair_key
from leadmerge.types import Coordinates, Listing


def fixed_clock():
    return datetime(2024, 5, 1, tzinfo=timezone.utc)


def _listing(id, source, **kwargs):
    return Listing(id=id, source=source, **kwargs)


@pytest.fixture
def chain():
    """A matches B and B matches C, but A and C only reach the review band.

    Same name and address everywhere (70 points); each neighbour is ~0.08 km
    apart (+10) while A and C are ~0.16 km apart (+5).
    """
    common = dict(business_name="Sunrise Bakery", address="10 Pine Street")
    return [
        _listing("A", "google_maps", coordinates=Coordinates(0.0, 0.0), **common),
        _listing("B", "yelp", coordinates=Coordinates(0.0, 0.0007), **common),
        _listing("C", "facebook", coordinates=Coordinates(0.0, 0.0014), **common),
    ]


def _config(**dedupe):
    return MergeEngineConfig(dedupe=DedupeConfig(**dedupe))


def test_empty_input():
    unified, stats = deduplicate([])
    assert unified == []
    assert stats.summary() == {"matched": 0, "unique": 0, "conflicts": 0}


def test_identical_business_two_sources():
    listings = [
        _listing("g", "google_maps", business_name="Joe's Pizza", address="123 Main Street", phone="555-123-4567"),
        _listing("y", "yelp", business_name="Joe's Pizza", address="123 Main St", phone="(555) 123 4567"),
    ]
    unified, stats = deduplicate(listings, clock=fixed_clock)

    assert len(unified) == 1
    assert unified[0].platform_count == 2
    assert not [c for c in unified[0].conflicts if c.field == "phone"]
    assert unified[0].match_confidence == 85
    assert stats.summary() == {"matched": 1, "unique": 1, "conflicts": 0}


def test_conflicting_ratings_still_match():
    common = dict(business_name="Joe's Pizza", address="123 Main Street", phone="555-123-4567")
    listings = [
        _listing("g", "google_maps", rating=4.5, **common),
        _listing("f", "facebook", rating=3.0, **common),
    ]
    unified, stats = deduplicate(listings, clock=fixed_clock)

    assert len(unified) == 1
    assert unified[0].aggregated_rating == 3.8
    assert unified[0].conflicts[0].field == "rating"
    assert unified[0].conflicts[0].values[0].value == 4.5
    assert stats.conflicts == 1


def test_near_miss_stays_separate():
    listings = [
        _listing("a", "google_maps", business_name="Bella Cafe", address="12 Oak Road"),
        _listing("b", "yelp", business_name="Bella Cafes", address="900 Elm Avenue"),
    ]
    unified, stats = deduplicate(listings, clock=fixed_clock)

    assert [u.source_ids for u in unified] == [["a"], ["b"]]
    assert stats.unique == 2
    assert stats.matched == 0


def test_seed_strategy_is_not_transitive(chain):
    result = Deduplicator(clock=fixed_clock).run(chain)

    assert [u.source_ids for u in result.unified] == [["A", "B"], ["C"]]
    assert result.unified[0].match_confidence == 80
    assert result.unified[1].match_confidence == 100
    assert result.stats.matched == 1
    assert result.stats.unique == 2
    assert result.stats.comparisons == 2
    assert [(r.a_id, r.b_id, r.score) for r in result.review_pairs] == [("A", "C", 75)]


def test_transitive_strategy_joins_chain(chain):
    result = Deduplicator(_config(strategy="transitive"), clock=fixed_clock).run(chain)

    assert [u.source_ids for u in result.unified] == [["A", "B", "C"]]
    assert result.unified[0].match_confidence == 80
    assert result.stats.matched == 2
    assert result.stats.comparisons == 3
    # A-C ended up in the same cluster, so nothing is left to review
    assert result.review_pairs == []


def test_unknown_strategy_rejected(chain):
    with pytest.raises(ValueError, match="strategy"):
        Deduplicator(_config(strategy="greedy")).run(chain)


def test_rejected_pair_is_never_merged(chain):
    deduplicator = Deduplicator(clock=fixed_clock, rejected_pairs=[pair_key("A", "B")])
    result = deduplicator.run(chain)

    assert [u.source_ids for u in result.unified] == [["A"], ["B", "C"]]


def test_confirmed_pair_is_merged(chain):
    deduplicator = Deduplicator(clock=fixed_clock, confirmed_pairs=[pair_key("C", "A")])
    result = deduplicator.run(chain)

    assert [u.source_ids for u in result.unified] == [["A", "B", "C"]]
    assert result.stats.review_pairs == 0


def test_rejected_pair_not_joined_through_neighbour(chain):
    deduplicator = Deduplicator(
        _config(strategy="transitive"),
        clock=fixed_clock,
        rejected_pairs=[pair_key("A", "C")],
    )
    result = deduplicator.run(chain)

    clusters = [set(u.source_ids) for u in result.unified]
    assert not any({"A", "C"} <= ids for ids in clusters)
    assert clusters == [{"A", "B"}, {"C"}]
    assert result.unified[0].match_confidence == 80


@pytest.mark.parametrize("strategy", ["seed", "transitive"])
def test_decided_pairs_leave_review_queue(chain, strategy):
    deduplicator = Deduplicator(
        _config(strategy=strategy),
        clock=fixed_clock,
        rejected_pairs=[pair_key("A", "C")],
    )
    result = deduplicator.run(chain)

    assert result.review_pairs == []
    assert result.stats.review_pairs == 0


@pytest.mark.parametrize("strategy", ["seed", "transitive"])
def test_workers_do_not_change_result(chain, strategy):
    listings = chain + [
        _listing("D", "bbb", business_name="Quantum Plumbing", phone="5550001111"),
        _listing("E", "yelp", business_name="Quantum Plumbing LLC", phone="555 000 1111", address="1 Elm Rd"),
    ]
    serial = Deduplicator(_config(strategy=strategy), clock=fixed_clock).run(listings)
    parallel = Deduplicator(_config(strategy=strategy, workers=4), clock=fixed_clock).run(listings)

    assert [u.to_dict() for u in parallel.unified] == [u.to_dict() for u in serial.unified]
    assert parallel.stats == serial.stats


def test_duplicate_ids_are_skipped():
    listings = [
        _listing("x", "yelp", business_name="Alpha Dental"),
        _listing("x", "facebook", business_name="Omega Roofing"),
    ]
    unified, stats = deduplicate(listings, clock=fixed_clock)

    assert len(unified) == 1
    assert unified[0].business_name == "Alpha Dental"
    assert stats.skipped_duplicate_ids == 1


def test_stats_reset_between_runs(chain):
    deduplicator = Deduplicator(clock=fixed_clock)
    deduplicator.run(chain)
    result = deduplicator.run(chain[:1])
    assert result.stats.listings == 1
    assert result.stats.unique == 1
    assert result.stats.comparisons == 0


def test_every_listing_lands_in_exactly_one_record(chain):
    for strategy in ("seed", "transitive"):
        result = Deduplicator(_config(strategy=strategy), clock=fixed_clock).run(chain)
        ids = [i for u in result.unified for i in u.source_ids]
        assert sorted(ids) == ["A", "B", "C"]


class TestUnionFind:
    def test_lower_index_is_root(self):
        uf = UnionFind(4)
        uf.union(3, 1)
        uf.union(1, 2)
        assert uf.find(3) == 1
        assert uf.find(2) == 1

    def test_union_reports_change(self):
        uf = UnionFind(2)
        assert uf.union(0, 1)
        assert not uf.union(1, 0)
