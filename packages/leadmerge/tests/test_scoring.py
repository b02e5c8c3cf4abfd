"""Tests for weighted match scoring."""

from leadmerge.config import MatchWeights, MergeEngineConfig, Thresholds
from leadmerge.scoring import calculate_match_score
from leadmerge.types import Coordinates, Listing


def _listing(id, source="google_maps", **kwargs):
    kwargs.setdefault("business_name", "Joe's Pizza")
    return Listing(id=id, source=source, **kwargs)


def test_identical_business_scores_full_marks():
    a = _listing(
        "a",
        address="123 Main Street",
        phone="(555) 123-4567",
        website="https://www.joespizza.com",
        coordinates=Coordinates(40.0, -74.0),
    )
    b = _listing(
        "b",
        source="yelp",
        business_name="Joes Pizza LLC",
        address="123 Main St.",
        phone="555.123.4567",
        website="joespizza.com",
        coordinates=Coordinates(40.0, -74.0),
    )

    result = calculate_match_score(a, b)

    assert result.breakdown.name == 36  # "joe's pizza" vs "joes pizza"
    assert result.breakdown.address == 30
    assert result.breakdown.phone == 15
    assert result.breakdown.proximity == 10
    assert result.breakdown.website == 5
    assert result.score == 96
    assert result.is_match
    assert not result.needs_review
    assert result.decision == "MATCH"


def test_total_is_sum_of_subscores():
    a = _listing("a", address="12 Oak Road", phone="5551112222")
    b = _listing("b", business_name="Joes Pizzeria", address="12 Oak Rd", phone="5551112222")
    result = calculate_match_score(a, b)
    assert result.score == result.breakdown.total


def test_near_miss_name_different_address():
    a = _listing("a", business_name="Bella Cafe", address="12 Oak Road")
    b = _listing("b", business_name="Bella Cafes", address="900 Elm Avenue")

    result = calculate_match_score(a, b)

    assert result.breakdown.name == 36
    assert result.breakdown.address == 0
    assert result.score == 36
    assert not result.is_match
    assert not result.needs_review
    assert result.decision == "NO_MATCH"


def test_review_band():
    a = _listing("a", phone="5551234567", website="joespizza.com")
    b = _listing("b", phone="555-123-4567", website="http://joespizza.com/menu")

    result = calculate_match_score(a, b)

    assert result.score == 60
    assert not result.is_match
    assert result.needs_review
    assert result.decision == "REVIEW"


def test_fuzzy_address_scores_partial():
    a = _listing("a", address="123 Main St Suite 4")
    b = _listing("b", address="123 Main St Suite 5")
    assert calculate_match_score(a, b).breakdown.address == 20


def test_empty_addresses_never_score():
    result = calculate_match_score(_listing("a"), _listing("b"))
    assert result.breakdown.address == 0


def test_proximity_bands():
    origin = _listing("a", coordinates=Coordinates(40.0, -74.0))
    near = _listing("b", coordinates=Coordinates(40.0, -74.0005))  # ~0.04 km
    mid = _listing("c", coordinates=Coordinates(40.0, -74.003))  # ~0.26 km
    far = _listing("d", coordinates=Coordinates(40.0, -74.01))  # ~0.85 km

    assert calculate_match_score(origin, near).breakdown.proximity == 10
    assert calculate_match_score(origin, mid).breakdown.proximity == 5
    assert calculate_match_score(origin, far).breakdown.proximity == 0


def test_missing_coordinates_score_no_proximity():
    a = _listing("a", coordinates=Coordinates(40.0, -74.0))
    assert calculate_match_score(a, _listing("b")).breakdown.proximity == 0


def test_missing_optional_fields_contribute_nothing():
    a = _listing("a", business_name="Sunrise Bakery")
    b = _listing("b", business_name="Quantum Plumbing")
    result = calculate_match_score(a, b)
    assert result.breakdown.phone == 0
    assert result.breakdown.website == 0
    assert 0 <= result.score <= 100


def test_symmetric():
    a = _listing(
        "a",
        business_name="Sunrise Bakery & Cafe",
        address="10 Pine Street",
        phone="+1 555 000 1111",
        coordinates=Coordinates(51.5, -0.12),
    )
    b = _listing(
        "b",
        business_name="Sunrise Bakery",
        address="10 Pine St Suite 2",
        phone="5550001111",
        coordinates=Coordinates(51.501, -0.12),
    )
    assert calculate_match_score(a, b).score == calculate_match_score(b, a).score


def test_thresholds_are_configurable():
    config = MergeEngineConfig(thresholds=Thresholds(match=50, review=30))
    a = _listing("a", business_name="Bella Cafe")
    b = _listing("b", business_name="Bella Cafe", phone="5551234567")
    result = calculate_match_score(a, b, config)
    assert result.score == 40
    assert not result.is_match
    assert result.needs_review


def test_weights_are_configurable():
    config = MergeEngineConfig(weights=MatchWeights(phone=40))
    a = _listing("a", business_name="Alpha", phone="5551234567")
    b = _listing("b", business_name="Omega", phone="5551234567")
    assert calculate_match_score(a, b, config).breakdown.phone == 40
