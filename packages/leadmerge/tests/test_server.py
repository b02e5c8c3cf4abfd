"""Tests for the review server API."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from leadmerge.server import create_app
from leadmerge.types import Coordinates, Listing


def _payload(id, source, **kwargs):
    data = {"id": id, "source": source, "business_name": "Sunrise Bakery", "address": "10 Pine Street"}
    data.update(kwargs)
    return data


@pytest.fixture
def chain_listings():
    common = dict(business_name="Sunrise Bakery", address="10 Pine Street")
    return [
        Listing(id="A", source="google_maps", coordinates=Coordinates(0.0, 0.0), **common),
        Listing(id="B", source="yelp", coordinates=Coordinates(0.0, 0.0007), **common),
        Listing(id="C", source="facebook", coordinates=Coordinates(0.0, 0.0014), **common),
    ]


@pytest.fixture
def client(tmp_path: Path, chain_listings):
    app = create_app(listings=chain_listings, reviews_path=tmp_path / "reviews.json")
    return TestClient(app)


def test_platforms(client):
    resp = client.get("/api/platforms")
    assert resp.status_code == 200
    ids = [p["id"] for p in resp.json()]
    assert ids[0] == "google_maps"
    assert "trustpilot" in ids


def test_listings_filter(client):
    assert len(client.get("/api/listings").json()) == 3
    assert client.get("/api/listings", params={"q": "bakery"}).json()[0]["id"] == "A"
    assert client.get("/api/listings", params={"q": "plumbing"}).json() == []


def test_match(client):
    resp = client.post("/api/match", json={
        "a": _payload("x", "yelp", phone="555-123-4567"),
        "b": _payload("y", "bbb", phone="(555) 123 4567", coordinates={"lat": 1.0, "lng": 1.0}),
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 85
    assert body["decision"] == "MATCH"
    assert body["breakdown"]["phone"] == 15


def test_match_rejects_bad_rating(client):
    resp = client.post("/api/match", json={
        "a": _payload("x", "yelp", rating=9),
        "b": _payload("y", "bbb"),
    })
    assert resp.status_code == 422


def test_merge(client):
    resp = client.post("/api/merge", json={
        "listings": [
            _payload("f", "facebook", rating=3.0),
            _payload("g", "google_maps", rating=4.5),
        ],
        "match_confidence": 90,
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == "unified-g"
    assert body["aggregated_rating"] == 3.8
    assert body["match_confidence"] == 90
    assert body["conflicts"][0]["field"] == "rating"


def test_merge_empty(client):
    resp = client.post("/api/merge", json={"listings": []})
    assert resp.status_code == 400


def test_dedupe_loaded_listings(client):
    body = client.post("/api/dedupe", json={}).json()

    assert [u["source_ids"] for u in body["unified"]] == [["A", "B"], ["C"]]
    assert body["stats"]["review_pairs"] == 1
    assert body["review_pairs"][0]["decision"] == "REVIEW"


def test_dedupe_transitive(client):
    body = client.post("/api/dedupe", json={"strategy": "transitive"}).json()
    assert [u["source_ids"] for u in body["unified"]] == [["A", "B", "C"]]


def test_dedupe_given_listings(client):
    body = client.post("/api/dedupe", json={"listings": [_payload("x", "yelp")]}).json()
    assert body["stats"]["unique"] == 1


def test_reviews_flow(client):
    assert client.get("/api/reviews").json() == []

    resp = client.post("/api/reviews", json={"a_id": "A", "b_id": "C", "decision": "same"})
    assert resp.status_code == 200
    assert resp.json()["decision"] == "same"

    body = client.post("/api/dedupe", json={}).json()
    assert [u["source_ids"] for u in body["unified"]] == [["A", "B", "C"]]

    assert client.delete("/api/reviews/0").json() == {"success": True}
    assert client.get("/api/reviews").json() == []


def test_review_same_listing(client):
    resp = client.post("/api/reviews", json={"a_id": "A", "b_id": "A", "decision": "same"})
    assert resp.status_code == 400


def test_review_bad_decision(client):
    resp = client.post("/api/reviews", json={"a_id": "A", "b_id": "B", "decision": "maybe"})
    assert resp.status_code == 422


def test_delete_missing_review(client):
    assert client.delete("/api/reviews/5").status_code == 404
