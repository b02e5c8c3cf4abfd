"""FastAPI server for interactive match review."""

from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Literal

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from leadmerge.config import MergeEngineConfig
from leadmerge.dedupe import Deduplicator
from leadmerge.merger import merge_listings
from leadmerge.platforms import PlatformRegistry
from leadmerge.reviews import ReviewStore
from leadmerge.scoring import calculate_match_score
from leadmerge.types import Coordinates, Listing, MatchResult

log = structlog.get_logger()


class CoordinatesModel(BaseModel):
    lat: float
    lng: float


class ListingModel(BaseModel):
    """A listing as submitted by a client."""

    id: str
    business_name: str
    source: str
    category: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: str = ""
    coordinates: CoordinatesModel | None = None
    phone: str | None = None
    website: str | None = None
    email: str | None = None
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    profile_url: str = ""
    extras: dict[str, Any] = Field(default_factory=dict)

    def to_listing(self) -> Listing:
        data = self.model_dump()
        coords = data.pop("coordinates")
        return Listing(
            coordinates=Coordinates(**coords) if coords else None,
            **data,
        )


class MatchRequest(BaseModel):
    a: ListingModel
    b: ListingModel


class MergeRequest(BaseModel):
    listings: list[ListingModel]
    match_confidence: int = Field(default=100, ge=0, le=100)


class DedupeRequest(BaseModel):
    """Listings to deduplicate; the server's loaded listings when omitted."""

    listings: list[ListingModel] | None = None
    strategy: Literal["seed", "transitive"] = "seed"


class CreateReviewRequest(BaseModel):
    a_id: str
    b_id: str
    decision: Literal["same", "different"]
    notes: str = ""


class ReviewResponse(BaseModel):
    a_id: str
    b_id: str
    decision: str
    created_at: str
    notes: str


def _match_payload(result: MatchResult) -> dict[str, Any]:
    return {**asdict(result), "decision": result.decision}


def create_app(
    listings: list[Listing] | None = None,
    reviews_path: str | Path = "localdata/reviews.json",
    config: MergeEngineConfig | None = None,
    registry: PlatformRegistry | None = None,
) -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(title="leadmerge review")
    config = config or MergeEngineConfig()
    registry = registry or PlatformRegistry()
    loaded: list[Listing] = list(listings or [])

    store = ReviewStore(Path(reviews_path))
    store.load()
    log.info("server_ready", listings=len(loaded), reviews=len(store.get_all()))

    @app.get("/api/platforms")
    async def get_platforms() -> list[dict[str, Any]]:
        """Platform registry with reliability and tier."""
        return [asdict(p) for p in registry.all()]

    @app.get("/api/listings")
    async def get_listings(q: str = "") -> list[dict[str, Any]]:
        """Loaded listings, optionally filtered by name."""
        q_lower = q.lower()
        return [
            asdict(listing)
            for listing in loaded
            if not q or q_lower in listing.business_name.lower()
        ]

    @app.post("/api/match")
    async def match_pair(req: MatchRequest) -> dict[str, Any]:
        """Score two listings against each other."""
        result = calculate_match_score(req.a.to_listing(), req.b.to_listing(), config)
        return _match_payload(result)

    @app.post("/api/merge")
    async def merge(req: MergeRequest) -> dict[str, Any]:
        """Merge a user-selected cluster into one business."""
        if not req.listings:
            raise HTTPException(status_code=400, detail="listings cannot be empty")
        unified = merge_listings(
            [m.to_listing() for m in req.listings],
            match_confidence=req.match_confidence,
            config=config,
            registry=registry,
        )
        return unified.to_dict()

    @app.post("/api/dedupe")
    async def dedupe(req: DedupeRequest) -> dict[str, Any]:
        """Deduplicate the given listings, honoring stored review decisions."""
        batch = [m.to_listing() for m in req.listings] if req.listings is not None else loaded
        run_config = replace(config, dedupe=replace(config.dedupe, strategy=req.strategy))
        deduplicator = Deduplicator(
            run_config,
            registry,
            confirmed_pairs=store.confirmed_pairs(),
            rejected_pairs=store.rejected_pairs(),
        )
        result = deduplicator.run(batch)
        return {
            "unified": [u.to_dict() for u in result.unified],
            "stats": asdict(result.stats),
            "review_pairs": [_match_payload(r) for r in result.review_pairs],
        }

    @app.get("/api/reviews")
    async def get_reviews() -> list[ReviewResponse]:
        """Get all review decisions."""
        return [ReviewResponse(**asdict(d)) for d in store.get_all()]

    @app.post("/api/reviews")
    async def create_review(req: CreateReviewRequest) -> ReviewResponse:
        """Record whether two listings are the same business."""
        if req.a_id == req.b_id:
            raise HTTPException(status_code=400, detail="a_id and b_id must differ")
        review = store.add_decision(
            a_id=req.a_id,
            b_id=req.b_id,
            decision=req.decision,
            notes=req.notes,
        )
        return ReviewResponse(**asdict(review))

    @app.delete("/api/reviews/{index}")
    async def delete_review(index: int) -> dict[str, bool]:
        """Delete a review decision by index."""
        if store.remove_decision(index):
            return {"success": True}
        raise HTTPException(status_code=404, detail="Review not found")

    return app
