"""Building typed platform payloads from listings."""

from __future__ import annotations

import copy
import random
from typing import Any, Protocol

import structlog

from leadmerge.payloads import (
    PAYLOAD_TYPES,
    BBBData,
    FacebookData,
    GlassdoorData,
    LinkedInData,
    PlatformPayload,
    TrustpilotData,
    UnknownPlatformData,
    YellowPagesData,
    YelpData,
    payload_field_types,
)
from leadmerge.types import Listing

log = structlog.get_logger()

_TRUE_STRINGS = frozenset({"true", "yes", "y", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "0"})

# Field of each payload that carries the listing's profile URL
URL_FIELDS: dict[str, str] = {
    "google_maps": "maps_url",
    "yelp": "yelp_url",
    "facebook": "page_url",
    "yellow_pages": "yp_url",
    "linkedin": "company_url",
    "bbb": "bbb_url",
    "glassdoor": "company_url",
    "trustpilot": "trustpilot_url",
    "instagram": "profile_url",
    "tripadvisor": "listing_url",
    "indeed": "company_url",
}


class PlatformEnricher(Protocol):
    """Protocol for turning a listing into its platform's payload."""

    def enrich(self, listing: Listing) -> PlatformPayload: ...


class ListingPayloadEnricher:
    """Payload from what the collector actually reported.

    Common listing fields are mapped onto the payload, then any ``extras``
    key that names a payload field is copied over. Nothing is invented:
    fields with no reported value keep their defaults.
    """

    def enrich(self, listing: Listing) -> PlatformPayload:
        payload_type = PAYLOAD_TYPES.get(listing.source)
        if payload_type is None:
            return UnknownPlatformData(
                platform=listing.source,
                profile_url=listing.profile_url,
                fields=copy.deepcopy(dict(listing.extras)),
            )

        field_types = payload_field_types(payload_type)
        values: dict[str, Any] = {}
        reported = [*_listing_fields(listing).items(), *listing.extras.items()]
        for key, value in reported:
            if key not in field_types or value is None:
                continue
            converted = _coerce(value, field_types[key])
            if converted is None:
                log.debug("payload_value_dropped", source=listing.source, field=key, value=value)
                continue
            values[key] = converted
        return payload_type(**values)


def _listing_fields(listing: Listing) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "rating": listing.rating,
        "total_reviews": listing.review_count,
        "industry": listing.category,
        "description": listing.extras.get("description"),
    }
    url_field = URL_FIELDS.get(listing.source)
    if url_field:
        fields[url_field] = listing.profile_url
    if listing.category:
        fields["categories"] = [listing.category]
        fields["specializations"] = [listing.category]
        fields["specialties"] = [listing.category]
    if listing.city or listing.state:
        fields["headquarters"] = ", ".join(p for p in (listing.city, listing.state) if p)
    if "photos_count" in listing.extras:
        fields["photos"] = listing.extras["photos_count"]
    if "amenities" in listing.extras:
        fields["features"] = listing.extras["amenities"]
    return fields


class SyntheticEnricher:
    """Demo fallback that fills unreported platform metrics with placeholders.

    Values come from a ``random.Random`` seeded per listing, so the same
    seed and listing always give the same payload. Reported values are
    never overwritten.
    """

    def __init__(self, seed: int | str = 0, base: PlatformEnricher | None = None) -> None:
        self.seed = seed
        self.base = base or ListingPayloadEnricher()

    def enrich(self, listing: Listing) -> PlatformPayload:
        payload = self.base.enrich(listing)
        rng = random.Random(f"{self.seed}:{listing.source}:{listing.id}")
        reviews = listing.review_count

        if isinstance(payload, YelpData):
            _fill(payload, elite_reviews=reviews // 10, claimed_status=True)
            if payload.price_range is None:
                payload.price_range = "$$"
        elif isinstance(payload, FacebookData):
            _fill(
                payload,
                likes=reviews,
                followers=int(reviews * 1.2),
                check_ins=reviews // 2,
                response_rate=70 + rng.randrange(25),
                response_time="within hours",
                recent_posts=rng.randrange(20) + 5,
                has_messenger=True,
                has_whatsapp=rng.random() > 0.5,
                verified_page=rng.random() > 0.7,
            )
        elif isinstance(payload, YellowPagesData):
            _fill(payload, years_in_business=rng.randrange(30) + 1, accredited=rng.random() > 0.5)
        elif isinstance(payload, LinkedInData):
            _fill(
                payload,
                employee_count=rng.choice(["1-10", "11-50", "51-200"]),
                followers=rng.randrange(5000) + 100,
                company_type="Privately Held",
                recent_job_postings=rng.randrange(10),
                employee_growth=rng.choice(["growing", "stable", "shrinking"]),
            )
        elif isinstance(payload, BBBData):
            _fill(
                payload,
                accredited=rng.random() > 0.4,
                letter_grade=rng.choice(["A+", "A", "A-", "B+", "B"]),
                years_in_business=rng.randrange(25) + 1,
                complaints_total=rng.randrange(20),
                complaints_last_year=rng.randrange(5),
                closed_complaints=rng.randrange(15),
                industry_comparison=rng.choice(["above_average", "average", "below_average"]),
            )
        elif isinstance(payload, GlassdoorData):
            _fill(
                payload,
                overall_rating=round(2.5 + rng.random() * 2.5, 1),
                ceo_approval_rating=rng.randrange(40) + 50,
                recommend_to_friend=rng.randrange(40) + 50,
                total_reviews=rng.randrange(200) + 10,
                job_openings=rng.randrange(15),
                culture_rating=round(3 + rng.random() * 2, 1),
                work_life_balance=round(3 + rng.random() * 2, 1),
            )
        elif isinstance(payload, TrustpilotData):
            score = round(2 + rng.random() * 3, 1)
            _fill(
                payload,
                trust_score=score,
                total_reviews=rng.randrange(500) + 20,
                trust_stars=_trust_stars(payload.trust_score if payload.trust_score is not None else score),
                recent_trend=rng.choice(["improving", "stable", "declining"]),
                claimed_profile=rng.random() > 0.3,
            )
        return payload


def _fill(payload: object, **defaults: Any) -> None:
    """Set attributes that are still None."""
    for key, value in defaults.items():
        if getattr(payload, key) is None:
            setattr(payload, key, value)


def _trust_stars(score: float) -> str:
    if score >= 4.5:
        return "Excellent"
    if score >= 4:
        return "Great"
    if score >= 3:
        return "Average"
    return "Poor"


def _coerce(value: Any, types: tuple[type, ...]) -> Any:
    """Convert a reported value to a payload field's type, None if it does not fit.

    CSV columns arrive as strings: "12" fits an int field, "yes" a bool
    field and "a|b" a list field.
    """
    if bool in types:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text in _TRUE_STRINGS:
                return True
            if text in _FALSE_STRINGS:
                return False
        return None
    if isinstance(value, bool):
        return None
    if int in types:
        if isinstance(value, int):
            return value
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return int(number) if number.is_integer() else None
    if float in types:
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
    if list in types:
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        if isinstance(value, str):
            return [part.strip() for part in value.split("|") if part.strip()]
        return None
    if str in types:
        return value if isinstance(value, str) else str(value)
    return copy.deepcopy(value)
