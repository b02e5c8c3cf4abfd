"""Per-platform payloads attached to a unified business.

Each known platform has its own dataclass tagged with a ``platform`` id;
anything else lands in ``UnknownPlatformData``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from functools import lru_cache
from types import NoneType, UnionType
from typing import Any, ClassVar, Union, get_args, get_origin, get_type_hints


@dataclass
class GoogleMapsData:
    platform: ClassVar[str] = "google_maps"
    maps_url: str = ""
    rating: float = 0.0
    total_reviews: int = 0
    price_range: str | None = None
    photos: int = 0
    business_status: str | None = None
    verification_status: str | None = None


@dataclass
class YelpData:
    platform: ClassVar[str] = "yelp"
    yelp_url: str = ""
    rating: float = 0.0
    total_reviews: int = 0
    price_range: str | None = None
    categories: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)
    photos: int = 0
    elite_reviews: int | None = None
    claimed_status: bool | None = None


@dataclass
class FacebookData:
    platform: ClassVar[str] = "facebook"
    page_url: str = ""
    rating: float = 0.0
    total_reviews: int = 0
    likes: int | None = None
    followers: int | None = None
    check_ins: int | None = None
    response_rate: int | None = None
    response_time: str | None = None
    recent_posts: int | None = None
    has_messenger: bool | None = None
    has_whatsapp: bool | None = None
    verified_page: bool | None = None


@dataclass
class YellowPagesData:
    platform: ClassVar[str] = "yellow_pages"
    yp_url: str = ""
    years_in_business: int | None = None
    accredited: bool | None = None
    description: str | None = None
    specializations: list[str] = field(default_factory=list)


@dataclass
class LinkedInData:
    platform: ClassVar[str] = "linkedin"
    company_url: str = ""
    industry: str = ""
    headquarters: str = ""
    employee_count: str | None = None
    followers: int | None = None
    company_type: str | None = None
    specialties: list[str] = field(default_factory=list)
    recent_job_postings: int | None = None
    employee_growth: str | None = None  # growing | stable | shrinking


@dataclass
class BBBData:
    platform: ClassVar[str] = "bbb"
    bbb_url: str = ""
    accredited: bool | None = None
    letter_grade: str | None = None
    years_in_business: int | None = None
    complaints_total: int | None = None
    complaints_last_year: int | None = None
    closed_complaints: int | None = None
    industry_comparison: str | None = None


@dataclass
class GlassdoorData:
    platform: ClassVar[str] = "glassdoor"
    company_url: str = ""
    overall_rating: float | None = None
    total_reviews: int | None = None
    ceo_approval_rating: int | None = None
    recommend_to_friend: int | None = None
    job_openings: int | None = None
    culture_rating: float | None = None
    work_life_balance: float | None = None


@dataclass
class TrustpilotData:
    platform: ClassVar[str] = "trustpilot"
    trustpilot_url: str = ""
    trust_score: float | None = None
    total_reviews: int | None = None
    trust_stars: str | None = None
    recent_trend: str | None = None  # improving | stable | declining
    claimed_profile: bool | None = None


@dataclass
class InstagramData:
    platform: ClassVar[str] = "instagram"
    profile_url: str = ""
    followers: int | None = None
    posts: int | None = None
    bio: str | None = None


@dataclass
class TripAdvisorData:
    platform: ClassVar[str] = "tripadvisor"
    listing_url: str = ""
    rating: float = 0.0
    total_reviews: int = 0
    ranking: str | None = None
    price_range: str | None = None


@dataclass
class IndeedData:
    platform: ClassVar[str] = "indeed"
    company_url: str = ""
    rating: float = 0.0
    total_reviews: int = 0
    industry: str = ""
    company_size: str | None = None
    jobs_posted: int | None = None


@dataclass
class UnknownPlatformData:
    platform: str
    profile_url: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


KnownPayload = Union[
    GoogleMapsData,
    YelpData,
    FacebookData,
    YellowPagesData,
    LinkedInData,
    BBBData,
    GlassdoorData,
    TrustpilotData,
    InstagramData,
    TripAdvisorData,
    IndeedData,
]

PlatformPayload = Union[KnownPayload, UnknownPlatformData]

PAYLOAD_TYPES: dict[str, type] = {
    cls.platform: cls
    for cls in (
        GoogleMapsData,
        YelpData,
        FacebookData,
        YellowPagesData,
        LinkedInData,
        BBBData,
        GlassdoorData,
        TrustpilotData,
        InstagramData,
        TripAdvisorData,
        IndeedData,
    )
}


@lru_cache(maxsize=None)
def payload_field_types(cls: type) -> dict[str, tuple[type, ...]]:
    """Field name to accepted runtime types, e.g. ``int | None`` -> ``(int,)``."""
    hints = get_type_hints(cls)
    result: dict[str, tuple[type, ...]] = {}
    for f in fields(cls):
        hint = hints[f.name]
        args = get_args(hint) if get_origin(hint) in (Union, UnionType) else (hint,)
        result[f.name] = tuple(get_origin(a) or a for a in args if a is not NoneType)
    return result
