"""Core types for the leadmerge record linkage engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from leadmerge.payloads import PlatformPayload


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class Listing:
    """One business record as reported by a single source platform."""

    id: str
    business_name: str
    source: str
    category: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: str = ""
    coordinates: Coordinates | None = None
    phone: str | None = None
    website: str | None = None
    email: str | None = None
    rating: float = 0.0  # 0 = unknown
    review_count: int = 0
    profile_url: str = ""
    extras: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


Decision = Literal["MATCH", "NO_MATCH", "REVIEW"]


@dataclass
class MatchBreakdown:
    name: int = 0
    address: int = 0
    phone: int = 0
    proximity: int = 0
    website: int = 0

    @property
    def total(self) -> int:
        return self.name + self.address + self.phone + self.proximity + self.website


@dataclass
class MatchResult:
    a_id: str
    b_id: str
    score: int
    breakdown: MatchBreakdown
    is_match: bool
    needs_review: bool

    @property
    def decision(self) -> Decision:
        if self.is_match:
            return "MATCH"
        if self.needs_review:
            return "REVIEW"
        return "NO_MATCH"


@dataclass
class ConflictValue:
    value: str | float
    sources: list[str]
    confidence: int


ResolvedBy = Literal["auto", "manual"]


@dataclass
class DataConflict:
    field: str
    values: list[ConflictValue]
    resolved: bool = False
    resolved_value: str | float | None = None
    resolved_by: ResolvedBy | None = None


@dataclass
class PhoneNumber:
    number: str
    sources: list[str]
    verified: bool = False
    type: str = "primary"


@dataclass
class Website:
    url: str
    sources: list[str]
    verified: bool = False
    type: str = "primary"


@dataclass
class Email:
    address: str
    sources: list[str]
    verified: bool = False
    type: str = "primary"


Severity = Literal["info", "warning", "critical"]


@dataclass
class CrossPlatformInsight:
    type: str
    severity: Severity
    description: str
    recommendation: str
    affected_platforms: list[str] = field(default_factory=list)


@dataclass
class UnifiedBusiness:
    """Canonical record merged from one cluster of listings.

    Holds copies of the merged data only, never the source Listings.
    """

    id: str
    business_name: str
    category: str
    address: str
    city: str
    state: str
    country: str
    zip_code: str
    coordinates: Coordinates | None
    phone: str | None
    website: str | None
    email: str | None
    rating: float
    review_count: int
    source: str
    profile_url: str
    aliases: list[str]
    phones: list[PhoneNumber]
    websites: list[Website]
    emails: list[Email]
    platforms: dict[str, PlatformPayload]
    aggregated_rating: float
    total_reviews_all_platforms: int
    platform_count: int
    platforms_found: list[str]
    platform_gaps: list[str]
    insights: list[CrossPlatformInsight]
    conflicts: list[DataConflict]
    data_quality: int
    match_confidence: int
    source_ids: list[str]
    last_updated: str

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-ready representation, platform payloads tagged by key."""
        data = asdict(self)
        data["platforms"] = {
            key: {"platform": key, **asdict(payload)}
            for key, payload in self.platforms.items()
        }
        return data


@dataclass
class DedupeStats:
    matched: int = 0
    unique: int = 0
    conflicts: int = 0
    listings: int = 0
    comparisons: int = 0
    review_pairs: int = 0
    skipped_duplicate_ids: int = 0

    def summary(self) -> dict[str, int]:
        return {"matched": self.matched, "unique": self.unique, "conflicts": self.conflicts}


@dataclass
class DedupeResult:
    unified: list[UnifiedBusiness]
    stats: DedupeStats
    review_pairs: list[MatchResult] = field(default_factory=list)
