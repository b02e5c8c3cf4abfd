"""leadmerge - Cross-platform business listing linkage and merging."""

from leadmerge.config import MergeEngineConfig
from leadmerge.conflicts import auto_resolve_conflict, detect_conflict, resolve_conflict
from leadmerge.dedupe import Deduplicator, deduplicate
from leadmerge.merger import EmptyClusterError, merge_listings
from leadmerge.normalize import (
    extract_domain,
    normalize_address,
    normalize_business_name,
    normalize_phone,
)
from leadmerge.platforms import PlatformRegistry
from leadmerge.scoring import calculate_match_score
from leadmerge.similarity import fuzzy_match, geo_distance_km, levenshtein_distance
from leadmerge.types import (
    Coordinates,
    DataConflict,
    DedupeStats,
    Listing,
    MatchResult,
    UnifiedBusiness,
)

__all__ = [
    "Coordinates",
    "DataConflict",
    "DedupeStats",
    "Deduplicator",
    "EmptyClusterError",
    "Listing",
    "MatchResult",
    "MergeEngineConfig",
    "PlatformRegistry",
    "UnifiedBusiness",
    "auto_resolve_conflict",
    "calculate_match_score",
    "deduplicate",
    "detect_conflict",
    "extract_domain",
    "fuzzy_match",
    "geo_distance_km",
    "levenshtein_distance",
    "merge_listings",
    "normalize_address",
    "normalize_business_name",
    "normalize_phone",
    "resolve_conflict",
]
