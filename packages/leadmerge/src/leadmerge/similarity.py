"""String and geographic similarity primitives."""

from __future__ import annotations

import math

from rapidfuzz.distance import Levenshtein

from leadmerge.normalize import normalize_business_name
from leadmerge.types import Coordinates

EARTH_RADIUS_KM = 6371.0

# Returned when a coordinate is missing; far beyond any proximity band.
MISSING_DISTANCE_KM = 999.0


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for non-negative values (2.5 -> 3)."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost insertion, deletion and substitution."""
    return Levenshtein.distance(a, b)


def fuzzy_match(str1: str | None, str2: str | None) -> int:
    """Similarity of two names on a 0..100 scale.

    Both sides go through business name normalization first. Empty input
    on either side scores 0, identical normalized strings score 100.
    """
    s1 = normalize_business_name(str1)
    s2 = normalize_business_name(str2)

    if not s1 or not s2:
        return 0
    if s1 == s2:
        return 100

    distance = levenshtein_distance(s1, s2)
    max_length = max(len(s1), len(s2))
    return int(round_half_up((1 - distance / max_length) * 100))


def geo_distance_km(coord1: Coordinates | None, coord2: Coordinates | None) -> float:
    """Haversine great-circle distance in km, MISSING_DISTANCE_KM if unknown."""
    if coord1 is None or coord2 is None:
        return MISSING_DISTANCE_KM

    phi1 = math.radians(coord1.lat)
    phi2 = math.radians(coord2.lat)
    d_phi = math.radians(coord2.lat - coord1.lat)
    d_lambda = math.radians(coord2.lng - coord1.lng)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
