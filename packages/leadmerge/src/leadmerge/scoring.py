"""Weighted multi-factor match scoring of listing pairs."""

from __future__ import annotations

import structlog

from leadmerge.config import MergeEngineConfig
from leadmerge.normalize import extract_domain, normalize_address, normalize_phone
from leadmerge.similarity import fuzzy_match, geo_distance_km, round_half_up
from leadmerge.types import Listing, MatchBreakdown, MatchResult

log = structlog.get_logger()


def calculate_match_score(
    a: Listing,
    b: Listing,
    config: MergeEngineConfig | None = None,
) -> MatchResult:
    """Score how likely two listings describe the same business (0..100).

    Factors: name similarity, address, phone, geographic proximity and
    website domain. Each sub-score is rounded, and the total is their sum.
    """
    config = config or MergeEngineConfig()
    weights = config.weights
    phone_digits = config.normalization.phone_digits

    # 1. Name similarity
    name_score = int(round_half_up(fuzzy_match(a.business_name, b.business_name) * weights.name))

    # 2. Address: exact normalized match, else close fuzzy match
    addr_a = normalize_address(a.address)
    addr_b = normalize_address(b.address)
    if addr_a and addr_a == addr_b:
        address_score = weights.address_exact
    elif fuzzy_match(addr_a, addr_b) > weights.address_fuzzy_threshold:
        address_score = weights.address_fuzzy
    else:
        address_score = 0

    # 3. Phone
    phone_a = normalize_phone(a.phone, phone_digits)
    phone_b = normalize_phone(b.phone, phone_digits)
    phone_score = weights.phone if phone_a and phone_a == phone_b else 0

    # 4. Proximity
    distance = geo_distance_km(a.coordinates, b.coordinates)
    if distance < config.proximity.near_km:
        proximity_score = weights.proximity_near
    elif distance < config.proximity.far_km:
        proximity_score = weights.proximity_far
    else:
        proximity_score = 0

    # 5. Website domain
    domain_a = extract_domain(a.website)
    domain_b = extract_domain(b.website)
    website_score = weights.website if domain_a and domain_a == domain_b else 0

    breakdown = MatchBreakdown(
        name=name_score,
        address=address_score,
        phone=phone_score,
        proximity=proximity_score,
        website=website_score,
    )
    score = breakdown.total
    thresholds = config.thresholds
    is_match = score >= thresholds.match
    needs_review = not is_match and score >= thresholds.review

    log.debug(
        "pair_scored",
        a_id=a.id,
        b_id=b.id,
        score=score,
        name=name_score,
        address=address_score,
        phone=phone_score,
        proximity=proximity_score,
        website=website_score,
    )

    return MatchResult(
        a_id=a.id,
        b_id=b.id,
        score=score,
        breakdown=breakdown,
        is_match=is_match,
        needs_review=needs_review,
    )
