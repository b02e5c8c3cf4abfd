"""Merging a cluster of same-business listings into one canonical record."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from leadmerge.config import MergeEngineConfig
from leadmerge.conflicts import auto_resolve_conflict, detect_conflict
from leadmerge.enrichment import ListingPayloadEnricher, PlatformEnricher
from leadmerge.insights import calculate_data_quality, generate_insights
from leadmerge.normalize import extract_domain, normalize_phone
from leadmerge.payloads import PlatformPayload
from leadmerge.platforms import PlatformRegistry
from leadmerge.similarity import round_half_up
from leadmerge.types import DataConflict, Email, Listing, PhoneNumber, UnifiedBusiness, Website

log = structlog.get_logger()

Clock = Callable[[], datetime]


class EmptyClusterError(ValueError):
    """merge_listings was called without any listings."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def merge_listings(
    cluster: list[Listing],
    match_confidence: int = 100,
    config: MergeEngineConfig | None = None,
    registry: PlatformRegistry | None = None,
    enricher: PlatformEnricher | None = None,
    clock: Clock | None = None,
) -> UnifiedBusiness:
    """Combine listings of one business into a UnifiedBusiness.

    The most reliable source becomes the primary record and seeds the
    scalar fields. Contacts are merged by normalized value with per-source
    provenance, ratings are averaged, review counts summed, and conflicts,
    platform gaps, insights and a data quality score are attached.

    Raises:
        EmptyClusterError: if ``cluster`` is empty.
    """
    if not cluster:
        raise EmptyClusterError("cannot merge an empty cluster")

    config = config or MergeEngineConfig()
    registry = registry or PlatformRegistry()
    enricher = enricher or ListingPayloadEnricher()
    clock = clock or _utc_now
    merge_cfg = config.merge
    phone_digits = config.normalization.phone_digits

    # 1. Primary = most reliable source, first-seen on ties
    ordered = sorted(cluster, key=lambda listing: registry.reliability(listing.source), reverse=True)
    primary = ordered[0]

    # 2. Aliases
    aliases: list[str] = []
    for listing in cluster:
        name = listing.business_name
        if name and name != primary.business_name and name not in aliases:
            aliases.append(name)

    # 3. Contacts
    phones = [
        PhoneNumber(number=value, sources=sources, verified=len(sources) >= 2)
        for value, sources in _merge_contacts(
            cluster, "phone", lambda v: normalize_phone(v, phone_digits)
        )
    ]
    websites = [
        Website(url=value, sources=sources, verified=len(sources) >= 2)
        for value, sources in _merge_contacts(cluster, "website", extract_domain)
    ]
    emails = [
        Email(address=value, sources=sources, verified=len(sources) >= 2)
        for value, sources in _merge_contacts(cluster, "email", lambda v: v.strip().lower())
    ]

    # 4. Platform payloads, one per platform present
    platforms: dict[str, PlatformPayload] = {}
    for listing in ordered:
        if listing.source not in platforms:
            platforms[listing.source] = enricher.enrich(listing)

    # 5-6. Aggregates
    ratings = [listing.rating for listing in cluster if listing.rating > 0]
    if ratings:
        aggregated_rating = round_half_up(sum(ratings) / len(ratings), 1)
    else:
        aggregated_rating = primary.rating
    total_reviews = sum(listing.review_count for listing in cluster)

    platforms_found: list[str] = []
    for listing in cluster:
        if listing.source not in platforms_found:
            platforms_found.append(listing.source)

    # 7. Conflicts
    conflicts: list[DataConflict] = []
    for field_name in merge_cfg.conflict_fields:
        conflict = detect_conflict(
            field_name,
            [(_conflict_value(listing, field_name), listing.source) for listing in cluster],
            registry=registry,
            phone_digits=phone_digits,
        )
        if conflict is None:
            continue
        if merge_cfg.auto_resolve_conflicts:
            conflict = auto_resolve_conflict(conflict)
        conflicts.append(conflict)

    # 8-10. Gaps, insights, quality
    platform_gaps = [p for p in registry.baseline() if p not in platforms_found]
    insights = generate_insights(
        cluster, platforms_found, platform_gaps, conflicts, registry, merge_cfg
    )
    data_quality = calculate_data_quality(cluster, conflicts, merge_cfg)

    unified = UnifiedBusiness(
        id=f"unified-{primary.id}",
        business_name=primary.business_name,
        category=primary.category,
        address=primary.address,
        city=primary.city,
        state=primary.state,
        country=primary.country,
        zip_code=primary.zip_code,
        coordinates=primary.coordinates,
        phone=phones[0].number if phones else primary.phone,
        website=websites[0].url if websites else primary.website,
        email=emails[0].address if emails else primary.email,
        rating=aggregated_rating,
        review_count=total_reviews,
        source=primary.source,
        profile_url=primary.profile_url,
        aliases=aliases,
        phones=phones,
        websites=websites,
        emails=emails,
        platforms=platforms,
        aggregated_rating=aggregated_rating,
        total_reviews_all_platforms=total_reviews,
        platform_count=len(platforms_found),
        platforms_found=platforms_found,
        platform_gaps=platform_gaps,
        insights=insights,
        conflicts=conflicts,
        data_quality=data_quality,
        match_confidence=match_confidence,
        source_ids=[listing.id for listing in cluster],
        last_updated=clock().isoformat(),
    )

    log.debug(
        "merge_done",
        unified_id=unified.id,
        listings=len(cluster),
        platforms=platforms_found,
        conflicts=len(conflicts),
        data_quality=data_quality,
    )
    return unified


def _merge_contacts(
    cluster: list[Listing],
    attr: str,
    key_fn: Callable[[str], str],
) -> list[tuple[str, list[str]]]:
    """Group one contact field by normalized key.

    Each group keeps its first-seen raw value and its distinct sources;
    groups with more sources come first.
    """
    groups: dict[str, tuple[str, list[str]]] = {}
    for listing in cluster:
        value = getattr(listing, attr)
        if not value:
            continue
        key = key_fn(value)
        if not key:
            continue
        if key in groups:
            sources = groups[key][1]
            if listing.source not in sources:
                sources.append(listing.source)
        else:
            groups[key] = (value, [listing.source])

    merged = list(groups.values())
    merged.sort(key=lambda item: len(item[1]), reverse=True)
    return merged


def _conflict_value(listing: Listing, field_name: str) -> str | float | None:
    if field_name == "rating":
        # 0 means the platform reported no rating
        return listing.rating if listing.rating > 0 else None
    if field_name == "name":
        return listing.business_name
    return getattr(listing, field_name, None)
