"""Cross-platform insights and data quality for merged businesses."""

from __future__ import annotations

from leadmerge.config import MergeConfig
from leadmerge.platforms import PlatformRegistry
from leadmerge.types import CrossPlatformInsight, DataConflict, Listing


def generate_insights(
    listings: list[Listing],
    platforms_found: list[str],
    platform_gaps: list[str],
    conflicts: list[DataConflict],
    registry: PlatformRegistry,
    config: MergeConfig | None = None,
) -> list[CrossPlatformInsight]:
    """Run every insight rule; each is independent and may fire alongside the others."""
    config = config or MergeConfig()
    insights: list[CrossPlatformInsight] = []

    # Rating inconsistency
    ratings = [listing.rating for listing in listings if listing.rating > 0]
    if len(ratings) > 1:
        low, high = min(ratings), max(ratings)
        spread = high - low
        if spread > config.rating_spread:
            insights.append(CrossPlatformInsight(
                type="rating_inconsistency",
                severity="warning" if spread > config.rating_spread_warning else "info",
                description=f"Rating varies from {low:.1f} to {high:.1f} across platforms",
                recommendation="Focus on improving ratings on lower-rated platforms",
                affected_platforms=list(platforms_found),
            ))

    # Social presence without a website
    social_ids = registry.of_kind("social")
    social = [p for p in platforms_found if p in social_ids]
    if social and not any(listing.website for listing in listings):
        insights.append(CrossPlatformInsight(
            type="social_only",
            severity="warning",
            description="Strong social media presence but no dedicated website",
            recommendation="Build a website to own your digital presence",
            affected_platforms=social,
        ))

    # Missing baseline platforms
    if platform_gaps:
        insights.append(CrossPlatformInsight(
            type="platform_gap",
            severity="warning" if len(platform_gaps) > config.gap_warning_count else "info",
            description=f"Not found on {len(platform_gaps)} major free platforms",
            recommendation=f"Claim profiles on: {', '.join(platform_gaps)}",
            affected_platforms=list(platform_gaps),
        ))

    # Source disagreement
    if conflicts:
        insights.append(CrossPlatformInsight(
            type="data_mismatch",
            severity="info",
            description=f"{len(conflicts)} data discrepancies detected across platforms",
            recommendation="Review and update inconsistent business information",
            affected_platforms=list(platforms_found),
        ))

    return insights


def calculate_data_quality(
    listings: list[Listing],
    conflicts: list[DataConflict],
    config: MergeConfig | None = None,
) -> int:
    """Heuristic 0..100 score: corroboration and contact completeness."""
    config = config or MergeConfig()
    score = config.quality_base
    score += min(len(listings) * config.quality_per_listing, config.quality_listing_cap)
    score -= len(conflicts) * config.quality_conflict_penalty

    if any(listing.website for listing in listings):
        score += config.quality_contact_bonus
    if any(listing.email for listing in listings):
        score += config.quality_contact_bonus
    if any(listing.phone for listing in listings):
        score += config.quality_contact_bonus

    return max(0, min(100, score))
