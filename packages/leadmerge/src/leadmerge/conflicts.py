"""Conflict detection and resolution between source-reported values."""

from __future__ import annotations

from dataclasses import replace

import structlog

from leadmerge.normalize import extract_domain, normalize_phone
from leadmerge.platforms import PlatformRegistry
from leadmerge.similarity import round_half_up
from leadmerge.types import ConflictValue, DataConflict

log = structlog.get_logger()

SourcedValue = tuple[str | float | int | None, str]


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def comparison_key(field: str, value: str | float | int, phone_digits: int = 10) -> str:
    """Bucket key under which two reported values count as the same."""
    if field == "phone":
        return normalize_phone(str(value), phone_digits)
    if field == "website":
        return extract_domain(str(value))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{round_half_up(value, 1):.1f}"
    return str(value).lower().strip()


def detect_conflict(
    field: str,
    values: list[SourcedValue],
    registry: PlatformRegistry | None = None,
    phone_digits: int = 10,
) -> DataConflict | None:
    """Group reported values by normalized form and flag disagreement.

    Returns None unless at least two distinct buckets exist. Candidates are
    ordered by confidence, the mean reliability of their sources; equal
    confidences keep first-reported order.
    """
    registry = registry or PlatformRegistry()

    buckets: dict[str, tuple[str | float | int, list[str]]] = {}
    valid = 0
    for value, source in values:
        if _is_empty(value):
            continue
        key = comparison_key(field, value, phone_digits)
        if not key:
            continue
        valid += 1
        if key in buckets:
            sources = buckets[key][1]
            if source not in sources:
                sources.append(source)
        else:
            buckets[key] = (value, [source])

    if valid < 2 or len(buckets) < 2:
        return None

    candidates: list[ConflictValue] = []
    for original, sources in buckets.values():
        reliability = sum(registry.reliability(s) for s in sources) / len(sources)
        candidates.append(ConflictValue(
            value=original,
            sources=list(sources),
            confidence=int(round_half_up(reliability * 100)),
        ))

    # Stable sort: ties stay in insertion order
    candidates.sort(key=lambda c: c.confidence, reverse=True)

    log.debug(
        "conflict_detected",
        field=field,
        candidates=len(candidates),
        top_confidence=candidates[0].confidence,
    )
    return DataConflict(field=field, values=candidates, resolved=False)


def auto_resolve_conflict(conflict: DataConflict) -> DataConflict:
    """Resolve to the highest-confidence candidate; resolved input is returned as is."""
    if conflict.resolved or not conflict.values:
        return conflict
    best = conflict.values[0]
    return replace(
        conflict,
        resolved=True,
        resolved_value=best.value,
        resolved_by="auto",
    )


def resolve_conflict(conflict: DataConflict, value: str | float) -> DataConflict:
    """Record a reviewer's choice for a conflict, overriding any earlier resolution."""
    return replace(
        conflict,
        resolved=True,
        resolved_value=value,
        resolved_by="manual",
    )
