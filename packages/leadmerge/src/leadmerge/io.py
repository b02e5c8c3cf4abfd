"""CSV/JSONL input of listings and output of unified businesses."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

from leadmerge.types import Coordinates, Listing, UnifiedBusiness

STRING_FIELDS = (
    "category", "address", "city", "state", "country", "zip_code", "profile_url",
)
OPTIONAL_FIELDS = ("phone", "website", "email")
KNOWN_FIELDS = {
    "id", "business_name", "name", "source", "lat", "lng", "coordinates",
    "rating", "review_count", "extras", *STRING_FIELDS, *OPTIONAL_FIELDS,
}


def read_listings(path: str | Path) -> list[Listing]:
    """Read listings from CSV or JSONL.

    Rows without a business name are skipped; rows without an id get their
    row index. Columns that are not Listing fields are kept in ``extras``.
    """
    path = Path(path)

    if path.suffix == ".jsonl":
        rows = _read_jsonl(path)
    else:
        rows = _read_csv(path)

    listings: list[Listing] = []
    for i, row in rows:
        listing = listing_from_dict(row, default_id=str(i), where=f"{path}:{i + 1}")
        if listing is not None:
            listings.append(listing)
    return listings


def _read_csv(path: Path) -> list[tuple[int, dict[str, Any]]]:
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        return list(enumerate(reader))


def _read_jsonl(path: Path) -> list[tuple[int, dict[str, Any]]]:
    rows: list[tuple[int, dict[str, Any]]] = []
    with path.open(encoding="utf-8") as f:
        for i, line in enumerate(f):
            if not line.strip():
                continue
            try:
                rows.append((i, json.loads(line)))
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{i + 1}: invalid JSON: {e}") from e
    return rows


def listing_from_dict(
    row: dict[str, Any],
    default_id: str = "0",
    where: str = "listing",
) -> Listing | None:
    """Build a Listing from a flat record; None if it has no name."""
    name = str(row.get("business_name") or row.get("name") or "").strip()
    if not name:
        return None

    source = str(row.get("source") or "").strip()
    if not source:
        raise ValueError(f"{where}: missing source")

    try:
        rating = float(row.get("rating") or 0)
        review_count = int(float(row.get("review_count") or 0))
        coordinates = _coordinates(row)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{where}: {e}") from e

    raw_extras = row.get("extras")
    extras: dict[str, Any] = dict(raw_extras) if isinstance(raw_extras, dict) else {}
    for key, value in row.items():
        if isinstance(key, str) and key not in KNOWN_FIELDS and value not in (None, ""):
            extras[key] = value

    raw_id = row.get("id")
    return Listing(
        id=str(raw_id).strip() if raw_id not in (None, "") else default_id,
        business_name=name,
        source=source,
        coordinates=coordinates,
        rating=rating,
        review_count=max(0, review_count),
        extras=extras,
        **{f: str(row.get(f) or "").strip() for f in STRING_FIELDS},
        **{f: (str(row[f]).strip() or None) if row.get(f) else None for f in OPTIONAL_FIELDS},
    )


def _coordinates(row: dict[str, Any]) -> Coordinates | None:
    coords = row.get("coordinates")
    if isinstance(coords, dict):
        lat, lng = coords.get("lat"), coords.get("lng")
    else:
        lat, lng = row.get("lat"), row.get("lng")
    if lat in (None, "") or lng in (None, ""):
        return None
    return Coordinates(lat=float(lat), lng=float(lng))


def write_unified(records: list[UnifiedBusiness], path: str | Path) -> None:
    """Write unified businesses to JSONL (full records) or CSV (summary)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix == ".jsonl":
        _write_jsonl(records, path)
    else:
        _write_csv(records, path)


CSV_FIELDS = [
    "id", "business_name", "aliases", "phone", "website", "email", "address",
    "city", "aggregated_rating", "total_reviews_all_platforms", "platform_count",
    "platforms_found", "platform_gaps", "conflicts", "data_quality",
    "match_confidence", "source_ids",
]


def _write_csv(records: list[UnifiedBusiness], path: Path) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for r in records:
            writer.writerow({
                "id": r.id,
                "business_name": r.business_name,
                "aliases": "|".join(r.aliases),
                "phone": r.phone or "",
                "website": r.website or "",
                "email": r.email or "",
                "address": r.address,
                "city": r.city,
                "aggregated_rating": f"{r.aggregated_rating:.1f}",
                "total_reviews_all_platforms": r.total_reviews_all_platforms,
                "platform_count": r.platform_count,
                "platforms_found": "|".join(r.platforms_found),
                "platform_gaps": "|".join(r.platform_gaps),
                "conflicts": "|".join(c.field for c in r.conflicts),
                "data_quality": r.data_quality,
                "match_confidence": r.match_confidence,
                "source_ids": "|".join(r.source_ids),
            })


def _write_jsonl(records: list[UnifiedBusiness], path: Path) -> None:
    with path.open("w", encoding="utf-8") as f:
        for r in records:
            f.write(json.dumps(r.to_dict()) + "\n")
