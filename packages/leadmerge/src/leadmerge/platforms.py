"""Source platform registry: reliability weights and baseline tier."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import structlog

log = structlog.get_logger()

DEFAULT_RELIABILITY = 0.5

PLATFORMS_ENV = "LEADMERGE_PLATFORMS"


@dataclass(frozen=True)
class Platform:
    id: str
    name: str
    reliability: float
    tier: str = "premium"  # "free" platforms form the baseline set
    kind: str = "directory"


DEFAULT_PLATFORMS: tuple[Platform, ...] = (
    Platform("google_maps", "Google Maps", 0.95, tier="free", kind="maps"),
    Platform("yelp", "Yelp", 0.90, tier="free", kind="reviews"),
    Platform("facebook", "Facebook Pages", 0.80, tier="free", kind="social"),
    Platform("yellow_pages", "Yellow Pages", 0.85, tier="free", kind="directory"),
    Platform("linkedin", "LinkedIn", 0.90, kind="professional"),
    Platform("instagram", "Instagram Business", 0.70, kind="social"),
    Platform("tripadvisor", "TripAdvisor", 0.85, kind="reviews"),
    Platform("indeed", "Indeed Companies", 0.75, kind="professional"),
    Platform("bbb", "Better Business Bureau", 0.90, kind="directory"),
    Platform("glassdoor", "Glassdoor", 0.80, kind="professional"),
    Platform("trustpilot", "Trustpilot", 0.85, kind="reviews"),
)


class PlatformRegistry:
    """Lookup of platform metadata keyed by platform id.

    Unknown ids never fail: they get DEFAULT_RELIABILITY, are not part of
    the baseline and are reported once in the log.
    """

    def __init__(self, platforms: list[Platform] | tuple[Platform, ...] = DEFAULT_PLATFORMS) -> None:
        self._platforms: dict[str, Platform] = {p.id: p for p in platforms}
        self._warned: set[str] = set()

    def __contains__(self, platform_id: str) -> bool:
        return platform_id in self._platforms

    def __len__(self) -> int:
        return len(self._platforms)

    def get(self, platform_id: str) -> Platform | None:
        return self._platforms.get(platform_id)

    def all(self) -> list[Platform]:
        return list(self._platforms.values())

    def reliability(self, platform_id: str) -> float:
        platform = self._platforms.get(platform_id)
        if platform is None:
            if platform_id not in self._warned:
                self._warned.add(platform_id)
                log.warning(
                    "unknown_platform",
                    platform=platform_id,
                    reliability=DEFAULT_RELIABILITY,
                )
            return DEFAULT_RELIABILITY
        return platform.reliability

    def baseline(self) -> list[str]:
        """Platform ids of the free tier, in registry order."""
        return [p.id for p in self._platforms.values() if p.tier == "free"]

    def of_kind(self, kind: str) -> set[str]:
        return {p.id for p in self._platforms.values() if p.kind == kind}

    @classmethod
    def from_file(cls, path: str | Path, extend_defaults: bool = True) -> PlatformRegistry:
        """Load a registry from a JSON list of platform objects.

        With extend_defaults, entries override or add to DEFAULT_PLATFORMS.
        """
        path = Path(path)
        data = json.loads(path.read_text())
        loaded = [_platform_from_dict(item) for item in data]

        platforms = {p.id: p for p in DEFAULT_PLATFORMS} if extend_defaults else {}
        for p in loaded:
            platforms[p.id] = p
        log.info("platforms_loaded", path=str(path), count=len(loaded))
        return cls(list(platforms.values()))

    @classmethod
    def from_env(cls) -> PlatformRegistry:
        """Registry from $LEADMERGE_PLATFORMS if set, else the defaults."""
        path = os.environ.get(PLATFORMS_ENV)
        if path:
            return cls.from_file(path)
        return cls()


def _platform_from_dict(item: dict) -> Platform:
    try:
        platform_id = str(item["id"])
        reliability = float(item["reliability"])
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"invalid platform entry {item!r}: {e}") from e
    if not 0.0 <= reliability <= 1.0:
        raise ValueError(f"reliability for {platform_id!r} must be in [0, 1], got {reliability}")
    return Platform(
        id=platform_id,
        name=str(item.get("name", platform_id)),
        reliability=reliability,
        tier=str(item.get("tier", "premium")),
        kind=str(item.get("kind", "directory")),
    )
