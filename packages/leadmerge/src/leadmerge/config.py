"""Configuration for the leadmerge record linkage engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass
class MatchWeights:
    name: float = 0.4  # applied to the 0..100 fuzzy score, max 40
    address_exact: int = 30
    address_fuzzy: int = 20
    address_fuzzy_threshold: int = 80
    phone: int = 15
    proximity_near: int = 10
    proximity_far: int = 5
    website: int = 5


@dataclass
class ProximityConfig:
    near_km: float = 0.1
    far_km: float = 0.5


@dataclass
class Thresholds:
    match: int = 80
    review: int = 60


@dataclass
class NormalizationConfig:
    # National 10-digit numbering; longer international numbers are truncated.
    phone_digits: int = 10


@dataclass
class MergeConfig:
    conflict_fields: tuple[str, ...] = ("phone", "rating")
    auto_resolve_conflicts: bool = False
    rating_spread: float = 0.5
    rating_spread_warning: float = 1.0
    gap_warning_count: int = 2
    quality_base: int = 50
    quality_per_listing: int = 10
    quality_listing_cap: int = 30
    quality_conflict_penalty: int = 5
    quality_contact_bonus: int = 5


Strategy = Literal["seed", "transitive"]


@dataclass
class DedupeConfig:
    strategy: Strategy = "seed"
    workers: int = 1


@dataclass
class MergeEngineConfig:
    weights: MatchWeights = field(default_factory=MatchWeights)
    proximity: ProximityConfig = field(default_factory=ProximityConfig)
    thresholds: Thresholds = field(default_factory=Thresholds)
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    dedupe: DedupeConfig = field(default_factory=DedupeConfig)
