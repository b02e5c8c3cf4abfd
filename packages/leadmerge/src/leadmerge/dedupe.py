"""Clustering listings into same-business groups and merging each group."""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Executor, ThreadPoolExecutor

import structlog

from leadmerge.config import MergeEngineConfig
from leadmerge.enrichment import PlatformEnricher
from leadmerge.merger import Clock, merge_listings
from leadmerge.platforms import PlatformRegistry
from leadmerge.scoring import calculate_match_score
from leadmerge.similarity import round_half_up
from leadmerge.types import DedupeResult, DedupeStats, Listing, MatchResult, UnifiedBusiness

log = structlog.get_logger()

PairKey = frozenset[str]


def pair_key(a_id: str, b_id: str) -> PairKey:
    return frozenset((a_id, b_id))


class UnionFind:
    """Disjoint sets over listing indices, with path compression."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, x: int) -> int:
        if self.parent[x] != x:
            self.parent[x] = self.find(self.parent[x])
        return self.parent[x]

    def union(self, x: int, y: int) -> bool:
        root_x = self.find(x)
        root_y = self.find(y)
        if root_x == root_y:
            return False
        # Lower index stays root so groups are keyed by first appearance
        if root_x < root_y:
            self.parent[root_y] = root_x
        else:
            self.parent[root_x] = root_y
        return True


class Deduplicator:
    """Find listings of the same business and merge them.

    The default ``seed`` strategy is a greedy single pass: each unclaimed
    listing seeds a cluster and claims every later unclaimed listing that
    matches the seed itself. Matching is not transitive, so two listings
    that match each other but not the seed stay apart. The ``transitive``
    strategy instead unions every matching pair.

    Reviewer decisions override the score: confirmed pairs always match,
    rejected pairs never do.
    """

    def __init__(
        self,
        config: MergeEngineConfig | None = None,
        registry: PlatformRegistry | None = None,
        enricher: PlatformEnricher | None = None,
        clock: Clock | None = None,
        confirmed_pairs: Iterable[PairKey] = (),
        rejected_pairs: Iterable[PairKey] = (),
    ) -> None:
        self.config = config or MergeEngineConfig()
        self.registry = registry or PlatformRegistry()
        self.enricher = enricher
        self.clock = clock
        self.confirmed_pairs = set(confirmed_pairs)
        self.rejected_pairs = set(rejected_pairs)
        self.stats = DedupeStats()

    def run(self, listings: list[Listing]) -> DedupeResult:
        """Cluster and merge ``listings``; stats are reset on every run."""
        self.stats = DedupeStats(listings=len(listings))
        strategy = self.config.dedupe.strategy
        workers = max(1, self.config.dedupe.workers)
        log.info("dedupe_start", listings=len(listings), strategy=strategy, workers=workers)

        pool: Executor | None = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            if strategy == "seed":
                clusters, review_pairs = self._seed_clusters(listings, pool)
            elif strategy == "transitive":
                clusters, review_pairs = self._transitive_clusters(listings, pool)
            else:
                raise ValueError(f"unknown dedupe strategy: {strategy!r}")
        finally:
            if pool is not None:
                pool.shutdown()

        unified: list[UnifiedBusiness] = []
        for cluster, scores in clusters:
            confidence = int(round_half_up(sum(scores) / len(scores))) if scores else 100
            merged = merge_listings(
                cluster,
                match_confidence=confidence,
                config=self.config,
                registry=self.registry,
                enricher=self.enricher,
                clock=self.clock,
            )
            self.stats.matched += len(cluster) - 1
            self.stats.conflicts += len(merged.conflicts)
            unified.append(merged)

        self.stats.unique = len(unified)
        self.stats.review_pairs = len(review_pairs)
        log.info(
            "dedupe_done",
            matched=self.stats.matched,
            unique=self.stats.unique,
            conflicts=self.stats.conflicts,
            comparisons=self.stats.comparisons,
            review_pairs=self.stats.review_pairs,
        )
        return DedupeResult(unified=unified, stats=self.stats, review_pairs=review_pairs)

    def accepts(self, result: MatchResult) -> bool:
        """Whether a scored pair belongs in one cluster."""
        key = pair_key(result.a_id, result.b_id)
        if key in self.rejected_pairs:
            return False
        if key in self.confirmed_pairs:
            return True
        return result.is_match

    def is_decided(self, result: MatchResult) -> bool:
        """Whether a reviewer already ruled on this pair."""
        key = pair_key(result.a_id, result.b_id)
        return key in self.rejected_pairs or key in self.confirmed_pairs

    def _score_against(
        self, seed: Listing, candidates: list[Listing], pool: Executor | None
    ) -> list[MatchResult]:
        if pool is None or len(candidates) < 2:
            return [calculate_match_score(seed, c, self.config) for c in candidates]
        return list(pool.map(lambda c: calculate_match_score(seed, c, self.config), candidates))

    def _seed_clusters(
        self, listings: list[Listing], pool: Executor | None
    ) -> tuple[list[tuple[list[Listing], list[int]]], list[MatchResult]]:
        processed: set[str] = set()
        clusters: list[tuple[list[Listing], list[int]]] = []
        review_pairs: list[MatchResult] = []

        for i, seed in enumerate(listings):
            if seed.id in processed:
                continue
            processed.add(seed.id)
            cluster = [seed]
            scores: list[int] = []

            candidates = [c for c in listings[i + 1:] if c.id not in processed]
            # Scores are independent; claiming below stays in input order.
            results = self._score_against(seed, candidates, pool)
            for candidate, result in zip(candidates, results):
                if candidate.id in processed:
                    continue
                self.stats.comparisons += 1
                if self.accepts(result):
                    cluster.append(candidate)
                    scores.append(result.score)
                    processed.add(candidate.id)
                elif result.needs_review and not self.is_decided(result):
                    review_pairs.append(result)

            log.debug("cluster_formed", seed_id=seed.id, size=len(cluster))
            clusters.append((cluster, scores))

        self._count_duplicate_ids(listings)
        return clusters, review_pairs

    def _transitive_clusters(
        self, listings: list[Listing], pool: Executor | None
    ) -> tuple[list[tuple[list[Listing], list[int]]], list[MatchResult]]:
        # Later listings repeating an id are dropped, as in the seed strategy
        seen: set[str] = set()
        unique: list[Listing] = []
        for listing in listings:
            if listing.id not in seen:
                seen.add(listing.id)
                unique.append(listing)
        self._count_duplicate_ids(listings)

        pairs = [(i, j) for i in range(len(unique)) for j in range(i + 1, len(unique))]

        def score(pair: tuple[int, int]) -> MatchResult:
            return calculate_match_score(unique[pair[0]], unique[pair[1]], self.config)

        results = list(pool.map(score, pairs)) if pool is not None else [score(p) for p in pairs]
        self.stats.comparisons += len(results)

        uf = UnionFind(len(unique))
        # Listing ids per component root, for the rejected-pair guard
        component_ids: dict[int, set[str]] = {idx: {listing.id} for idx, listing in enumerate(unique)}

        def can_union(i: int, j: int) -> bool:
            root_i, root_j = uf.find(i), uf.find(j)
            if root_i == root_j or not self.rejected_pairs:
                return True
            return not any(
                pair_key(a, b) in self.rejected_pairs
                for a in component_ids[root_i]
                for b in component_ids[root_j]
            )

        accepted: list[tuple[int, int, int]] = []
        reviews: list[tuple[int, int, MatchResult]] = []
        for (i, j), result in zip(pairs, results):
            if self.accepts(result):
                if not can_union(i, j):
                    log.debug("union_blocked", a_id=result.a_id, b_id=result.b_id)
                    continue
                root_i, root_j = uf.find(i), uf.find(j)
                if uf.union(i, j):
                    root = uf.find(i)
                    component_ids[root] = component_ids.pop(root_i) | component_ids.pop(root_j)
                accepted.append((i, j, result.score))
            elif result.needs_review and not self.is_decided(result):
                reviews.append((i, j, result))

        members: dict[int, list[Listing]] = {}
        for idx, listing in enumerate(unique):
            members.setdefault(uf.find(idx), []).append(listing)
        edge_scores: dict[int, list[int]] = {}
        for i, _, s in accepted:
            edge_scores.setdefault(uf.find(i), []).append(s)

        clusters = [(members[root], edge_scores.get(root, [])) for root in members]
        review_pairs = [r for i, j, r in reviews if uf.find(i) != uf.find(j)]
        return clusters, review_pairs

    def _count_duplicate_ids(self, listings: list[Listing]) -> None:
        ids = [listing.id for listing in listings]
        duplicates = len(ids) - len(set(ids))
        if duplicates:
            self.stats.skipped_duplicate_ids = duplicates
            log.warning("duplicate_listing_ids", skipped=duplicates)


def deduplicate(
    listings: list[Listing],
    config: MergeEngineConfig | None = None,
    registry: PlatformRegistry | None = None,
    enricher: PlatformEnricher | None = None,
    clock: Clock | None = None,
) -> tuple[list[UnifiedBusiness], DedupeStats]:
    """Cluster and merge listings, returning (unified records, stats)."""
    result = Deduplicator(config, registry, enricher, clock).run(listings)
    return result.unified, result.stats
