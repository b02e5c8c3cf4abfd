"""Evaluation and tuning utilities for pairwise listing matching."""

from __future__ import annotations

import csv
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from leadmerge.config import MergeEngineConfig
from leadmerge.scoring import calculate_match_score
from leadmerge.types import Listing, MatchResult


@dataclass
class EvalMetrics:
    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
    total_pairs: int = 0
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    true_negatives: int = 0
    review_count: int = 0
    missing_listings: int = 0
    fp_factors: dict[str, int] = field(default_factory=dict)


@dataclass
class LabeledPair:
    a_id: str
    b_id: str
    label: int  # 1 = same business, 0 = different


def load_labeled_pairs(path: str | Path) -> list[LabeledPair]:
    """Load labeled pairs from CSV (a_id, b_id, label)."""
    path = Path(path)
    pairs: list[LabeledPair] = []
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            pairs.append(LabeledPair(
                a_id=row["a_id"].strip(),
                b_id=row["b_id"].strip(),
                label=int(row["label"]),
            ))
    return pairs


def evaluate(
    pairs: list[LabeledPair],
    listings: list[Listing],
    config: MergeEngineConfig | None = None,
) -> tuple[EvalMetrics, list[MatchResult]]:
    """Score each labeled pair and compare the match decision with its label.

    Pairs naming an unknown listing id are counted in ``missing_listings``
    and otherwise ignored. ``fp_factors`` counts which score factors
    contributed to false positives.
    """
    config = config or MergeEngineConfig()
    by_id = {listing.id: listing for listing in listings}
    metrics = EvalMetrics()
    fp_factors: Counter[str] = Counter()
    results: list[MatchResult] = []

    for pair in pairs:
        a = by_id.get(pair.a_id)
        b = by_id.get(pair.b_id)
        if a is None or b is None:
            metrics.missing_listings += 1
            continue

        result = calculate_match_score(a, b, config)
        results.append(result)
        metrics.total_pairs += 1

        predicted_match = result.is_match
        actual_match = pair.label == 1

        if result.needs_review:
            metrics.review_count += 1

        if predicted_match and actual_match:
            metrics.true_positives += 1
        elif predicted_match and not actual_match:
            metrics.false_positives += 1
            for factor, points in vars(result.breakdown).items():
                if points > 0:
                    fp_factors[factor] += 1
        elif not predicted_match and actual_match:
            metrics.false_negatives += 1
        else:
            metrics.true_negatives += 1

    if metrics.true_positives + metrics.false_positives > 0:
        metrics.precision = metrics.true_positives / (
            metrics.true_positives + metrics.false_positives
        )
    if metrics.true_positives + metrics.false_negatives > 0:
        metrics.recall = metrics.true_positives / (
            metrics.true_positives + metrics.false_negatives
        )
    if metrics.precision + metrics.recall > 0:
        metrics.f1 = (
            2 * metrics.precision * metrics.recall
            / (metrics.precision + metrics.recall)
        )

    metrics.fp_factors = dict(fp_factors)
    return metrics, results
