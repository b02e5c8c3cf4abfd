"""CLI tool for cross-platform listing deduplication."""

import argparse
from itertools import combinations
from pathlib import Path

import pandas as pd
import structlog

from leadmerge.config import MergeEngineConfig
from leadmerge.dedupe import Deduplicator
from leadmerge.enrichment import SyntheticEnricher
from leadmerge.evaluation import evaluate, load_labeled_pairs
from leadmerge.io import read_listings, write_unified
from leadmerge.logging import configure_logging
from leadmerge.platforms import PlatformRegistry
from leadmerge.reviews import ReviewStore
from leadmerge.scoring import calculate_match_score


def _build_config(args: argparse.Namespace) -> MergeEngineConfig:
    """Build a MergeEngineConfig from CLI args."""
    config = MergeEngineConfig()
    if getattr(args, "strategy", None):
        config.dedupe.strategy = args.strategy
    if getattr(args, "workers", None):
        config.dedupe.workers = args.workers
    extra_fields = getattr(args, "conflict_field", None) or []
    for name in extra_fields:
        if name not in config.merge.conflict_fields:
            config.merge.conflict_fields = (*config.merge.conflict_fields, name)
    return config


def _build_registry(args: argparse.Namespace) -> PlatformRegistry:
    if args.platforms:
        return PlatformRegistry.from_file(args.platforms)
    return PlatformRegistry.from_env()


def cmd_dedupe(args: argparse.Namespace) -> None:
    log = structlog.get_logger()
    listings = read_listings(args.input)
    log.info("listings_loaded", path=args.input, count=len(listings))

    confirmed: set = set()
    rejected: set = set()
    if args.reviews:
        store = ReviewStore(Path(args.reviews))
        store.load()
        confirmed = store.confirmed_pairs()
        rejected = store.rejected_pairs()

    deduplicator = Deduplicator(
        config=_build_config(args),
        registry=_build_registry(args),
        enricher=SyntheticEnricher(seed=args.seed) if args.synthetic else None,
        confirmed_pairs=confirmed,
        rejected_pairs=rejected,
    )
    result = deduplicator.run(listings)
    write_unified(result.unified, args.output)

    s = result.stats
    print("\n--- Statistics ---")
    print(f"Listings: {s.listings}")
    print(f"Comparisons: {s.comparisons}")
    print(f"Matched: {s.matched}")
    print(f"Unique businesses: {s.unique}")
    print(f"Conflicts: {s.conflicts}")
    print(f"Pairs needing review: {s.review_pairs}")
    if s.skipped_duplicate_ids:
        print(f"Skipped duplicate ids: {s.skipped_duplicate_ids}")
    print(f"\nSaved to: {args.output}")


def cmd_pairs(args: argparse.Namespace) -> None:
    """Tabulate pairwise scores at or above --min-score."""
    config = _build_config(args)
    listings = read_listings(args.input)

    rows = []
    for a, b in combinations(listings, 2):
        r = calculate_match_score(a, b, config)
        if r.score < args.min_score:
            continue
        rows.append({
            "a_id": a.id,
            "a_name": a.business_name,
            "a_source": a.source,
            "b_id": b.id,
            "b_name": b.business_name,
            "b_source": b.source,
            "score": r.score,
            "decision": r.decision,
            "name": r.breakdown.name,
            "address": r.breakdown.address,
            "phone": r.breakdown.phone,
            "proximity": r.breakdown.proximity,
            "website": r.breakdown.website,
        })

    df = pd.DataFrame(rows)
    if df.empty:
        print("=== No pairs at or above the minimum score ===")
        return

    df = df.sort_values("score", ascending=False, kind="stable")
    counts = df["decision"].value_counts()
    print(f"=== Pairs ({len(df)}) ===")
    print(df[["a_name", "a_source", "b_name", "b_source", "score", "decision"]].to_string(index=False))
    print(f"\nResults: MATCH={counts.get('MATCH', 0)}, REVIEW={counts.get('REVIEW', 0)}, NO_MATCH={counts.get('NO_MATCH', 0)}")

    if args.output:
        if args.output.endswith(".xlsx"):
            df.to_excel(args.output, index=False)
        else:
            df.to_csv(args.output, index=False)
        print(f"\nSaved to: {args.output}")


def cmd_evaluate(args: argparse.Namespace) -> None:
    listings = read_listings(args.input)
    pairs = load_labeled_pairs(args.labels)
    metrics, _ = evaluate(pairs, listings, _build_config(args))

    print("--- Evaluation ---")
    print(f"Pairs: {metrics.total_pairs} (missing listings: {metrics.missing_listings})")
    print(f"TP={metrics.true_positives} FP={metrics.false_positives} "
          f"FN={metrics.false_negatives} TN={metrics.true_negatives}")
    print(f"Precision: {metrics.precision:.3f}")
    print(f"Recall: {metrics.recall:.3f}")
    print(f"F1: {metrics.f1:.3f}")
    print(f"Review band: {metrics.review_count}")
    if metrics.fp_factors:
        print("False positive factors: " + ", ".join(
            f"{k}={v}" for k, v in sorted(metrics.fp_factors.items())
        ))


def cmd_serve(args: argparse.Namespace) -> None:
    """Launch the review server."""
    import uvicorn

    from leadmerge.server import create_app

    log = structlog.get_logger()
    listings = read_listings(args.input) if args.input else []
    log.info("serve_start", listings=len(listings), reviews=args.reviews, port=args.port)

    app = create_app(
        listings=listings,
        reviews_path=args.reviews,
        config=_build_config(args),
        registry=_build_registry(args),
    )
    print(f"Starting review server at http://localhost:{args.port}")
    uvicorn.run(app, host="0.0.0.0", port=args.port, log_level="warning")


def main(argv: list[str] | None = None) -> None:
    # Parent parser with global options (inherited by all subcommands)
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level (default: INFO)",
    )
    parent_parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit JSON log lines instead of console output",
    )
    parent_parser.add_argument(
        "--platforms",
        help="JSON platform registry overriding the built-in one",
    )
    parent_parser.add_argument(
        "--conflict-field",
        action="append",
        metavar="FIELD",
        help="Also check this field for conflicts (repeatable, e.g. --conflict-field website)",
    )

    parser = argparse.ArgumentParser(
        description="Cross-platform listing deduplication CLI",
        parents=[parent_parser],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # dedupe subcommand
    dedupe_parser = subparsers.add_parser("dedupe", parents=[parent_parser], help="Cluster and merge listings")
    dedupe_parser.add_argument("--input", required=True, help="Listings file (.csv or .jsonl)")
    dedupe_parser.add_argument("--output", default="localdata/unified.jsonl", help="Output file (.jsonl or .csv)")
    dedupe_parser.add_argument("--strategy", choices=["seed", "transitive"], default="seed", help="Clustering strategy")
    dedupe_parser.add_argument("--workers", type=int, default=1, help="Threads for pairwise scoring")
    dedupe_parser.add_argument("--reviews", help="Review decisions file to honor")
    dedupe_parser.add_argument("--synthetic", action="store_true", help="Fill unreported platform metrics with demo placeholders")
    dedupe_parser.add_argument("--seed", type=int, default=0, help="Seed for --synthetic")
    dedupe_parser.set_defaults(func=cmd_dedupe)

    # pairs subcommand
    pairs_parser = subparsers.add_parser("pairs", parents=[parent_parser], help="Show pairwise match scores")
    pairs_parser.add_argument("--input", required=True, help="Listings file (.csv or .jsonl)")
    pairs_parser.add_argument("--output", help="Output file (.csv or .xlsx)")
    pairs_parser.add_argument("--min-score", type=int, default=60, help="Lowest score to include (default: 60)")
    pairs_parser.set_defaults(func=cmd_pairs)

    # evaluate subcommand
    eval_parser = subparsers.add_parser("evaluate", parents=[parent_parser], help="Evaluate against labeled pairs")
    eval_parser.add_argument("--input", required=True, help="Listings file (.csv or .jsonl)")
    eval_parser.add_argument("--labels", required=True, help="Labeled pairs CSV (a_id,b_id,label)")
    eval_parser.set_defaults(func=cmd_evaluate)

    # serve subcommand
    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Launch the review server")
    serve_parser.add_argument("--input", help="Listings file to load")
    serve_parser.add_argument("--reviews", default="localdata/reviews.json", help="Review decisions file")
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port (default: 8765)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_output=args.log_json)
    args.func(args)


if __name__ == "__main__":
    main()
