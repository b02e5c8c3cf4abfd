"""Reviewer decisions on pairs that scored in the review band."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal
import json

import structlog

from leadmerge.dedupe import PairKey, pair_key

ReviewVerdict = Literal["same", "different"]

VERDICTS: tuple[str, ...] = ("same", "different")


@dataclass
class ReviewDecision:
    """A reviewer's call on whether two listings are the same business."""

    a_id: str
    b_id: str
    decision: ReviewVerdict
    created_at: str  # ISO timestamp
    notes: str = ""


@dataclass
class ReviewStore:
    """Persistent storage for review decisions."""

    path: Path
    decisions: list[ReviewDecision] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.log = structlog.get_logger()
        if isinstance(self.path, str):
            self.path = Path(self.path)

    def load(self) -> None:
        """Load decisions from disk."""
        if not self.path.exists():
            self.log.info("reviews_file_not_found", path=str(self.path))
            self.decisions = []
            return

        try:
            with open(self.path) as f:
                data = json.load(f)

            self.decisions = [
                ReviewDecision(
                    a_id=str(d["a_id"]),
                    b_id=str(d["b_id"]),
                    decision=d["decision"],
                    created_at=d["created_at"],
                    notes=d.get("notes", ""),
                )
                for d in data.get("decisions", [])
                if d.get("decision") in VERDICTS
            ]
            self.log.info("reviews_loaded", count=len(self.decisions))
        except (json.JSONDecodeError, KeyError, AttributeError) as e:
            self.log.error("reviews_load_error", error=str(e))
            self.decisions = []

    def save(self) -> None:
        """Save decisions to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "decisions": [
                {
                    "a_id": d.a_id,
                    "b_id": d.b_id,
                    "decision": d.decision,
                    "created_at": d.created_at,
                    "notes": d.notes,
                }
                for d in self.decisions
            ]
        }

        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

        self.log.info("reviews_saved", count=len(self.decisions))

    def add_decision(
        self,
        a_id: str,
        b_id: str,
        decision: ReviewVerdict,
        notes: str = "",
    ) -> ReviewDecision:
        """Record a decision, replacing any earlier one for the same pair."""
        if decision not in VERDICTS:
            raise ValueError(f"decision must be one of {VERDICTS}, got {decision!r}")
        if a_id == b_id:
            raise ValueError("a review needs two different listings")

        key = pair_key(a_id, b_id)
        self.decisions = [d for d in self.decisions if pair_key(d.a_id, d.b_id) != key]
        review = ReviewDecision(
            a_id=a_id,
            b_id=b_id,
            decision=decision,
            created_at=datetime.now(timezone.utc).isoformat(),
            notes=notes,
        )
        self.decisions.append(review)
        self.save()
        self.log.info("review_added", a_id=a_id, b_id=b_id, decision=decision)
        return review

    def remove_decision(self, index: int) -> bool:
        """Remove a decision by index."""
        if 0 <= index < len(self.decisions):
            removed = self.decisions.pop(index)
            self.save()
            self.log.info(
                "review_removed",
                index=index,
                a_id=removed.a_id,
                b_id=removed.b_id,
            )
            return True
        return False

    def get_all(self) -> list[ReviewDecision]:
        """Get all decisions."""
        return self.decisions

    def confirmed_pairs(self) -> set[PairKey]:
        return {pair_key(d.a_id, d.b_id) for d in self.decisions if d.decision == "same"}

    def rejected_pairs(self) -> set[PairKey]:
        return {pair_key(d.a_id, d.b_id) for d in self.decisions if d.decision == "different"}
