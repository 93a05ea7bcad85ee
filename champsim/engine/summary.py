"""
Turn run accumulators into per-player probabilities.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import polars as pl

from champsim.schema import Competitor
from .placement import Accumulators


@dataclass
class CompetitorResult:
    """Simulated outlook for one player."""
    name: str
    seed: int
    rating: float
    rd: float
    advancement: List[float] = field(default_factory=list)  # P(win a round r match), r = 1..rounds-1
    gold: float = 0.0
    silver: float = 0.0
    bronze: float = 0.0
    average_placement: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "seed": self.seed,
            "rating": self.rating,
            "rd": self.rd,
            "advancement": list(self.advancement),
            "gold": self.gold,
            "silver": self.silver,
            "bronze": self.bronze,
            "average_placement": self.average_placement,
        }


def summarize(
    roster: Sequence[Competitor],
    acc: Accumulators,
    trials: int,
) -> List[CompetitorResult]:
    """
    Divide every accumulator by the trial count.

    The championship round is not reported as advancement; it is the gold
    column.
    """
    if trials < 1:
        raise ValueError(f"trials must be >= 1, got {trials}")

    advancement = acc.round_wins[:, : acc.rounds - 1] / trials
    gold = acc.gold / trials
    silver = acc.silver / trials
    bronze = acc.bronze / trials
    placement = acc.placement_sum / trials

    results = []
    for c in sorted(roster, key=lambda c: c.seed):
        i = c.seed - 1
        results.append(CompetitorResult(
            name=c.name,
            seed=c.seed,
            rating=c.rating,
            rd=c.rd,
            advancement=[float(x) for x in advancement[i]],
            gold=float(gold[i]),
            silver=float(silver[i]),
            bronze=float(bronze[i]),
            average_placement=float(placement[i]),
        ))
    return results


def results_to_frame(results: Sequence[CompetitorResult]) -> pl.DataFrame:
    """
    Results as a DataFrame with the classic column layout:
    name, seed, rating, rd, round 1..round R-1, gold, silver, bronze,
    average placement.
    """
    rounds = len(results[0].advancement) if results else 0
    columns: Dict[str, list] = {
        "name": [r.name for r in results],
        "seed": [r.seed for r in results],
        "rating": [r.rating for r in results],
        "rd": [r.rd for r in results],
    }
    for k in range(rounds):
        columns[f"round {k + 1}"] = [r.advancement[k] for r in results]
    columns["gold"] = [r.gold for r in results]
    columns["silver"] = [r.silver for r in results]
    columns["bronze"] = [r.bronze for r in results]
    columns["average placement"] = [r.average_placement for r in results]

    return pl.DataFrame(columns, schema_overrides={
        "seed": pl.Int64,
        "rating": pl.Float64,
        "rd": pl.Float64,
    })
