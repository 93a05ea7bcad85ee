"""
Roster schema for the championship simulator.

Defines the competitor record and the invariants every roster must
satisfy before a simulation is allowed to start.
"""
import polars as pl
from typing import Dict, List, Sequence
from dataclasses import dataclass, asdict
import logging

from champsim.exceptions import ValidationError

logger = logging.getLogger(__name__)


# Field sizes with a supported bracket shape
SUPPORTED_FIELD_SIZES = (16, 24)

# Column layout of field TSV files
FIELD_SCHEMA = {
    "name": pl.String,
    "seed": pl.Int64,
    "rating": pl.Float64,
    "rd": pl.Float64,
}


@dataclass(frozen=True)
class Competitor:
    """A seeded player with a Glicko rating and rating deviation."""
    seed: int                    # 1-based bracket entry rank
    name: str
    rating: float
    rd: float                    # rating deviation, >= 0

    def to_dict(self) -> Dict:
        return asdict(self)


def validate_roster(roster: Sequence[Competitor]) -> List[Competitor]:
    """
    Check roster invariants and return it sorted by seed.

    Raises:
        ValidationError: wrong field size, seeds not dense 1..N,
            or a negative rating deviation
    """
    size = len(roster)
    if size not in SUPPORTED_FIELD_SIZES:
        raise ValidationError(
            f"Expected a field of 16 or 24 players, not: {size}"
        )

    seeds = sorted(c.seed for c in roster)
    if seeds != list(range(1, size + 1)):
        duplicates = sorted({s for s in seeds if seeds.count(s) > 1})
        missing = sorted(set(range(1, size + 1)) - set(seeds))
        raise ValidationError(
            f"Seeds must be unique and cover 1..{size} "
            f"(duplicates: {duplicates}, missing: {missing})"
        )

    for c in roster:
        if c.rd < 0:
            raise ValidationError(f"Negative rating deviation for {c.name}: {c.rd}")

    return sorted(roster, key=lambda c: c.seed)


def roster_to_frame(roster: Sequence[Competitor]) -> pl.DataFrame:
    """Convert a roster to a DataFrame in field-file column order."""
    return pl.DataFrame(
        [c.to_dict() for c in roster],
        schema=FIELD_SCHEMA,
    ).select(list(FIELD_SCHEMA))


def roster_from_frame(df: pl.DataFrame) -> List[Competitor]:
    """Build competitors from a DataFrame with name/seed/rating/rd columns."""
    missing = [c for c in FIELD_SCHEMA if c not in df.columns]
    if missing:
        raise ValidationError(f"Field is missing columns: {missing}")

    df = df.select(
        pl.col("name").cast(pl.String).str.strip_chars(),
        pl.col("seed").cast(pl.Int64),
        pl.col("rating").cast(pl.Float64),
        pl.col("rd").cast(pl.Float64),
    )
    if df.null_count().sum_horizontal().item() > 0:
        raise ValidationError("Field contains empty name, seed, rating or rd values")

    return [
        Competitor(seed=row["seed"], name=row["name"], rating=row["rating"], rd=row["rd"])
        for row in df.sort("seed").iter_rows(named=True)
    ]
