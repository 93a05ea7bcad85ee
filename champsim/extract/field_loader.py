"""
Field file loading using Polars.

A field file is tab separated with a header row:

    name    seed    rating    rd
"""
import polars as pl
from pathlib import Path
from typing import List, Sequence
import logging

from champsim.schema import Competitor, roster_from_frame, roster_to_frame

logger = logging.getLogger(__name__)


def load_field(path: Path) -> List[Competitor]:
    """
    Read a field TSV into competitors sorted by seed.

    Args:
        path: Path to the TSV file

    Returns:
        List of Competitor, seed 1 first

    Raises:
        FileNotFoundError: path does not exist
        ValidationError: missing columns or empty values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Field file not found: {path}")

    df = pl.read_csv(
        path,
        separator="\t",
        truncate_ragged_lines=True,
    )
    # header names may carry stray whitespace
    df = df.rename({c: c.strip() for c in df.columns})

    roster = roster_from_frame(df)
    logger.info(f"Loaded {len(roster)} players from {path}")
    return roster


def write_field(roster: Sequence[Competitor], path: Path) -> Path:
    """Write competitors to a field TSV, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    roster_to_frame(sorted(roster, key=lambda c: c.seed)).write_csv(path, separator="\t")
    logger.info(f"Wrote {len(roster)} players to {path}")
    return path
