"""
Placement credit and per-run accumulators.

Players who finish outside the top four share a tied placement with everyone
eliminated in the same round ("tied for 9th"). The tie values are fixed per
supported field size rather than derived from the round number, because
they depend on how many players each round of that particular bracket
eliminates.
"""
from dataclasses import dataclass, field
from typing import Dict
import logging

import numpy as np

from champsim.exceptions import BracketShapeError

logger = logging.getLogger(__name__)


# (field size) -> {elimination round: tied placement}
# Semifinal losers are not listed; they play for third place.
TIE_PLACEMENTS: Dict[int, Dict[int, float]] = {
    16: {1: 17, 2: 9},
    24: {1: 17, 2: 9, 3: 5},
}

GOLD_PLACE = 1
SILVER_PLACE = 2
BRONZE_PLACE = 3
FOURTH_PLACE = 4


@dataclass(frozen=True)
class PlacementTable:
    """Tied placement values for one field size."""
    field_size: int
    rounds: int
    tie_values: Dict[int, float]

    @property
    def semifinal_round(self) -> int:
        return self.rounds - 1

    def tie_value(self, round_num: int) -> float:
        return self.tie_values[round_num]

    @classmethod
    def for_field(cls, field_size: int, rounds: int) -> "PlacementTable":
        """
        Look up the table for a supported field size.

        Raises:
            BracketShapeError: no table for this field size, or a
                pre-semifinal round without a tie value
        """
        if field_size not in TIE_PLACEMENTS:
            raise BracketShapeError(
                f"No placement table for a field of {field_size}", field_size=field_size
            )
        values = TIE_PLACEMENTS[field_size]
        missing = [r for r in range(1, rounds - 1) if r not in values]
        if missing:
            raise BracketShapeError(
                f"Placement table for {field_size} players has no tie value for rounds {missing}",
                field_size=field_size,
            )
        return cls(field_size=field_size, rounds=rounds, tie_values=dict(values))


@dataclass
class Accumulators:
    """
    Trial counters for a whole run, indexed by seed - 1.

    Only ever incremented; never reset while a run is in progress.
    """
    field_size: int
    rounds: int
    trials: int = 0
    round_wins: np.ndarray = field(default=None, repr=False)
    gold: np.ndarray = field(default=None, repr=False)
    silver: np.ndarray = field(default=None, repr=False)
    bronze: np.ndarray = field(default=None, repr=False)
    fourth: np.ndarray = field(default=None, repr=False)
    placement_sum: np.ndarray = field(default=None, repr=False)

    def __post_init__(self):
        n = self.field_size
        if self.round_wins is None:
            self.round_wins = np.zeros((n, self.rounds), dtype=np.int64)
        for name in ("gold", "silver", "bronze", "fourth"):
            if getattr(self, name) is None:
                setattr(self, name, np.zeros(n, dtype=np.int64))
        if self.placement_sum is None:
            self.placement_sum = np.zeros(n, dtype=np.float64)

    def merge(self, other: "Accumulators") -> "Accumulators":
        """Add another run's counters into this one (parallel chunks)."""
        if (other.field_size, other.rounds) != (self.field_size, self.rounds):
            raise ValueError("Cannot merge accumulators from different bracket shapes")
        self.trials += other.trials
        self.round_wins += other.round_wins
        self.gold += other.gold
        self.silver += other.silver
        self.bronze += other.bronze
        self.fourth += other.fourth
        self.placement_sum += other.placement_sum
        return self


class PlacementAggregator:
    """Credits match wins and placements to the accumulators."""

    def __init__(self, accumulators: Accumulators, table: PlacementTable):
        self.acc = accumulators
        self.table = table

    def record_match(self, winner_seed: int, loser_seed: int, round_num: int) -> None:
        """
        Credit a round win; losers before the semifinal get the tied
        placement for their round. Semifinal and championship losers are
        credited by record_podium.
        """
        self.acc.round_wins[winner_seed - 1, round_num - 1] += 1
        if round_num < self.table.semifinal_round:
            self.acc.placement_sum[loser_seed - 1] += self.table.tie_value(round_num)

    def record_podium(self, gold: int, silver: int, bronze: int, fourth: int) -> None:
        """Credit the top four of a finished trial and close the trial."""
        acc = self.acc
        acc.gold[gold - 1] += 1
        acc.silver[silver - 1] += 1
        acc.bronze[bronze - 1] += 1
        acc.fourth[fourth - 1] += 1
        acc.placement_sum[gold - 1] += GOLD_PLACE
        acc.placement_sum[silver - 1] += SILVER_PLACE
        acc.placement_sum[bronze - 1] += BRONZE_PLACE
        acc.placement_sum[fourth - 1] += FOURTH_PLACE
        acc.trials += 1
