"""
Best-of-N match simulation.
"""
from typing import Tuple

from champsim.schema import Competitor
from .elo import win_probability
from .rng import GameRandom, RatingSampler


def play_series(
    first: Competitor,
    second: Competitor,
    games: int,
    generator: GameRandom,
    sampler: RatingSampler,
) -> Tuple[Competitor, Competitor]:
    """
    Play a best-of-`games` series and return (winner, loser).

    Each player's skill is sampled once per series, not per game. The series
    stops as soon as either side has won more than half of `games`.
    """
    if games < 1 or games % 2 == 0:
        raise ValueError(f"games must be a positive odd number, got {games}")

    p = win_probability(
        sampler.sample(first.rating, first.rd),
        sampler.sample(second.rating, second.rd),
    )

    half = games / 2
    w1 = w2 = 0
    for _ in range(games):
        if generator.uniform() < p:
            w1 += 1
        else:
            w2 += 1
        if w1 > half or w2 > half:
            break

    if w1 > w2:
        return first, second
    return second, first
