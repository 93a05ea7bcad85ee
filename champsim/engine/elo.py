"""
Elo win probability.

A 400-point gap in sampled skill is roughly a 91% single-game edge.
"""

SCALE = 400.0


def win_probability(r1: float, r2: float) -> float:
    """P(the player sampled at r1 wins one game against the player at r2)."""
    return 1.0 / (1.0 + 10.0 ** (-(r1 - r2) / SCALE))
