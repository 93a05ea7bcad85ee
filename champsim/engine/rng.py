"""
Seeded random streams and the rating sampler.

One generator object is created per run (or per parallel chunk) and passed
explicitly to everything that draws from it. Two families are available:

- NumpyRandom: numpy's PCG64 Generator (default)
- MinstdRandom: Park-Miller minimal standard LCG with a Box-Muller normal
  transform, for runs that need the classic LCG stream

Results are reproducible for a fixed seed within a family. The two
families agree statistically, not draw for draw.
"""
import math
from typing import Protocol, Union

import numpy as np


class GameRandom(Protocol):
    """Source of uniform and normal draws."""

    def uniform(self) -> float:
        """Uniform draw in [0, 1)."""
        ...

    def normal(self, mu: float, sigma: float) -> float:
        """Normal draw with mean mu and standard deviation sigma."""
        ...


class NumpyRandom:
    """GameRandom backed by numpy.random.Generator."""

    def __init__(self, seed: Union[int, np.random.SeedSequence]):
        self._rng = np.random.default_rng(seed)

    def uniform(self) -> float:
        return float(self._rng.random())

    def normal(self, mu: float, sigma: float) -> float:
        return float(self._rng.normal(mu, sigma))


class MinstdRandom:
    """
    Park-Miller minimal standard generator.

    x' = 16807 * x mod (2^31 - 1), state kept in [1, 2^31 - 2].
    Normals use the basic Box-Muller transform, two uniforms per draw,
    so every normal consumes a fixed number of steps.
    """

    MODULUS = 2147483647
    MULTIPLIER = 16807

    def __init__(self, seed: Union[int, np.random.SeedSequence]):
        if isinstance(seed, np.random.SeedSequence):
            seed = int(seed.generate_state(1)[0])
        seed = int(seed)
        if not 0 < seed < self.MODULUS:
            seed = seed % (self.MODULUS - 1) + 1
        self._state = seed

    def next_int(self) -> int:
        self._state = (self._state * self.MULTIPLIER) % self.MODULUS
        return self._state

    def uniform(self) -> float:
        return (self.next_int() - 1) / (self.MODULUS - 1)

    def normal(self, mu: float, sigma: float) -> float:
        u1 = 1.0 - self.uniform()  # (0, 1], keeps log finite
        u2 = self.uniform()
        z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return mu + sigma * z


GENERATORS = {
    "numpy": NumpyRandom,
    "minstd": MinstdRandom,
}


def make_generator(kind: str, seed: Union[int, np.random.SeedSequence]) -> GameRandom:
    """Create a generator of the named family."""
    try:
        factory = GENERATORS[kind]
    except KeyError:
        raise ValueError(f"Unknown generator '{kind}', expected one of {sorted(GENERATORS)}")
    return factory(seed)


class RatingSampler:
    """Draws a per-match effective skill from a competitor's rating and rd."""

    def __init__(self, generator: GameRandom):
        self.generator = generator

    def sample(self, rating: float, rd: float) -> float:
        """
        One skill sample; long-run mean is rating and long-run
        standard deviation is rd.
        """
        return self.generator.normal(rating, rd)
