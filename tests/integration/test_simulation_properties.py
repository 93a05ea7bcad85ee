"""
Statistical properties of full simulation runs.

These run enough trials for sampling noise to settle, so they are
marked slow.
"""
import numpy as np
import pytest

from champsim.engine import RatingSampler, TournamentSimulator, make_generator, play_series
from tests.conftest import make_roster

pytestmark = [pytest.mark.slow, pytest.mark.integration]


@pytest.fixture(scope="module")
def equal_run_16():
    roster = make_roster(16, rating=1500.0, rd=30.0)
    return TournamentSimulator(roster).run(iterations=100_000, seed=42)


def test_dominant_seed_wins(dominant_roster_16):
    result = TournamentSimulator(dominant_roster_16).run(iterations=100_000, seed=42)
    assert result.summary()[0].gold > 0.95


def test_equal_field_is_uniform(equal_run_16):
    expected = [1 / 2, 1 / 4, 1 / 8]
    for r in equal_run_16.summary():
        assert r.advancement == pytest.approx(expected, abs=0.01)
        assert r.gold == pytest.approx(1 / 16, abs=0.005)
        assert r.bronze == pytest.approx(1 / 16, abs=0.005)


def test_medal_probabilities_sum_to_one(equal_run_16):
    results = equal_run_16.summary()
    for medal in ("gold", "silver", "bronze"):
        assert sum(getattr(r, medal) for r in results) == pytest.approx(1.0)


def test_equal_field_average_placement(equal_run_16):
    # (8*17 + 4*9 + 1 + 2 + 3 + 4) / 16
    expected = 182 / 16
    for r in equal_run_16.summary():
        assert r.average_placement == pytest.approx(expected, abs=0.1)


@pytest.mark.parametrize("size", [16, 24])
def test_advancement_non_increasing(size, roster_16, roster_24):
    roster = roster_16 if size == 16 else roster_24
    results = TournamentSimulator(roster).run(iterations=20_000, seed=11).summary()
    for r in results:
        # top eight seeds in the 24 field skip the opening round
        adv = r.advancement[1:] if size == 24 and r.seed <= 8 else r.advancement
        assert all(later <= earlier for earlier, later in zip(adv, adv[1:]))
        assert 1.0 <= r.average_placement <= 17.0


def test_stronger_seed_favoured(roster_24):
    results = TournamentSimulator(roster_24).run(iterations=20_000, seed=5).summary()
    gold = np.array([r.gold for r in results])
    assert gold[0] > gold[8] > gold[23]


def test_third_place_series_is_even():
    a, b = make_roster(2, rating=1500.0, rd=40.0)
    generator = make_generator("numpy", 9)
    sampler = RatingSampler(generator)
    wins = sum(
        play_series(a, b, 3, generator, sampler)[0] is a
        for _ in range(20_000)
    )
    assert wins / 20_000 == pytest.approx(0.5, abs=0.02)


def test_parallel_matches_sequential_distribution(roster_16):
    sim = TournamentSimulator(roster_16)
    sequential = sim.run(iterations=40_000, seed=1).summary()
    parallel = sim.run(iterations=40_000, seed=1, workers=2, chunk_size=10_000).summary()
    for s, p in zip(sequential, parallel):
        assert p.gold == pytest.approx(s.gold, abs=0.02)
        assert p.average_placement == pytest.approx(s.average_placement, abs=0.3)
