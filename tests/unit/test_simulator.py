"""
Unit tests for the tournament simulator.
"""
import numpy as np
import pytest

from champsim.engine.bracket import standard_bracket
from champsim.engine.placement import PlacementAggregator
from champsim.engine.rng import RatingSampler, make_generator
from champsim.engine.simulator import TournamentSimulator, TrialArena, _run_chunk
from champsim.exceptions import BracketShapeError, ValidationError
from champsim.schema import Competitor
from tests.conftest import make_roster

# tied placements for places 5+ plus 1 + 2 + 3 + 4
PLACEMENT_PER_TRIAL = {
    16: 8 * 17 + 4 * 9 + 10,
    24: 8 * 17 + 8 * 9 + 4 * 5 + 10,
}


class TestConstruction:

    def test_wrong_field_size(self):
        with pytest.raises(ValidationError, match="16 or 24"):
            TournamentSimulator(make_roster(15))

    def test_duplicate_seeds(self):
        roster = make_roster(16)
        roster[3] = Competitor(seed=1, name="Dup", rating=1500.0, rd=50.0)
        with pytest.raises(ValidationError, match="duplicates"):
            TournamentSimulator(roster)

    def test_bracket_field_mismatch(self):
        with pytest.raises(BracketShapeError):
            TournamentSimulator(make_roster(16), template=standard_bracket(24))

    @pytest.mark.parametrize("games", [2, 0])
    def test_series_length_must_be_odd(self, games):
        with pytest.raises(ValidationError):
            TournamentSimulator(make_roster(16), series_games=games)

    def test_unknown_generator(self):
        with pytest.raises(ValueError):
            TournamentSimulator(make_roster(16), generator="lcg")

    def test_roster_sorted_by_seed(self):
        sim = TournamentSimulator(list(reversed(make_roster(24))))
        assert [c.seed for c in sim.roster] == list(range(1, 25))
        assert sim.rounds == 5


class TestResolveTrial:

    @pytest.mark.parametrize("size", [16, 24])
    def test_single_trial_podium(self, size):
        sim = TournamentSimulator(make_roster(size))
        acc = sim.new_accumulators()
        aggregator = PlacementAggregator(acc, sim.placement_table)
        gen = make_generator("numpy", 1)

        podium = sim.resolve_trial(TrialArena(len(sim._plan)), gen, RatingSampler(gen), aggregator)

        assert len(set(podium)) == 4
        assert acc.trials == 1
        assert acc.gold.sum() == acc.silver.sum() == acc.bronze.sum() == acc.fourth.sum() == 1
        assert acc.placement_sum.sum() == PLACEMENT_PER_TRIAL[size]

    def test_podium_comes_from_late_rounds(self, roster_16):
        sim = TournamentSimulator(roster_16)
        acc = sim.new_accumulators()
        aggregator = PlacementAggregator(acc, sim.placement_table)
        gen = make_generator("numpy", 8)

        podium = sim.resolve_trial(TrialArena(len(sim._plan)), gen, RatingSampler(gen), aggregator)

        # finalists won a semifinal, 3rd/4th won a quarterfinal but not a semifinal
        assert acc.round_wins[podium.gold - 1, 3] == 1
        assert acc.round_wins[podium.silver - 1, 2] == 1
        for seed in (podium.bronze, podium.fourth):
            assert acc.round_wins[seed - 1, 1] == 1
            assert acc.round_wins[seed - 1, 2] == 0

    def test_arena_reset_between_trials(self, roster_16):
        sim = TournamentSimulator(roster_16)
        arena = TrialArena(len(sim._plan))
        acc = sim.new_accumulators()
        aggregator = PlacementAggregator(acc, sim.placement_table)
        gen = make_generator("numpy", 3)

        for _ in range(3):
            sim.resolve_trial(arena, gen, RatingSampler(gen), aggregator)
            assert len(arena.consolation) == 2

        arena.reset()
        assert arena.winners == [0] * 15
        assert arena.consolation == []

    def test_unplayed_feeder(self):
        arena = TrialArena(3)
        assert arena.resolve(5, "w1") == 5
        with pytest.raises(BracketShapeError):
            arena.resolve(-2, "w3")


class TestRun:

    @pytest.mark.parametrize("size", [16, 24])
    def test_totals_per_trial(self, size):
        sim = TournamentSimulator(make_roster(size))
        result = sim.run(iterations=200, seed=4)
        acc = result.accumulators

        assert acc.trials == 200
        assert acc.gold.sum() == 200
        assert acc.silver.sum() == 200
        assert acc.bronze.sum() == 200
        assert acc.fourth.sum() == 200
        assert acc.placement_sum.sum() == 200 * PLACEMENT_PER_TRIAL[size]
        # every match of every trial credits exactly one round win
        assert acc.round_wins.sum() == 200 * sim.template.match_count

    def test_round_win_counts_follow_bracket(self, roster_16):
        acc = TournamentSimulator(roster_16).run(iterations=100, seed=4).accumulators
        assert acc.round_wins.sum(axis=0).tolist() == [800, 400, 200, 100]

    def test_byes_have_no_first_round_wins(self, roster_24):
        acc = TournamentSimulator(roster_24).run(iterations=100, seed=4).accumulators
        assert acc.round_wins[:8, 0].sum() == 0

    def test_same_seed_same_result(self, roster_16):
        a = TournamentSimulator(roster_16).run(iterations=300, seed=42).to_frame()
        b = TournamentSimulator(roster_16).run(iterations=300, seed=42).to_frame()
        assert a.equals(b)

    def test_different_seed_different_result(self, roster_16):
        a = TournamentSimulator(roster_16).run(iterations=300, seed=1).to_frame()
        b = TournamentSimulator(roster_16).run(iterations=300, seed=2).to_frame()
        assert not a.equals(b)

    def test_minstd_generator(self, roster_24):
        sim = TournamentSimulator(roster_24, generator="minstd")
        a = sim.run(iterations=100, seed=42)
        b = sim.run(iterations=100, seed=42)
        assert a.accumulators.gold.tolist() == b.accumulators.gold.tolist()
        assert a.metadata()["generator"] == "minstd"

    def test_invalid_iterations(self, roster_16):
        with pytest.raises(ValidationError):
            TournamentSimulator(roster_16).run(iterations=0)

    def test_negative_seed(self, roster_16):
        with pytest.raises(ValidationError):
            TournamentSimulator(roster_16).run(iterations=1, seed=-1)

    @pytest.mark.parametrize("chunk_size", [0, -5])
    def test_invalid_chunk_size(self, roster_16, chunk_size):
        with pytest.raises(ValidationError, match="chunk_size"):
            TournamentSimulator(roster_16).run(iterations=10, seed=1, workers=2, chunk_size=chunk_size)

    def test_average_placement_bounds(self, roster_24):
        for r in TournamentSimulator(roster_24).run(iterations=300, seed=9).summary():
            assert 1.0 <= r.average_placement <= 17.0

    def test_metadata(self, roster_16):
        meta = TournamentSimulator(roster_16).run(iterations=10, seed=3).metadata()
        assert meta["iterations"] == 10
        assert meta["field_size"] == 16
        assert meta["rounds"] == 4


class TestParallel:

    def test_chunk_is_reproducible(self, roster_16):
        sim = TournamentSimulator(roster_16)
        a = _run_chunk((sim, 42, 3, 50))
        b = _run_chunk((sim, 42, 3, 50))
        c = _run_chunk((sim, 42, 4, 50))

        assert a.trials == 50
        assert np.array_equal(a.placement_sum, b.placement_sum)
        assert not np.array_equal(a.round_wins, c.round_wins)

    @pytest.mark.slow
    def test_result_independent_of_worker_count(self, roster_16):
        sim = TournamentSimulator(roster_16)
        two = sim.run(iterations=130, seed=5, workers=2, chunk_size=40).accumulators
        three = sim.run(iterations=130, seed=5, workers=3, chunk_size=40).accumulators

        assert two.trials == 130
        assert two.gold.sum() == 130
        assert np.array_equal(two.round_wins, three.round_wins)
        assert np.array_equal(two.placement_sum, three.placement_sum)
