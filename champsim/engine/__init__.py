"""
Bracket Monte Carlo engine.

Samples per-match skill from each player's rating and rating deviation,
plays every match of a single-elimination bracket, and aggregates
placements across many simulated tournaments.
"""
from .bracket import BracketTemplate, Match, Slot, standard_bracket
from .placement import Accumulators, PlacementAggregator, PlacementTable
from .rng import MinstdRandom, NumpyRandom, RatingSampler, make_generator
from .series import play_series
from .elo import win_probability
from .simulator import Podium, SimulationResult, TournamentSimulator, TrialArena
from .summary import CompetitorResult, results_to_frame, summarize

__all__ = [
    "BracketTemplate",
    "Match",
    "Slot",
    "standard_bracket",
    "Accumulators",
    "PlacementAggregator",
    "PlacementTable",
    "MinstdRandom",
    "NumpyRandom",
    "RatingSampler",
    "make_generator",
    "play_series",
    "win_probability",
    "Podium",
    "SimulationResult",
    "TournamentSimulator",
    "TrialArena",
    "CompetitorResult",
    "results_to_frame",
    "summarize",
]
