"""
Tournament Simulator - Monte Carlo engine.

Plays the whole bracket once per trial, match by match in sequence order,
and accumulates round wins and placements over many trials.

Sequential runs draw every random number from a single seeded stream, so a
run is fully determined by (roster, bracket, seed, iterations, generator).
Parallel runs split the trials into fixed-size chunks, each with its own
stream derived from the seed and the chunk index.
"""
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple
import logging
import time

import numpy as np
import polars as pl

from champsim.exceptions import BracketShapeError, ValidationError
from champsim.schema import Competitor, validate_roster
from .bracket import BracketTemplate, standard_bracket
from .placement import Accumulators, PlacementAggregator, PlacementTable
from .rng import GameRandom, RatingSampler, make_generator
from .series import play_series
from .summary import CompetitorResult, results_to_frame, summarize

logger = logging.getLogger(__name__)


class Podium(NamedTuple):
    """Seeds of the top four in one trial."""
    gold: int
    silver: int
    bronze: int
    fourth: int


class TrialArena:
    """
    Per-trial scratch state: the winner and loser of every match by
    sequence position, plus the two semifinal losers.

    Allocated once per run and reset in place before each trial.
    """

    def __init__(self, match_count: int):
        self.winners: List[int] = [0] * match_count
        self.losers: List[int] = [0] * match_count
        self.consolation: List[int] = []
        self._blank = [0] * match_count

    def reset(self) -> None:
        self.winners[:] = self._blank
        self.losers[:] = self._blank
        self.consolation.clear()

    def resolve(self, code: int, match_id: str) -> int:
        """Seed occupying a slot: positive codes are seeds, negative codes point at a match winner."""
        if code > 0:
            return code
        seed = self.winners[-code - 1]
        if seed == 0:
            raise BracketShapeError(f"{match_id} has a slot whose feeding match has not been played")
        return seed


@dataclass
class SimulationResult:
    """Outcome of a full run."""
    roster: List[Competitor]
    accumulators: Accumulators
    iterations: int
    seed: int
    generator: str
    workers: int = 1
    elapsed_s: float = 0.0

    @property
    def field_size(self) -> int:
        return len(self.roster)

    @property
    def rounds(self) -> int:
        return self.accumulators.rounds

    def summary(self) -> List[CompetitorResult]:
        return summarize(self.roster, self.accumulators, self.iterations)

    def to_frame(self) -> pl.DataFrame:
        return results_to_frame(self.summary())

    def metadata(self) -> Dict[str, Any]:
        return {
            "iterations": self.iterations,
            "seed": self.seed,
            "generator": self.generator,
            "workers": self.workers,
            "field_size": self.field_size,
            "rounds": self.rounds,
            "elapsed_s": round(self.elapsed_s, 3),
        }


class TournamentSimulator:
    """
    Simulate a single-elimination bracket many times.

    The roster and bracket shape are validated on construction, so a
    misconfigured run fails before any trial is played.
    """

    def __init__(
        self,
        roster: Sequence[Competitor],
        template: Optional[BracketTemplate] = None,
        series_games: int = 7,
        third_place_games: int = 3,
        generator: str = "numpy",
        placement_table: Optional[PlacementTable] = None,
    ):
        """
        Initialize simulator.

        Args:
            roster: 16 or 24 players with seeds 1..N
            template: Bracket to play; the built-in bracket for the field
                size when omitted
            series_games: Games per bracket match (best of)
            third_place_games: Games in the 3rd-place match
            generator: Random stream family, "numpy" or "minstd"
            placement_table: Tie values; looked up by field size when omitted

        Raises:
            ValidationError: bad roster
            BracketShapeError: unsupported bracket or bracket/field mismatch
        """
        self.roster = validate_roster(roster)
        field_size = len(self.roster)

        self.template = template or standard_bracket(field_size)
        self.template.validate(field_size)

        self.rounds = self.template.rounds
        self.placement_table = placement_table or PlacementTable.for_field(field_size, self.rounds)
        if self.placement_table.rounds != self.rounds:
            raise BracketShapeError("Placement table does not match the bracket's round count")

        for games in (series_games, third_place_games):
            if games < 1 or games % 2 == 0:
                raise ValidationError(f"Series length must be a positive odd number, got {games}")
        self.series_games = series_games
        self.third_place_games = third_place_games
        self.generator = generator
        # fail early on an unknown generator name
        make_generator(generator, 0)

        self._plan = self._compile(self.template)
        self._final_index = next(
            i for i, m in enumerate(self.template.matches)
            if m.match_id == self.template.final_match_id
        )

    @staticmethod
    def _compile(template: BracketTemplate) -> Tuple[Tuple[str, int, int, int], ...]:
        """Flatten the bracket into (match id, round, slot code, slot code) in play order."""
        index = {m.match_id: i for i, m in enumerate(template.matches)}
        plan = []
        for match in template.matches:
            codes = [
                slot.seed if slot.seed is not None else -(index[slot.source] + 1)
                for slot in match.slots
            ]
            plan.append((match.match_id, match.round_num, codes[0], codes[1]))
        return tuple(plan)

    def new_accumulators(self) -> Accumulators:
        return Accumulators(field_size=len(self.roster), rounds=self.rounds)

    def resolve_trial(
        self,
        arena: TrialArena,
        generator: GameRandom,
        sampler: RatingSampler,
        aggregator: PlacementAggregator,
    ) -> Podium:
        """
        Play one full tournament and credit the results.

        Semifinal losers meet in a shorter series for third place.
        """
        arena.reset()
        roster = self.roster
        semifinal_round = self.rounds - 1

        for i, (match_id, round_num, code1, code2) in enumerate(self._plan):
            s1 = arena.resolve(code1, match_id)
            s2 = arena.resolve(code2, match_id)
            winner, loser = play_series(
                roster[s1 - 1], roster[s2 - 1], self.series_games, generator, sampler
            )
            arena.winners[i] = winner.seed
            arena.losers[i] = loser.seed
            aggregator.record_match(winner.seed, loser.seed, round_num)
            if round_num == semifinal_round:
                arena.consolation.append(loser.seed)

        gold = arena.winners[self._final_index]
        silver = arena.losers[self._final_index]

        c1, c2 = arena.consolation
        third, fourth = play_series(
            roster[c1 - 1], roster[c2 - 1], self.third_place_games, generator, sampler
        )
        podium = Podium(gold=gold, silver=silver, bronze=third.seed, fourth=fourth.seed)
        aggregator.record_podium(*podium)
        return podium

    def run_trials(
        self,
        trials: int,
        generator: GameRandom,
        progress_every: int = 0,
    ) -> Accumulators:
        """Run `trials` tournaments against one random stream."""
        acc = self.new_accumulators()
        aggregator = PlacementAggregator(acc, self.placement_table)
        sampler = RatingSampler(generator)
        arena = TrialArena(len(self._plan))

        for n in range(1, trials + 1):
            self.resolve_trial(arena, generator, sampler, aggregator)
            if progress_every and n % progress_every == 0:
                logger.info(f"Simulated {n:,}/{trials:,} tournaments")
        return acc

    def run(
        self,
        iterations: int,
        seed: int = 42,
        workers: int = 1,
        chunk_size: int = 50_000,
        progress_every: int = 0,
    ) -> SimulationResult:
        """
        Run the full simulation.

        Args:
            iterations: Number of tournaments to simulate
            seed: Seed for the random stream(s)
            workers: 1 for the sequential single-stream run; more for a
                process pool over chunks
            chunk_size: Trials per chunk in parallel mode
            progress_every: Log progress every N trials (sequential only)

        Returns:
            SimulationResult with the merged accumulators
        """
        if iterations < 1:
            raise ValidationError(f"iterations must be >= 1, got {iterations}")
        if seed < 0:
            raise ValidationError(f"seed must be >= 0, got {seed}")
        if chunk_size < 1:
            raise ValidationError(f"chunk_size must be >= 1, got {chunk_size}")

        start = time.perf_counter()
        logger.info(
            f"Simulating {iterations:,} tournaments for a field of {len(self.roster)} "
            f"(seed={seed}, generator={self.generator}, workers={workers})"
        )

        if workers <= 1:
            acc = self.run_trials(iterations, make_generator(self.generator, seed), progress_every)
        else:
            acc = self._run_parallel(iterations, seed, workers, chunk_size)

        elapsed = time.perf_counter() - start
        logger.info(f"Simulation complete in {elapsed:.1f}s")
        return SimulationResult(
            roster=list(self.roster),
            accumulators=acc,
            iterations=iterations,
            seed=seed,
            generator=self.generator,
            workers=workers,
            elapsed_s=elapsed,
        )

    def _run_parallel(self, iterations: int, seed: int, workers: int, chunk_size: int) -> Accumulators:
        """
        Split trials into chunks with independent derived streams.

        Chunk i always gets SeedSequence(seed, spawn_key=(i,)), so the result
        depends on the chunk size but not on the number of workers.
        """
        sizes = [chunk_size] * (iterations // chunk_size)
        if iterations % chunk_size:
            sizes.append(iterations % chunk_size)
        jobs = [(self, seed, i, n) for i, n in enumerate(sizes)]
        logger.info(f"Running {len(jobs)} chunks of up to {chunk_size:,} trials on {workers} workers")

        acc = self.new_accumulators()
        with ProcessPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order, keeping the merge deterministic
            for chunk in executor.map(_run_chunk, jobs):
                acc.merge(chunk)
        return acc


def _run_chunk(job: Tuple["TournamentSimulator", int, int, int]) -> Accumulators:
    simulator, seed, index, trials = job
    stream = np.random.SeedSequence(seed, spawn_key=(index,))
    return simulator.run_trials(trials, make_generator(simulator.generator, stream))
