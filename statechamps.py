#!/usr/bin/env python
"""
State Championship Simulator - CLI

Simulates IFPA-style state championship brackets using Glicko ratings
from Matchplay.Events.

    python statechamps.py simulate --field data/open-field.tsv > results.tsv
    python statechamps.py simulate --tournament 12345 --output results/open.tsv
    python statechamps.py fetch-field 12345 --output data/open-field.tsv
    python statechamps.py bracket 24 --output data/bracket-24.json
"""
import sys
from pathlib import Path
import argparse
import json
import time
import uuid

from champsim.config import settings
from champsim.engine import BracketTemplate, TournamentSimulator, standard_bracket
from champsim.exceptions import ChampSimError, ConfigurationError
from champsim.extract import FieldCache, MatchplayClient, load_field, write_field
from champsim.output import ResultWriter
from champsim.utils import setup_logging
from champsim.utils.observability import (
    CORRELATION_ID,
    Logger,
    ObservabilityConfig,
    export_metrics,
    get_metrics,
    initialize_observability,
)

# Initialize observability
initialize_observability(ObservabilityConfig(settings.observability))
setup_logging(
    "champsim",
    level=settings.observability.log_level,
    log_format=settings.observability.log_format,
)

logger = Logger(__name__)


def _matchplay_client():
    if not settings.matchplay.api_token:
        raise ConfigurationError("MATCHPLAY_API_TOKEN is not set; use --field or export a token")
    return MatchplayClient.from_settings(settings.matchplay)


def _load_roster(args):
    """Field from a TSV file or from a Matchplay tournament."""
    if args.field:
        return load_field(Path(args.field))
    with _matchplay_client() as client:
        return client.get_tournament_field(args.tournament, skip_cache=args.no_cache)


def _output_format(args):
    """--format, then the output file suffix, then OUTPUT_FORMAT."""
    if args.format:
        return args.format
    if args.output:
        suffix = Path(args.output).suffix.lower().lstrip(".")
        if suffix in ("tsv", "json"):
            return suffix
    return settings.output.format


def cmd_simulate(args):
    """Run the Monte Carlo simulation and write or print results."""
    metrics = get_metrics()
    logger.log_event('simulate_command_started', iterations=args.iterations, seed=args.seed)

    roster = _load_roster(args)
    template = BracketTemplate.from_json(Path(args.bracket)) if args.bracket else None

    simulator = TournamentSimulator(
        roster,
        template=template,
        series_games=settings.simulation.series_games,
        third_place_games=settings.simulation.third_place_games,
        generator=args.generator,
    )
    metrics.field_size.set(len(simulator.roster))

    mode = 'parallel' if args.workers > 1 else 'sequential'
    with metrics.simulation_duration.labels(mode=mode).time():
        result = simulator.run(
            iterations=args.iterations,
            seed=args.seed,
            workers=args.workers,
            chunk_size=settings.simulation.chunk_size,
            progress_every=settings.simulation.progress_every,
        )
    metrics.trials_completed.inc(result.iterations)

    writer = ResultWriter(versioned=settings.output.versioned)
    results = result.summary()
    fmt = _output_format(args)

    if args.output:
        written = writer.write(results, Path(args.output), fmt=fmt, metadata=result.metadata())
        if not written.success:
            logger.log_error("save_failed", error=written.error)
            return 1
        print(f"[OK] Saved to: {written.path}", file=sys.stderr)
    else:
        sys.stdout.write(writer.render(results, fmt, result.metadata()))

    if args.metrics_file:
        exported = export_metrics(Path(args.metrics_file))
        if exported is None:
            logger.log_warning("metrics_export_skipped", reason="ENABLE_METRICS is off")

    logger.log_event('simulate_command_completed', elapsed_s=round(result.elapsed_s, 2))
    return 0


def cmd_fetch_field(args):
    """Fetch a tournament field with ratings and save it as TSV."""
    logger.log_event('fetch_field_command_started', tournament_id=args.tournament_id)
    with _matchplay_client() as client:
        field = client.get_tournament_field(args.tournament_id, skip_cache=args.no_cache)

    if args.output:
        write_field(field, Path(args.output))
        print(f"[OK] Saved {len(field)} players to: {args.output}", file=sys.stderr)
    else:
        print("name\tseed\trating\trd")
        for c in field:
            print(f"{c.name}\t{c.seed}\t{c.rating}\t{c.rd}")
    return 0


def cmd_clear_cache(args):
    """Remove cached tournament fields."""
    cache = FieldCache(settings.matchplay.cache_dir, settings.matchplay.cache_ttl_hours)
    removed = cache.clear(args.tournament_id)
    print(f"Removed {removed} cache file(s)", file=sys.stderr)
    return 0


def cmd_bracket(args):
    """Print or save a built-in bracket in JSON form."""
    template = standard_bracket(args.field_size)
    text = json.dumps(template.to_dict(), indent=2)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        print(f"[OK] Saved to: {out_path}", file=sys.stderr)
    else:
        print(text)
    return 0


def main():
    parser = argparse.ArgumentParser(description="State Championship Simulator")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sim = subparsers.add_parser("simulate", help="Monte Carlo placement odds")
    source = sim.add_mutually_exclusive_group(required=True)
    source.add_argument("--field", help="Field TSV file (name, seed, rating, rd)")
    source.add_argument("--tournament", type=int, help="Matchplay tournament id")
    sim.add_argument("--bracket", help="Bracket JSON file (built-in bracket when omitted)")
    sim.add_argument("--seed", type=int, default=settings.simulation.seed, help="Random seed")
    sim.add_argument("--iterations", type=int, default=settings.simulation.iterations,
                     help="Number of simulations")
    sim.add_argument("--workers", type=int, default=settings.simulation.workers)
    sim.add_argument("--generator", choices=["numpy", "minstd"], default=settings.simulation.generator)
    sim.add_argument("--output", "-o", help="Save results to file (.tsv or .json)")
    sim.add_argument("--format", choices=["tsv", "json"], default=None,
                     help="Result format (default: output suffix, then OUTPUT_FORMAT)")
    sim.add_argument("--metrics-file", help="Write run metrics in Prometheus text format")
    sim.add_argument("--no-cache", action="store_true", help="Refetch the tournament field")
    sim.set_defaults(func=cmd_simulate)

    fetch = subparsers.add_parser("fetch-field", help="Download a tournament field with ratings")
    fetch.add_argument("tournament_id", type=int)
    fetch.add_argument("--output", "-o", help="Field TSV path")
    fetch.add_argument("--no-cache", action="store_true")
    fetch.set_defaults(func=cmd_fetch_field)

    clear = subparsers.add_parser("clear-cache", help="Remove cached tournament fields")
    clear.add_argument("tournament_id", type=int, nargs="?")
    clear.set_defaults(func=cmd_clear_cache)

    bracket = subparsers.add_parser("bracket", help="Dump a built-in bracket as JSON")
    bracket.add_argument("field_size", type=int, choices=[16, 24])
    bracket.add_argument("--output", "-o")
    bracket.set_defaults(func=cmd_bracket)

    args = parser.parse_args()

    # Initialize correlation ID for this run
    correlation_id = str(uuid.uuid4())
    CORRELATION_ID.set(correlation_id)

    start_time = time.time()

    try:
        code = args.func(args)
    except ChampSimError as e:
        logger.log_error("command_failed", error=str(e), error_type=type(e).__name__)
        sys.exit(2)
    except FileNotFoundError as e:
        logger.log_error("command_failed", error=str(e))
        sys.exit(2)
    finally:
        duration = time.time() - start_time
        logger.log_event('command_completed', duration_seconds=round(duration, 3))

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
