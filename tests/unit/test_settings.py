"""
Unit tests for environment-driven settings.
"""
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from champsim.config.settings import MatchplaySettings, OutputSettings, Settings, SimulationSettings


class TestSimulationSettings:

    def test_defaults(self, monkeypatch):
        for var in ("SIM_ITERATIONS", "SIM_SEED", "SIM_WORKERS", "SIM_GENERATOR"):
            monkeypatch.delenv(var, raising=False)
        s = SimulationSettings()
        assert s.iterations == 1_000_000
        assert s.seed == 42
        assert (s.series_games, s.third_place_games) == (7, 3)
        assert s.generator == "numpy"
        assert s.workers == 1

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SIM_ITERATIONS", "5000")
        monkeypatch.setenv("SIM_GENERATOR", "minstd")
        s = SimulationSettings()
        assert s.iterations == 5000
        assert s.generator == "minstd"

    def test_even_series_rejected(self, monkeypatch):
        monkeypatch.setenv("SIM_SERIES_GAMES", "4")
        with pytest.raises(PydanticValidationError):
            SimulationSettings()

    def test_unknown_generator_rejected(self, monkeypatch):
        monkeypatch.setenv("SIM_GENERATOR", "mersenne")
        with pytest.raises(PydanticValidationError):
            SimulationSettings()


class TestMatchplaySettings:

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("MATCHPLAY_API_TOKEN", "abc123")
        assert MatchplaySettings().api_token == "abc123"

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MATCHPLAY_REQUEST_DELAY_S", raising=False)
        monkeypatch.delenv("MATCHPLAY_CACHE_TTL_HOURS", raising=False)
        s = MatchplaySettings()
        assert s.request_delay_s == 0.6
        assert s.cache_ttl_hours == 24.0
        assert (s.default_rating, s.default_rd) == (1500.0, 350.0)


def test_output_format_validated(monkeypatch):
    monkeypatch.setenv("OUTPUT_FORMAT", "csv")
    with pytest.raises(PydanticValidationError):
        OutputSettings()


def test_root_settings_sections():
    s = Settings()
    assert s.simulation.series_games % 2 == 1
    assert s.matchplay.cache_dir == Path(".cache")
    assert s.output.format in ("tsv", "json")
