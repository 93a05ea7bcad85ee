"""
Strongly typed configuration using pydantic-settings.

All settings are validated at startup and loaded from:
1. Default values defined here
2. .env file (if present)
3. Environment variables (highest priority)

Environment variable naming:
- SimulationSettings: SIM_ITERATIONS, SIM_SEED, SIM_WORKERS, etc.
- MatchplaySettings: MATCHPLAY_URL, MATCHPLAY_API_TOKEN, etc.
- OutputSettings: OUTPUT_FORMAT, OUTPUT_VERSIONED
- ObservabilitySettings: ENVIRONMENT, LOG_LEVEL (no prefix)
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path


class SimulationSettings(BaseSettings):
    """Monte Carlo run settings."""

    model_config = SettingsConfigDict(env_prefix="SIM_")

    iterations: int = Field(default=1_000_000, ge=1, description="Number of simulated tournaments")
    seed: int = Field(default=42, ge=0, description="Seed for the shared random stream")

    # Series lengths
    series_games: int = Field(default=7, ge=1, description="Games per bracket match")
    third_place_games: int = Field(default=3, ge=1, description="Games in the 3rd-place match")

    generator: str = Field(default="numpy", pattern="^(numpy|minstd)$")

    # Parallel mode
    workers: int = Field(default=1, ge=1, le=64)
    chunk_size: int = Field(default=50_000, ge=1, description="Trials per parallel chunk")

    progress_every: int = Field(default=100_000, ge=0, description="Log progress every N trials (0 = off)")

    @field_validator('series_games', 'third_place_games')
    @classmethod
    def games_must_be_odd(cls, v):
        if v % 2 == 0:
            raise ValueError('series length must be odd')
        return v


class MatchplaySettings(BaseSettings):
    """Matchplay rating service settings."""

    model_config = SettingsConfigDict(env_prefix="MATCHPLAY_")

    url: str = Field(default="https://app.matchplay.events/api/")
    api_token: Optional[str] = Field(default=None)

    # Request timing
    request_delay_s: float = Field(default=0.6, ge=0.0, description="Delay between per-player requests")
    timeout_s: float = Field(default=30.0, ge=1.0)

    # Caching
    cache_dir: Path = Field(default=Path(".cache"))
    cache_ttl_hours: float = Field(default=24.0, ge=0.0)

    # Used when a player has no rating
    default_rating: float = Field(default=1500.0)
    default_rd: float = Field(default=350.0, ge=0.0)


class OutputSettings(BaseSettings):
    """Result file settings."""

    model_config = SettingsConfigDict(env_prefix="OUTPUT_")

    format: str = Field(default="tsv", pattern="^(tsv|json)$")
    versioned: bool = Field(default=True, description="Never overwrite, write -v2, -v3, ...")


class ObservabilitySettings(BaseSettings):
    """Logging and metrics settings."""

    model_config = SettingsConfigDict(env_prefix="")  # Direct: ENVIRONMENT, LOG_LEVEL

    environment: str = Field(default="development", pattern="^(development|staging|production)$")
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format: str = Field(default="console", pattern="^(console|json)$")
    enable_metrics: bool = Field(default=True)


class Settings(BaseSettings):
    """
    Root settings aggregating all subsections.

    Usage:
        from champsim.config import settings

        settings.simulation.iterations
        settings.matchplay.api_token
        settings.output.format
        settings.observability.log_level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    matchplay: MatchplaySettings = Field(default_factory=MatchplaySettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
