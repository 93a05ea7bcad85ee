"""
Configuration module with strongly typed settings.

Usage:
    from champsim.config import settings

    print(settings.simulation.iterations)
    print(settings.matchplay.cache_ttl_hours)
"""
from .settings import (
    Settings,
    SimulationSettings,
    MatchplaySettings,
    OutputSettings,
    ObservabilitySettings,
)

# Singleton instance - validates on import
settings = Settings()

__all__ = [
    "settings",
    "Settings",
    "SimulationSettings",
    "MatchplaySettings",
    "OutputSettings",
    "ObservabilitySettings",
]
