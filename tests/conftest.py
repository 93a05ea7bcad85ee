# tests/conftest.py
import pytest
from pathlib import Path
from typing import List, Optional

from champsim.schema import Competitor


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def make_roster(size: int, rating: float = 1500.0, rd: float = 50.0, overrides: Optional[dict] = None) -> List[Competitor]:
    """Roster of `size` players; overrides maps seed -> (rating, rd)."""
    overrides = overrides or {}
    roster = []
    for seed in range(1, size + 1):
        r, d = overrides.get(seed, (rating, rd))
        roster.append(Competitor(seed=seed, name=f"Player {seed}", rating=r, rd=d))
    return roster


class ScriptedRandom:
    """
    GameRandom that replays fixed uniforms and returns the mean for normals.

    Lets series tests control every game outcome.
    """

    def __init__(self, uniforms):
        self.uniforms = list(uniforms)
        self.uniform_calls = 0
        self.normal_calls = 0

    def uniform(self) -> float:
        value = self.uniforms[self.uniform_calls]
        self.uniform_calls += 1
        return value

    def normal(self, mu: float, sigma: float) -> float:
        self.normal_calls += 1
        return mu


@pytest.fixture
def roster_16():
    """16 players with ratings descending by seed."""
    return [
        Competitor(seed=s, name=f"Player {s}", rating=1900.0 - 25 * s, rd=60.0 + s)
        for s in range(1, 17)
    ]


@pytest.fixture
def roster_24():
    """24 players with ratings descending by seed."""
    return [
        Competitor(seed=s, name=f"Player {s}", rating=1900.0 - 20 * s, rd=55.0)
        for s in range(1, 25)
    ]


@pytest.fixture
def equal_roster_16():
    return make_roster(16, rating=1500.0, rd=30.0)


@pytest.fixture
def dominant_roster_16():
    """Seed 1 far stronger than everyone else."""
    return make_roster(16, rating=1000.0, rd=30.0, overrides={1: (2000.0, 30.0)})


@pytest.fixture
def field_tsv(tmp_path, roster_16) -> Path:
    """Field file for roster_16."""
    path = tmp_path / "open-field.tsv"
    lines = ["name\tseed\trating\trd"]
    for c in roster_16:
        lines.append(f"{c.name}\t{c.seed}\t{c.rating}\t{c.rd}")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def mock_tournament_response():
    """Matchplay tournament payload with four kinds of players."""
    return {
        "data": {
            "tournamentId": 777,
            "name": "State Championship",
            "players": [
                {"name": "Claimed Player", "claimedBy": 11, "ifpaId": None,
                 "tournamentPlayer": {"seed": 1}},
                {"name": "Ifpa Player", "claimedBy": None, "ifpaId": 2222,
                 "tournamentPlayer": {"seed": 0}},
                {"name": "Unknown Player", "claimedBy": None, "ifpaId": None,
                 "tournamentPlayer": {"seed": 3}},
                {"name": "Broken Player", "claimedBy": 44, "ifpaId": None,
                 "tournamentPlayer": {"seed": 2}},
            ],
        }
    }
