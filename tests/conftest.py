"""Pytest configuration and shared fixtures.

Every test gets its own SQLite file under ``tmp_path`` so that the
concurrency tests can open independent connections against it.
"""

import random
from collections.abc import Callable

import pytest

from config.settings import AppConfig, BracketConfig, StorageConfig
from tournaments import TournamentManager
from tournaments.models import Tournament, TournamentCreateRequest

from helpers import DURATION_SEC, JUDGE_ID


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Default configuration pointing at a per-test database."""
    return AppConfig(
        storage=StorageConfig(db_path=str(tmp_path / "tournaments.db"), busy_timeout_sec=10.0),
        bracket=BracketConfig(shuffle_seed=42),
    )


@pytest.fixture
def manager(app_config: AppConfig) -> TournamentManager:
    """Manager with a fixed shuffle seed."""
    return TournamentManager(config=app_config, rng=random.Random(1234))


@pytest.fixture
def make_manager(tmp_path) -> Callable[..., TournamentManager]:
    """Build a manager with a custom odd-entrant policy."""

    def _make(
        policy: str = "drop", seed: int = 1234, busy_timeout_sec: float = 10.0
    ) -> TournamentManager:
        config = AppConfig(
            storage=StorageConfig(
                db_path=str(tmp_path / f"{policy}.db"), busy_timeout_sec=busy_timeout_sec
            ),
            bracket=BracketConfig(odd_entrant_policy=policy),
        )
        return TournamentManager(config=config, rng=random.Random(seed))

    return _make


@pytest.fixture
def make_tournament() -> Callable[..., Tournament]:
    """Create a draft tournament with ``entrants`` registrations.

    Competitor ids start at 101, their clubs at 201 and robots at 301, so
    entrant ``n`` is (100 + n, 200 + n, 300 + n).
    """

    def _make(
        manager: TournamentManager,
        entrants: int = 4,
        max_participants: int = 16,
        name: str = "Spring Sumo Cup",
    ) -> Tournament:
        tournament = manager.create_tournament(
            TournamentCreateRequest(
                name=name,
                category_id=1,
                max_participants=max_participants,
                judge_id=JUDGE_ID,
                combat_duration_sec=DURATION_SEC,
            )
        )
        assert tournament.id is not None
        for n in range(1, entrants + 1):
            manager.register_entrant(
                tournament.id,
                competitor_id=100 + n,
                club_id=200 + n,
                robot_id=300 + n,
            )
        return tournament

    return _make


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
