"""Concurrent start and result submission against one SQLite file.

Every call opens its own connection, so these tests exercise the write
lock and the compare-and-set updates rather than any in-process locking.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from tournaments import (
    AlreadyFinishedError,
    InvalidStateError,
    TournamentError,
    TournamentStatus,
)
from tournaments.models import ScoreSubject

pytestmark = [pytest.mark.integration, pytest.mark.slow]


def run_concurrently(calls, workers: int = 8) -> list:
    """Run zero-argument callables in parallel, returning results or raised errors."""

    def _call(fn):
        try:
            return fn()
        except TournamentError as e:
            return e

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(_call, calls))


def test_concurrent_starts_generate_one_bracket(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=8)

    results = run_concurrently(
        [lambda: manager.start_tournament(tournament.id)] * 8
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert all(isinstance(f, InvalidStateError) for f in failures)
    assert len(manager.get_matches(tournament.id)) == 4
    assert manager.get_tournament(tournament.id).status == TournamentStatus.ACTIVE


def test_concurrent_round_results_advance_once(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=16)
    manager.start_tournament(tournament.id)
    matches = manager.get_matches(tournament.id, 1)

    outcomes = run_concurrently(
        [
            lambda m=match: manager.record_match_result(m.id, m.competitor_a)
            for match in matches
        ]
    )

    assert not any(isinstance(o, Exception) for o in outcomes)
    assert sum(o.round_completed for o in outcomes) == 1
    round_two = manager.get_matches(tournament.id, 2)
    assert len(round_two) == len(matches) // 2
    paired = sorted(c for m in round_two for c in m.competitors)
    assert paired == sorted(m.competitor_a for m in matches)


def test_concurrent_results_on_one_match(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=4)
    manager.start_tournament(tournament.id)
    match = manager.get_matches(tournament.id, 1)[0]

    outcomes = run_concurrently(
        [
            lambda w=winner: manager.record_match_result(match.id, w)
            for winner in [match.competitor_a, match.competitor_b] * 4
        ]
    )

    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert len(successes) == 1
    assert all(
        isinstance(o, AlreadyFinishedError) for o in outcomes if isinstance(o, Exception)
    )

    winner = successes[0].match.winner_id
    assert manager.get_match(match.id).winner_id == winner
    assert manager.scoring.get_score(winner, ScoreSubject.COMPETITOR) == 10
    assert manager.scoring.get_score(successes[0].loser_id, ScoreSubject.COMPETITOR) == 0


def test_concurrent_tournament_has_one_champion(manager, make_tournament) -> None:
    tournament = make_tournament(manager, entrants=8)
    manager.start_tournament(tournament.id)

    round_number = 1
    while manager.get_tournament(tournament.id).status == TournamentStatus.ACTIVE:
        pending = [
            m
            for m in manager.get_matches(tournament.id, round_number)
            if m.winner_id is None
        ]
        outcomes = run_concurrently(
            [lambda m=match: manager.record_match_result(m.id, m.competitor_b) for match in pending]
        )
        assert not any(isinstance(o, Exception) for o in outcomes)
        round_number += 1

    assert round_number == 4
    finished = manager.get_tournament(tournament.id)
    assert finished.status == TournamentStatus.FINISHED

    with manager.db.session() as session:
        prizes = session.conn.execute(
            "SELECT COUNT(*) FROM tournament_prizes WHERE tournament_id = ?",
            (tournament.id,),
        ).fetchone()[0]
    assert prizes == 1
    assert manager.get_prize(tournament.id).competitor_id == finished.winner_competitor_id
    # Three match wins plus the championship bonus
    assert (
        manager.scoring.get_score(finished.winner_competitor_id, ScoreSubject.COMPETITOR)
        == 60
    )
