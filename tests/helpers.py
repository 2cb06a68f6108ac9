"""Constants and id helpers shared by the test modules."""

import sqlite3
from contextlib import contextmanager

JUDGE_ID = 900
DURATION_SEC = 180


def club_of(competitor_id: int) -> int:
    return competitor_id + 100


def robot_of(competitor_id: int) -> int:
    return competitor_id + 200


def finish_round(manager, tournament_id: int, round_number: int) -> list:
    """Record competitor_a as the winner of every pending match in a round."""
    outcomes = []
    for match in manager.get_matches(tournament_id, round_number):
        if match.winner_id is None:
            outcomes.append(manager.record_match_result(match.id, match.competitor_a))
    return outcomes


@contextmanager
def write_locked(db_path):
    """Hold the database write lock from a separate connection."""
    conn = sqlite3.connect(db_path, isolation_level=None)
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.execute("ROLLBACK")
    finally:
        conn.close()
