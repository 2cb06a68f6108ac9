"""Tournament database operations."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List

from .exceptions import StorageUnavailableError
from .models import (
    MatchStatus,
    Registration,
    RoundBye,
    RoundStatus,
    ScoreRecord,
    ScoreSubject,
    Tournament,
    TournamentMatch,
    TournamentPrize,
    TournamentStatus,
    TournamentSummary,
)
from .schema import SchemaManager

logger = logging.getLogger(__name__)

# Score ledger table and key column per subject kind
SCORE_TABLES = {
    ScoreSubject.COMPETITOR: ("competitor_scores", "competitor_id"),
    ScoreSubject.CLUB: ("club_scores", "club_id"),
}


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_tournament(row: sqlite3.Row) -> Tournament:
    return Tournament(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        category_id=row["category_id"],
        max_participants=row["max_participants"],
        status=TournamentStatus(row["status"]),
        judge_id=row["judge_id"],
        combat_duration_sec=row["combat_duration_sec"],
        winner_competitor_id=row["winner_competitor_id"],
        winner_club_id=row["winner_club_id"],
        created_at=row["created_at"],
        started_at=row["started_at"],
        finished_at=row["finished_at"],
    )


def _row_to_match(row: sqlite3.Row) -> TournamentMatch:
    return TournamentMatch(
        id=row["id"],
        tournament_id=row["tournament_id"],
        round_number=row["round_number"],
        competitor_a=row["competitor_a"],
        competitor_b=row["competitor_b"],
        judge_id=row["judge_id"],
        duration_sec=row["duration_sec"],
        status=MatchStatus(row["status"]),
        winner_id=row["winner_id"],
        victory_type=row["victory_type"],
        finished_at=row["finished_at"],
    )


def _row_to_registration(row: sqlite3.Row) -> Registration:
    return Registration(
        id=row["id"],
        tournament_id=row["tournament_id"],
        competitor_id=row["competitor_id"],
        club_id=row["club_id"],
        robot_id=row["robot_id"],
        category_id=row["category_id"],
        created_at=row["created_at"],
    )


class TournamentSession:
    """Queries bound to one connection, and therefore to one transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ------------------------------------------------------------------
    # Tournaments
    # ------------------------------------------------------------------

    def insert_tournament(self, tournament: Tournament) -> int:
        """Create a new tournament and return its ID."""
        cursor = self.conn.execute(
            """
            INSERT INTO tournaments (
                name, description, category_id, max_participants, status,
                judge_id, combat_duration_sec, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tournament.name,
                tournament.description,
                tournament.category_id,
                tournament.max_participants,
                tournament.status.value,
                tournament.judge_id,
                tournament.combat_duration_sec,
                utcnow(),
            ),
        )

        tournament_id = cursor.lastrowid
        if tournament_id is None:
            raise RuntimeError("Failed to get tournament ID from database")
        return tournament_id

    def get_tournament(self, tournament_id: int) -> Tournament | None:
        row = self.conn.execute(
            "SELECT * FROM tournaments WHERE id = ?", (tournament_id,)
        ).fetchone()
        return _row_to_tournament(row) if row else None

    def list_tournaments(
        self, limit: int | None = None, offset: int = 0
    ) -> List[TournamentSummary]:
        query = """
            SELECT id, name, category_id, status, max_participants, created_at,
                   winner_competitor_id
            FROM tournaments
            ORDER BY id DESC
        """

        params: List[Any] = []
        if limit:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])

        rows = self.conn.execute(query, params).fetchall()
        return [
            TournamentSummary(
                id=row["id"],
                name=row["name"],
                category_id=row["category_id"],
                status=TournamentStatus(row["status"]),
                max_participants=row["max_participants"],
                created_at=row["created_at"],
                winner_competitor_id=row["winner_competitor_id"],
            )
            for row in rows
        ]

    def update_tournament_status(
        self,
        tournament_id: int,
        expected: TournamentStatus,
        status: TournamentStatus,
        **kwargs,
    ) -> bool:
        """Compare-and-set the tournament status; False if it was not `expected`."""
        set_clauses = ["status = ?"]
        params: List[Any] = [status.value]

        for column in (
            "started_at",
            "finished_at",
            "winner_competitor_id",
            "winner_club_id",
        ):
            if column in kwargs:
                set_clauses.append(f"{column} = ?")
                params.append(kwargs[column])

        params.extend([tournament_id, expected.value])

        cursor = self.conn.execute(
            f"""
            UPDATE tournaments
            SET {', '.join(set_clauses)}
            WHERE id = ? AND status = ?
            """,
            params,
        )
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Registration ledger
    # ------------------------------------------------------------------

    def insert_registration(self, registration: Registration) -> int:
        """Add a registration; raises sqlite3.IntegrityError on duplicates."""
        cursor = self.conn.execute(
            """
            INSERT INTO tournament_registrations (
                tournament_id, competitor_id, club_id, robot_id, category_id,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                registration.tournament_id,
                registration.competitor_id,
                registration.club_id,
                registration.robot_id,
                registration.category_id,
                utcnow(),
            ),
        )

        registration_id = cursor.lastrowid
        if registration_id is None:
            raise RuntimeError("Failed to get registration ID from database")
        return registration_id

    def count_registrations(self, tournament_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM tournament_registrations WHERE tournament_id = ?",
            (tournament_id,),
        ).fetchone()
        return row[0]

    def list_registrations(self, tournament_id: int) -> List[Registration]:
        rows = self.conn.execute(
            """
            SELECT * FROM tournament_registrations
            WHERE tournament_id = ?
            ORDER BY id
            """,
            (tournament_id,),
        ).fetchall()
        return [_row_to_registration(row) for row in rows]

    def get_registration(
        self, tournament_id: int, competitor_id: int
    ) -> Registration | None:
        row = self.conn.execute(
            """
            SELECT * FROM tournament_registrations
            WHERE tournament_id = ? AND competitor_id = ?
            """,
            (tournament_id, competitor_id),
        ).fetchone()
        return _row_to_registration(row) if row else None

    # ------------------------------------------------------------------
    # Competitors and robots
    # ------------------------------------------------------------------

    def ensure_competitor(self, competitor_id: int, club_id: int) -> None:
        self.conn.execute(
            """
            INSERT INTO competitors (id, club_id) VALUES (?, ?)
            ON CONFLICT(id) DO UPDATE SET club_id = excluded.club_id
            """,
            (competitor_id, club_id),
        )

    def get_last_tournament_end(self, competitor_id: int) -> datetime | None:
        row = self.conn.execute(
            "SELECT last_tournament_end FROM competitors WHERE id = ?",
            (competitor_id,),
        ).fetchone()
        if not row or not row["last_tournament_end"]:
            return None
        return datetime.fromisoformat(row["last_tournament_end"])

    def mark_tournament_end(self, competitor_ids: List[int], ended_at: str) -> int:
        """Start the post-tournament block for every given competitor."""
        if not competitor_ids:
            return 0
        placeholders = ", ".join("?" for _ in competitor_ids)
        cursor = self.conn.execute(
            f"UPDATE competitors SET last_tournament_end = ? WHERE id IN ({placeholders})",
            [ended_at, *competitor_ids],
        )
        return cursor.rowcount

    def ensure_robot(self, robot_id: int, competitor_id: int) -> None:
        self.conn.execute(
            "INSERT OR IGNORE INTO robots (id, competitor_id) VALUES (?, ?)",
            (robot_id, competitor_id),
        )

    def get_robot_owner(self, robot_id: int) -> int | None:
        row = self.conn.execute(
            "SELECT competitor_id FROM robots WHERE id = ?", (robot_id,)
        ).fetchone()
        return row["competitor_id"] if row else None

    def get_robot_stats(self, robot_id: int) -> dict[str, int] | None:
        row = self.conn.execute(
            "SELECT wins, losses, matches_played FROM robots WHERE id = ?",
            (robot_id,),
        ).fetchone()
        return dict(row) if row else None

    def record_robot_result(self, robot_id: int, won: bool) -> bool:
        """Increment a robot's tallies in place."""
        column = "wins" if won else "losses"
        cursor = self.conn.execute(
            f"""
            UPDATE robots
            SET {column} = {column} + 1, matches_played = matches_played + 1
            WHERE id = ?
            """,
            (robot_id,),
        )
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def insert_match(self, match: TournamentMatch) -> TournamentMatch:
        cursor = self.conn.execute(
            """
            INSERT INTO tournament_matches (
                tournament_id, round_number, competitor_a, competitor_b,
                judge_id, duration_sec, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                match.tournament_id,
                match.round_number,
                match.competitor_a,
                match.competitor_b,
                match.judge_id,
                match.duration_sec,
                match.status.value,
            ),
        )

        match_id = cursor.lastrowid
        if match_id is None:
            raise RuntimeError("Failed to get match ID from database")
        return match.model_copy(update={"id": match_id})

    def get_match(self, match_id: int) -> TournamentMatch | None:
        row = self.conn.execute(
            "SELECT * FROM tournament_matches WHERE id = ?", (match_id,)
        ).fetchone()
        return _row_to_match(row) if row else None

    def get_matches(
        self, tournament_id: int, round_number: int | None = None
    ) -> List[TournamentMatch]:
        """Get matches for tournament, optionally filtered by round."""
        if round_number is not None:
            rows = self.conn.execute(
                """
                SELECT * FROM tournament_matches
                WHERE tournament_id = ? AND round_number = ?
                ORDER BY id
                """,
                (tournament_id, round_number),
            ).fetchall()
        else:
            rows = self.conn.execute(
                """
                SELECT * FROM tournament_matches
                WHERE tournament_id = ?
                ORDER BY round_number, id
                """,
                (tournament_id,),
            ).fetchall()

        return [_row_to_match(row) for row in rows]

    def finish_match(
        self, match_id: int, winner_id: int, victory_type: str | None
    ) -> bool:
        """Move a pending match to finished; False if it was already finished."""
        cursor = self.conn.execute(
            """
            UPDATE tournament_matches
            SET status = ?, winner_id = ?, victory_type = ?, finished_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                MatchStatus.FINISHED.value,
                winner_id,
                victory_type,
                utcnow(),
                match_id,
                MatchStatus.PENDING.value,
            ),
        )
        return cursor.rowcount > 0

    def get_round_winners(self, tournament_id: int, round_number: int) -> List[int]:
        """Winners of the finished matches of a round, in match creation order."""
        rows = self.conn.execute(
            """
            SELECT winner_id FROM tournament_matches
            WHERE tournament_id = ? AND round_number = ? AND status = ?
              AND winner_id IS NOT NULL
            ORDER BY id
            """,
            (tournament_id, round_number, MatchStatus.FINISHED.value),
        ).fetchall()
        return [row["winner_id"] for row in rows]

    def get_round_status(self, tournament_id: int, round_number: int) -> RoundStatus:
        rows = self.conn.execute(
            """
            SELECT status, COUNT(*) AS count
            FROM tournament_matches
            WHERE tournament_id = ? AND round_number = ?
            GROUP BY status
            """,
            (tournament_id, round_number),
        ).fetchall()

        status_counts = {row["status"]: row["count"] for row in rows}
        return RoundStatus(
            round_number=round_number,
            total_matches=sum(status_counts.values()),
            finished_matches=status_counts.get(MatchStatus.FINISHED.value, 0),
            pending_matches=status_counts.get(MatchStatus.PENDING.value, 0),
        )

    # ------------------------------------------------------------------
    # Byes
    # ------------------------------------------------------------------

    def insert_bye(self, bye: RoundBye) -> None:
        self.conn.execute(
            """
            INSERT INTO tournament_byes (tournament_id, round_number, competitor_id)
            VALUES (?, ?, ?)
            """,
            (bye.tournament_id, bye.round_number, bye.competitor_id),
        )

    def get_byes(
        self, tournament_id: int, round_number: int | None = None
    ) -> List[RoundBye]:
        query = "SELECT * FROM tournament_byes WHERE tournament_id = ?"
        params: List[Any] = [tournament_id]
        if round_number is not None:
            query += " AND round_number = ?"
            params.append(round_number)
        query += " ORDER BY round_number, id"

        rows = self.conn.execute(query, params).fetchall()
        return [
            RoundBye(
                tournament_id=row["tournament_id"],
                round_number=row["round_number"],
                competitor_id=row["competitor_id"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Prizes
    # ------------------------------------------------------------------

    def insert_prize(self, prize: TournamentPrize) -> int:
        cursor = self.conn.execute(
            """
            INSERT INTO tournament_prizes (
                tournament_id, competitor_id, club_id, prize, victory_type,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                prize.tournament_id,
                prize.competitor_id,
                prize.club_id,
                prize.prize,
                prize.victory_type,
                utcnow(),
            ),
        )

        prize_id = cursor.lastrowid
        if prize_id is None:
            raise RuntimeError("Failed to get prize ID from database")
        return prize_id

    def get_prize(self, tournament_id: int) -> TournamentPrize | None:
        row = self.conn.execute(
            "SELECT * FROM tournament_prizes WHERE tournament_id = ?",
            (tournament_id,),
        ).fetchone()
        if not row:
            return None
        return TournamentPrize(
            id=row["id"],
            tournament_id=row["tournament_id"],
            competitor_id=row["competitor_id"],
            club_id=row["club_id"],
            prize=row["prize"],
            victory_type=row["victory_type"],
            created_at=row["created_at"],
        )

    # ------------------------------------------------------------------
    # Score ledger
    # ------------------------------------------------------------------

    def increment_score(self, kind: ScoreSubject, subject_id: int, points: int) -> None:
        """Create-if-absent then add, as one statement."""
        table, key = SCORE_TABLES[kind]
        self.conn.execute(
            f"""
            INSERT INTO {table} ({key}, total_points) VALUES (?, ?)
            ON CONFLICT({key}) DO UPDATE
            SET total_points = total_points + excluded.total_points
            """,
            (subject_id, points),
        )

    def get_score(self, kind: ScoreSubject, subject_id: int) -> ScoreRecord | None:
        table, key = SCORE_TABLES[kind]
        row = self.conn.execute(
            f"SELECT total_points FROM {table} WHERE {key} = ?", (subject_id,)
        ).fetchone()
        if not row:
            return None
        return ScoreRecord(
            subject_id=subject_id, kind=kind, total_points=row["total_points"]
        )

    def count_scores(self, kind: ScoreSubject) -> int:
        table, _ = SCORE_TABLES[kind]
        return self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def rank_scores(
        self, kind: ScoreSubject, skip: int = 0, take: int = 50
    ) -> List[ScoreRecord]:
        table, key = SCORE_TABLES[kind]
        rows = self.conn.execute(
            f"""
            SELECT {key} AS subject_id, total_points FROM {table}
            ORDER BY total_points DESC, {key}
            LIMIT ? OFFSET ?
            """,
            (take, skip),
        ).fetchall()
        return [
            ScoreRecord(
                subject_id=row["subject_id"],
                kind=kind,
                total_points=row["total_points"],
            )
            for row in rows
        ]


class TournamentDatabaseManager:
    """Manages SQLite connections, schema and units of work for tournaments."""

    def __init__(self, db_path: str = "tournaments.db", busy_timeout_sec: float = 5.0):
        self.db_path = Path(db_path)
        self.busy_timeout_sec = busy_timeout_sec
        self.schema_manager = SchemaManager()
        self._init_database()

    def _init_database(self) -> None:
        """Initialize the database with required tables using schema manager."""
        if not self.schema_manager.validate_schema_files():
            raise RuntimeError("Database schema validation failed - missing schema files")

        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("BEGIN IMMEDIATE")
            self.schema_manager.initialize_database_schema(conn.cursor())
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Tournament database initialization failed: {e}")
            raise
        finally:
            conn.close()

        logger.info(f"Tournament database initialized at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        # Autocommit driver mode: transactions are opened explicitly below
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout_sec,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _get_connection(self, begin: str) -> Iterator[TournamentSession]:
        """Run one unit of work; commit on success, roll back on any error."""
        conn = None
        try:
            conn = self._connect()
            conn.execute(begin)
            yield TournamentSession(conn)
            conn.execute("COMMIT")
        except sqlite3.OperationalError as e:
            if conn is not None and conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Tournament database unavailable: {e}")
            raise StorageUnavailableError(f"Storage unavailable: {e}") from e
        except BaseException:
            if conn is not None and conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            if conn is not None:
                conn.close()

    def transaction(self):
        """Serializable write unit: takes the database write lock before any read."""
        return self._get_connection("BEGIN IMMEDIATE")

    def session(self):
        """Read-only unit with a consistent snapshot."""
        return self._get_connection("BEGIN")
