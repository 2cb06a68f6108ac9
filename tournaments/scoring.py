"""Score ledger for competitors and clubs."""

import logging

from config.settings import ScoringConfig

from .database import TournamentDatabaseManager, TournamentSession
from .models import Ranking, RankingEntry, ScoreRecord, ScoreSubject

logger = logging.getLogger(__name__)


class ScoringLedger:
    """Accumulates points per competitor and per club.

    Awards are applied with a single upsert-increment statement, so
    concurrent awards to the same subject all land. The ``award_*`` methods
    take the caller's session and never commit on their own; the result
    processor uses them inside its unit of work.
    """

    def __init__(self, db: TournamentDatabaseManager, config: ScoringConfig | None = None):
        self.db = db
        self.config = config or ScoringConfig()

    @property
    def points_per_win(self) -> int:
        return self.config.points_per_win

    @property
    def championship_bonus(self) -> int:
        return self.config.championship_bonus

    def award_in(
        self,
        session: TournamentSession,
        subject_id: int,
        kind: ScoreSubject,
        points: int,
    ) -> None:
        """Add points to a subject inside an open unit of work."""
        if points <= 0:
            raise ValueError(f"Awarded points must be positive, got {points}")
        session.increment_score(kind, subject_id, points)
        logger.debug(f"Awarded {points} points to {kind.value} {subject_id}")

    def award(self, subject_id: int, kind: ScoreSubject, points: int) -> ScoreRecord:
        """Add points to a subject in its own unit of work."""
        with self.db.transaction() as session:
            self.award_in(session, subject_id, kind, points)
            record = session.get_score(kind, subject_id)

        if record is None:
            raise RuntimeError(f"Score for {kind.value} {subject_id} missing after award")
        return record

    def award_match_win(
        self, session: TournamentSession, competitor_id: int, club_id: int | None
    ) -> None:
        self.award_in(session, competitor_id, ScoreSubject.COMPETITOR, self.points_per_win)
        if club_id is not None:
            self.award_in(session, club_id, ScoreSubject.CLUB, self.points_per_win)

    def award_championship(
        self, session: TournamentSession, competitor_id: int, club_id: int | None
    ) -> None:
        bonus = self.championship_bonus
        self.award_in(session, competitor_id, ScoreSubject.COMPETITOR, bonus)
        if club_id is not None:
            self.award_in(session, club_id, ScoreSubject.CLUB, bonus)

    def get_score(self, subject_id: int, kind: ScoreSubject) -> int:
        """Current points for a subject; zero if it was never awarded."""
        with self.db.session() as session:
            record = session.get_score(kind, subject_id)
        return record.total_points if record else 0

    def get_ranking(self, kind: ScoreSubject, skip: int = 0, take: int = 50) -> Ranking:
        with self.db.session() as session:
            total = session.count_scores(kind)
            records = session.rank_scores(kind, skip=skip, take=take)

        return Ranking(
            kind=kind,
            total=total,
            rankings=[
                RankingEntry(
                    position=skip + index + 1,
                    subject_id=record.subject_id,
                    total_points=record.total_points,
                )
                for index, record in enumerate(records)
            ],
        )

    def get_competitor_ranking(self, skip: int = 0, take: int = 50) -> Ranking:
        return self.get_ranking(ScoreSubject.COMPETITOR, skip=skip, take=take)

    def get_club_ranking(self, skip: int = 0, take: int = 50) -> Ranking:
        return self.get_ranking(ScoreSubject.CLUB, skip=skip, take=take)
