"""Tournament management: lifecycle, registrations, brackets and results."""

import logging
import random
import sqlite3
from datetime import datetime, timedelta, timezone

from config.settings import AppConfig, get_default_config

from . import guards
from .bracket import BracketGenerator
from .database import TournamentDatabaseManager
from .exceptions import (
    AlreadyRegisteredError,
    InvalidStateError,
    NotFoundError,
    RegistrationBlockedError,
    RobotOwnershipError,
)
from .models import (
    BracketData,
    MatchOutcome,
    Ranking,
    Registration,
    RoundStatus,
    StartResult,
    Tournament,
    TournamentCreateRequest,
    TournamentMatch,
    TournamentPrize,
    TournamentStatus,
    TournamentSummary,
)
from .results import ResultProcessor
from .scoring import ScoringLedger

logger = logging.getLogger(__name__)


class TournamentManager:
    """Manages tournament creation, progression, and bracket generation."""

    def __init__(
        self,
        db_path: str | None = None,
        config: AppConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config or get_default_config()
        self.db = TournamentDatabaseManager(
            db_path or self.config.storage.db_path,
            busy_timeout_sec=self.config.storage.busy_timeout_sec,
        )
        self.scoring = ScoringLedger(self.db, self.config.scoring)
        self.bracket = BracketGenerator(self.db, self.config.bracket, rng=rng)
        self.results = ResultProcessor(self.db, self.bracket, self.scoring)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_tournament(self, request: TournamentCreateRequest) -> Tournament:
        """Create a tournament in draft status."""
        with self.db.transaction() as session:
            tournament_id = session.insert_tournament(
                Tournament(
                    name=request.name,
                    description=request.description,
                    category_id=request.category_id,
                    max_participants=request.max_participants,
                    judge_id=request.judge_id,
                    combat_duration_sec=request.combat_duration_sec,
                )
            )
            tournament = session.get_tournament(tournament_id)

        if tournament is None:
            raise RuntimeError(f"Tournament {tournament_id} missing after insert")

        logger.info(f"Created tournament {tournament_id}: {request.name}")
        return tournament

    def start_tournament(
        self,
        tournament_id: int,
        judge_id: int | None = None,
        duration_sec: int | None = None,
    ) -> StartResult:
        """Generate round 1 and activate the tournament.

        The judge and duration default to the ones stored on the tournament,
        then to the configured combat duration.
        """
        tournament = self._require_tournament(tournament_id)

        judge_id = judge_id or tournament.judge_id
        if judge_id is None:
            raise InvalidStateError(
                f"Tournament {tournament_id} has no judge assigned",
                tournament_id=tournament_id,
            )

        duration_sec = (
            duration_sec
            or tournament.combat_duration_sec
            or self.config.bracket.default_combat_duration_sec
        )
        return self.bracket.generate(tournament_id, judge_id, duration_sec)

    def record_match_result(
        self, match_id: int, winner_id: int, victory_type: str | None = None
    ) -> MatchOutcome:
        return self.results.record_result(match_id, winner_id, victory_type)

    def cancel_tournament(self, tournament_id: int) -> Tournament:
        """Cancel a draft or active tournament."""
        with self.db.transaction() as session:
            tournament = session.get_tournament(tournament_id)
            if tournament is None:
                raise NotFoundError(
                    f"Tournament {tournament_id} not found", tournament_id=tournament_id
                )

            if not guards.can_cancel(tournament):
                raise InvalidStateError(
                    f"Tournament {tournament_id} is {tournament.status.value} "
                    "and cannot be cancelled",
                    tournament_id=tournament_id,
                    status=tournament.status.value,
                )

            session.update_tournament_status(
                tournament_id, tournament.status, TournamentStatus.CANCELLED
            )
            cancelled = session.get_tournament(tournament_id)

        logger.info(f"Cancelled tournament {tournament_id}")
        return cancelled or tournament

    # ------------------------------------------------------------------
    # Registration ledger
    # ------------------------------------------------------------------

    def register_entrant(
        self, tournament_id: int, competitor_id: int, club_id: int, robot_id: int
    ) -> Registration:
        """Register a competitor, their club and robot in a draft tournament."""
        with self.db.transaction() as session:
            tournament = session.get_tournament(tournament_id)
            if tournament is None:
                raise NotFoundError(
                    f"Tournament {tournament_id} not found", tournament_id=tournament_id
                )

            count = session.count_registrations(tournament_id)
            if not guards.can_register(tournament, count):
                raise InvalidStateError(
                    f"Tournament {tournament_id} is not open for registration "
                    f"({tournament.status.value}, {count}/{tournament.max_participants})",
                    tournament_id=tournament_id,
                    status=tournament.status.value,
                )

            blocked_until = self._blocked_until(
                session.get_last_tournament_end(competitor_id)
            )
            if blocked_until is not None:
                raise RegistrationBlockedError(
                    f"Competitor {competitor_id} is blocked until "
                    f"{blocked_until.isoformat()}",
                    competitor_id=competitor_id,
                    blocked_until=blocked_until.isoformat(),
                )

            session.ensure_competitor(competitor_id, club_id)
            session.ensure_robot(robot_id, competitor_id)
            owner_id = session.get_robot_owner(robot_id)
            if owner_id != competitor_id:
                raise RobotOwnershipError(
                    f"Robot {robot_id} does not belong to competitor {competitor_id}",
                    robot_id=robot_id,
                    competitor_id=competitor_id,
                )

            registration = Registration(
                tournament_id=tournament_id,
                competitor_id=competitor_id,
                club_id=club_id,
                robot_id=robot_id,
                category_id=tournament.category_id,
            )
            try:
                registration_id = session.insert_registration(registration)
            except sqlite3.IntegrityError as e:
                raise AlreadyRegisteredError(
                    f"Competitor {competitor_id} or club {club_id} is already "
                    f"registered in tournament {tournament_id}",
                    tournament_id=tournament_id,
                    competitor_id=competitor_id,
                    club_id=club_id,
                ) from e

        logger.info(
            f"Registered competitor {competitor_id} (club {club_id}, robot {robot_id}) "
            f"in tournament {tournament_id}"
        )
        return registration.model_copy(update={"id": registration_id})

    def list_registrations(self, tournament_id: int) -> list[Registration]:
        self._require_tournament(tournament_id)
        with self.db.session() as session:
            return session.list_registrations(tournament_id)

    def is_blocked(self, competitor_id: int) -> bool:
        with self.db.session() as session:
            last_end = session.get_last_tournament_end(competitor_id)
        return self._blocked_until(last_end) is not None

    def _blocked_until(self, last_end: datetime | None) -> datetime | None:
        if last_end is None:
            return None
        if last_end.tzinfo is None:
            last_end = last_end.replace(tzinfo=timezone.utc)
        until = last_end + timedelta(days=self.config.registration.post_tournament_block_days)
        return until if datetime.now(timezone.utc) < until else None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _require_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.get_tournament(tournament_id)
        if tournament is None:
            raise NotFoundError(
                f"Tournament {tournament_id} not found", tournament_id=tournament_id
            )
        return tournament

    def get_tournament(self, tournament_id: int) -> Tournament | None:
        with self.db.session() as session:
            return session.get_tournament(tournament_id)

    def list_tournaments(
        self, limit: int | None = None, offset: int = 0
    ) -> list[TournamentSummary]:
        with self.db.session() as session:
            return session.list_tournaments(limit, offset)

    def get_match(self, match_id: int) -> TournamentMatch:
        with self.db.session() as session:
            match = session.get_match(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found", match_id=match_id)
        return match

    def get_matches(
        self, tournament_id: int, round_number: int | None = None
    ) -> list[TournamentMatch]:
        self._require_tournament(tournament_id)
        with self.db.session() as session:
            return session.get_matches(tournament_id, round_number)

    def get_round_status(self, tournament_id: int, round_number: int) -> RoundStatus:
        self._require_tournament(tournament_id)
        with self.db.session() as session:
            return session.get_round_status(tournament_id, round_number)

    def get_prize(self, tournament_id: int) -> TournamentPrize | None:
        with self.db.session() as session:
            return session.get_prize(tournament_id)

    def get_bracket_view(self, tournament_id: int) -> BracketData | None:
        """Get bracket visualization data."""
        with self.db.session() as session:
            tournament = session.get_tournament(tournament_id)
            if tournament is None:
                return None

            return BracketData(
                tournament=tournament,
                registrations=session.list_registrations(tournament_id),
                matches=session.get_matches(tournament_id),
                byes=session.get_byes(tournament_id),
                prize=session.get_prize(tournament_id),
            )

    def get_competitor_ranking(self, skip: int = 0, take: int = 50) -> Ranking:
        return self.scoring.get_competitor_ranking(skip=skip, take=take)

    def get_club_ranking(self, skip: int = 0, take: int = 50) -> Ranking:
        return self.scoring.get_club_ranking(skip=skip, take=take)
