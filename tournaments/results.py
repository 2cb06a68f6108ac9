"""Match result processing and round advancement."""

import logging

from . import guards
from .bracket import BracketGenerator
from .database import TournamentDatabaseManager, TournamentSession, utcnow
from .exceptions import (
    AlreadyFinishedError,
    InvalidStateError,
    InvalidWinnerError,
    NotFoundError,
)
from .models import (
    MatchOutcome,
    Tournament,
    TournamentMatch,
    TournamentPrize,
    TournamentStatus,
)
from .scoring import ScoringLedger

logger = logging.getLogger(__name__)

CHAMPION_PRIZE = "Tournament Champion"
CHAMPION_VICTORY_TYPE = "championship"


class ResultProcessor:
    """Records match outcomes and drives the tournament forward.

    Each call to :meth:`record_result` is one write-locked unit of work:
    scoring the match, updating robot tallies and points, detecting round
    completion and then either creating the next round or finalizing the
    tournament all commit together or not at all. Because the write lock is
    taken before the match is read, only the submission that finishes the
    last pending match of a round observes the round as complete.
    """

    def __init__(
        self,
        db: TournamentDatabaseManager,
        bracket: BracketGenerator,
        scoring: ScoringLedger,
    ):
        self.db = db
        self.bracket = bracket
        self.scoring = scoring

    def record_result(
        self, match_id: int, winner_id: int, victory_type: str | None = None
    ) -> MatchOutcome:
        with self.db.transaction() as session:
            match = session.get_match(match_id)
            if match is None:
                raise NotFoundError(f"Match {match_id} not found", match_id=match_id)

            if guards.is_match_finished(match):
                raise AlreadyFinishedError(
                    f"Match {match_id} already finished",
                    match_id=match_id,
                    winner_id=match.winner_id,
                )

            tournament = session.get_tournament(match.tournament_id)
            if tournament is None:
                raise NotFoundError(
                    f"Tournament {match.tournament_id} not found",
                    tournament_id=match.tournament_id,
                )
            if not guards.can_record_result(tournament):
                raise InvalidStateError(
                    f"Results can only be recorded for active tournaments, "
                    f"tournament {tournament.id} is {tournament.status.value}",
                    tournament_id=tournament.id,
                    status=tournament.status.value,
                )

            if not guards.is_participant(match, winner_id):
                raise InvalidWinnerError(
                    f"Competitor {winner_id} is not part of match {match_id}",
                    match_id=match_id,
                    winner_id=winner_id,
                    competitors=list(match.competitors),
                )

            loser_id = match.opponent_of(winner_id)

            if not session.finish_match(match_id, winner_id, victory_type):
                raise AlreadyFinishedError(
                    f"Match {match_id} already finished", match_id=match_id
                )

            winner_club_id = self._update_robots(session, match, winner_id, loser_id)
            self.scoring.award_match_win(session, winner_id, winner_club_id)

            outcome = self._advance(session, tournament, match)

            updated = session.get_match(match_id)
            if updated is None:
                raise RuntimeError(f"Match {match_id} vanished while recording its result")

        logger.info(
            f"Match {match_id} finished: {winner_id} beat {loser_id}"
            + (f" by {victory_type}" if victory_type else "")
        )
        return MatchOutcome(match=updated, loser_id=loser_id, **outcome)

    def _update_robots(
        self,
        session: TournamentSession,
        match: TournamentMatch,
        winner_id: int,
        loser_id: int,
    ) -> int | None:
        """Update both robots' tallies; returns the winner's club."""
        winner_registration = session.get_registration(match.tournament_id, winner_id)
        loser_registration = session.get_registration(match.tournament_id, loser_id)

        if winner_registration:
            session.record_robot_result(winner_registration.robot_id, won=True)
        else:
            logger.warning(
                f"No registration for winner {winner_id} in tournament "
                f"{match.tournament_id}, robot stats not updated"
            )

        if loser_registration:
            session.record_robot_result(loser_registration.robot_id, won=False)
        else:
            logger.warning(
                f"No registration for loser {loser_id} in tournament "
                f"{match.tournament_id}, robot stats not updated"
            )

        return winner_registration.club_id if winner_registration else None

    def _advance(
        self,
        session: TournamentSession,
        tournament: Tournament,
        match: TournamentMatch,
    ) -> dict:
        """Create the next round or crown the champion once the round is complete."""
        tournament_id = match.tournament_id
        round_status = session.get_round_status(tournament_id, match.round_number)

        if not guards.can_advance(round_status):
            return {
                "round_completed": False,
                "tournament_status": tournament.status,
            }

        winners = session.get_round_winners(tournament_id, match.round_number)
        winners.extend(
            bye.competitor_id
            for bye in session.get_byes(tournament_id, match.round_number)
        )

        logger.info(
            f"Tournament {tournament_id} round {match.round_number} complete, "
            f"{len(winners)} competitors remain"
        )

        if len(winners) == 1:
            self._finalize(session, tournament_id, winners[0])
            return {
                "round_completed": True,
                "champion_id": winners[0],
                "tournament_status": TournamentStatus.FINISHED,
            }

        next_matches, _, _ = self.bracket.create_round(
            session,
            tournament_id,
            match.round_number + 1,
            winners,
            match.judge_id,
            match.duration_sec,
        )
        return {
            "round_completed": True,
            "next_round_matches": next_matches,
            "tournament_status": tournament.status,
        }

    def _finalize(
        self, session: TournamentSession, tournament_id: int, champion_id: int
    ) -> None:
        registration = session.get_registration(tournament_id, champion_id)
        club_id = registration.club_id if registration else None
        finished_at = utcnow()

        if not session.update_tournament_status(
            tournament_id,
            TournamentStatus.ACTIVE,
            TournamentStatus.FINISHED,
            finished_at=finished_at,
            winner_competitor_id=champion_id,
            winner_club_id=club_id,
        ):
            raise InvalidStateError(
                f"Tournament {tournament_id} is no longer active",
                tournament_id=tournament_id,
            )

        session.insert_prize(
            TournamentPrize(
                tournament_id=tournament_id,
                competitor_id=champion_id,
                club_id=club_id,
                prize=CHAMPION_PRIZE,
                victory_type=CHAMPION_VICTORY_TYPE,
            )
        )
        self.scoring.award_championship(session, champion_id, club_id)

        registrants = [r.competitor_id for r in session.list_registrations(tournament_id)]
        blocked = session.mark_tournament_end(registrants, finished_at)

        logger.info(
            f"Tournament {tournament_id} finished, champion: {champion_id} "
            f"(club {club_id}); post-tournament block started for {blocked} competitors"
        )
