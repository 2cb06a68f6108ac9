"""Bracket generation for single-elimination tournaments."""

import logging
import random
from typing import Sequence, TypeVar

from config.settings import BracketConfig

from . import guards
from .database import TournamentDatabaseManager, TournamentSession, utcnow
from .exceptions import InsufficientEntrantsError, InvalidStateError, NotFoundError
from .models import RoundBye, StartResult, TournamentMatch, TournamentStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> list[T]:
    """Return a uniformly permuted copy of ``items``."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def pair_entrants(entrants: Sequence[int]) -> tuple[list[tuple[int, int]], int | None]:
    """Pair consecutive entrants; the last one is left over when the count is odd."""
    pairs = [
        (entrants[i], entrants[i + 1]) for i in range(0, len(entrants) - 1, 2)
    ]
    leftover = entrants[-1] if len(entrants) % 2 else None
    return pairs, leftover


class BracketGenerator:
    """Creates the matches of a round and starts tournaments."""

    def __init__(
        self,
        db: TournamentDatabaseManager,
        config: BracketConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.config = config or BracketConfig()
        self.rng = rng or random.Random(self.config.shuffle_seed)

    def create_round(
        self,
        session: TournamentSession,
        tournament_id: int,
        round_number: int,
        entrants: Sequence[int],
        judge_id: int,
        duration_sec: int,
    ) -> tuple[list[TournamentMatch], int | None, int | None]:
        """Insert pending matches for ``entrants`` in the order given.

        Returns the created matches, the competitor given a bye (if any) and
        the competitor dropped from the round (if any).
        """
        pairs, leftover = pair_entrants(entrants)

        matches = [
            session.insert_match(
                TournamentMatch(
                    tournament_id=tournament_id,
                    round_number=round_number,
                    competitor_a=competitor_a,
                    competitor_b=competitor_b,
                    judge_id=judge_id,
                    duration_sec=duration_sec,
                )
            )
            for competitor_a, competitor_b in pairs
        ]

        bye = dropped = None
        if leftover is not None:
            if self.config.odd_entrant_policy == "bye":
                session.insert_bye(
                    RoundBye(
                        tournament_id=tournament_id,
                        round_number=round_number,
                        competitor_id=leftover,
                    )
                )
                bye = leftover
                logger.info(
                    f"Tournament {tournament_id} round {round_number}: "
                    f"competitor {leftover} advances on a bye"
                )
            else:
                dropped = leftover
                logger.warning(
                    f"Tournament {tournament_id} round {round_number}: odd entrant "
                    f"count, competitor {leftover} has no match and is dropped"
                )

        logger.info(
            f"Created {len(matches)} matches for tournament {tournament_id} "
            f"round {round_number}"
        )
        return matches, bye, dropped

    def generate(self, tournament_id: int, judge_id: int, duration_sec: int) -> StartResult:
        """Pair all registrations into round 1 and move the tournament to active.

        The status check, match creation and status write share one
        write-locked unit of work, so of two concurrent calls only one can
        observe the draft status.
        """
        with self.db.transaction() as session:
            tournament = session.get_tournament(tournament_id)
            if tournament is None:
                raise NotFoundError(
                    f"Tournament {tournament_id} not found", tournament_id=tournament_id
                )

            if not guards.can_start(tournament):
                raise InvalidStateError(
                    f"Tournament {tournament_id} is {tournament.status.value}, "
                    "only draft tournaments can be started",
                    tournament_id=tournament_id,
                    status=tournament.status.value,
                )

            registrations = session.list_registrations(tournament_id)
            if not guards.has_enough_entrants(len(registrations)):
                raise InsufficientEntrantsError(
                    f"Tournament {tournament_id} needs at least "
                    f"{guards.MIN_ENTRANTS} registrations, has {len(registrations)}",
                    tournament_id=tournament_id,
                    registrations=len(registrations),
                )

            shuffled = fisher_yates_shuffle(
                [registration.competitor_id for registration in registrations], self.rng
            )
            matches, bye, dropped = self.create_round(
                session, tournament_id, 1, shuffled, judge_id, duration_sec
            )

            if not session.update_tournament_status(
                tournament_id,
                TournamentStatus.DRAFT,
                TournamentStatus.ACTIVE,
                started_at=utcnow(),
            ):
                raise InvalidStateError(
                    f"Tournament {tournament_id} left draft while starting",
                    tournament_id=tournament_id,
                )

        logger.info(
            f"Started tournament {tournament_id} with {len(matches)} matches "
            f"({len(registrations)} entrants)"
        )
        return StartResult(
            tournament_id=tournament_id,
            matches=matches,
            total_paired=len(matches) * 2,
            byes=[bye] if bye is not None else [],
            dropped=[dropped] if dropped is not None else [],
        )
