"""Lifecycle predicates for tournaments, matches and rounds.

Pure functions with no I/O, shared by the bracket generator and the result
processor so that precondition logic lives in one place.
"""

from .models import MatchStatus, RoundStatus, Tournament, TournamentMatch, TournamentStatus

# Legal status transitions; finished and cancelled are terminal.
ALLOWED_TRANSITIONS: dict[TournamentStatus, frozenset[TournamentStatus]] = {
    TournamentStatus.DRAFT: frozenset(
        {TournamentStatus.ACTIVE, TournamentStatus.CANCELLED}
    ),
    TournamentStatus.ACTIVE: frozenset(
        {TournamentStatus.FINISHED, TournamentStatus.CANCELLED}
    ),
    TournamentStatus.FINISHED: frozenset(),
    TournamentStatus.CANCELLED: frozenset(),
}

MIN_ENTRANTS = 2


def can_transition(current: TournamentStatus, target: TournamentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def can_start(tournament: Tournament) -> bool:
    return tournament.status == TournamentStatus.DRAFT


def has_enough_entrants(entrant_count: int) -> bool:
    return entrant_count >= MIN_ENTRANTS


def can_register(tournament: Tournament, registration_count: int) -> bool:
    return (
        tournament.status == TournamentStatus.DRAFT
        and registration_count < tournament.max_participants
    )


def can_record_result(tournament: Tournament) -> bool:
    return tournament.status == TournamentStatus.ACTIVE


def is_match_finished(match: TournamentMatch) -> bool:
    return match.status == MatchStatus.FINISHED


def is_participant(match: TournamentMatch, competitor_id: int) -> bool:
    return competitor_id in match.competitors


def can_advance(round_status: RoundStatus) -> bool:
    """A round advances once it has matches and none of them is pending."""
    return round_status.all_finished


def can_cancel(tournament: Tournament) -> bool:
    return can_transition(tournament.status, TournamentStatus.CANCELLED)
