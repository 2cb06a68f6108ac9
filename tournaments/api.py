"""Tournament API endpoint handlers."""

import logging
from typing import Any

from fastapi import HTTPException
from pydantic import BaseModel

from .exceptions import (
    AlreadyFinishedError,
    AlreadyRegisteredError,
    InsufficientEntrantsError,
    InvalidStateError,
    InvalidWinnerError,
    NotFoundError,
    RegistrationBlockedError,
    RobotOwnershipError,
    StorageUnavailableError,
    TournamentError,
)
from .manager import TournamentManager
from .models import (
    MatchResultRequest,
    RegistrationRequest,
    StartTournamentRequest,
    TournamentCreateRequest,
)

logger = logging.getLogger(__name__)

# Stable HTTP status per error kind
ERROR_STATUS: dict[type[TournamentError], int] = {
    NotFoundError: 404,
    InsufficientEntrantsError: 400,
    InvalidStateError: 400,
    InvalidWinnerError: 422,
    AlreadyFinishedError: 409,
    AlreadyRegisteredError: 409,
    RegistrationBlockedError: 403,
    RobotOwnershipError: 403,
    StorageUnavailableError: 503,
}

ADMIN_ROLE = "admin"
JUDGE_ROLE = "judge"


class Caller(BaseModel):
    """Identity of the authenticated caller, as supplied by the gateway."""

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def status_for(error: TournamentError) -> int:
    # Most specific class first, so subclasses keep their own status
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def _to_http(error: TournamentError) -> HTTPException:
    status = status_for(error)
    if status >= 500:
        logger.error(f"Tournament operation failed: {error}")
    else:
        logger.warning(f"Tournament operation rejected ({error.kind}): {error}")
    return HTTPException(status_code=status, detail=error.to_dict())


class TournamentAPI:
    """FastAPI endpoint handlers for tournament operations."""

    def __init__(self, tournament_manager: TournamentManager):
        self.manager = tournament_manager

    # ------------------------------------------------------------------
    # Authorization checks
    # ------------------------------------------------------------------

    def require_admin(self, caller: Caller) -> None:
        if not caller.is_admin:
            raise HTTPException(
                status_code=403, detail="Only administrators can perform this action"
            )

    def require_match_judge(self, caller: Caller, match_id: int) -> None:
        """Administrators, or the judge assigned to the match."""
        if caller.is_admin:
            return
        try:
            match = self.manager.get_match(match_id)
        except TournamentError as e:
            raise _to_http(e)
        if caller.role != JUDGE_ROLE or caller.user_id != match.judge_id:
            raise HTTPException(
                status_code=403,
                detail="Only the assigned judge or an administrator can record results",
            )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def create_tournament(
        self, request: TournamentCreateRequest, caller: Caller
    ) -> dict[str, Any]:
        """Create a new tournament."""
        self.require_admin(caller)
        try:
            tournament = self.manager.create_tournament(request)
            return {
                "message": f"Tournament '{tournament.name}' created successfully",
                "tournament": tournament.model_dump(mode="json"),
            }
        except TournamentError as e:
            raise _to_http(e)

    def list_tournaments(self, limit: int | None = None, offset: int = 0) -> dict[str, Any]:
        """List all tournaments."""
        try:
            tournaments = self.manager.list_tournaments(limit, offset)
            return {
                "tournaments": [t.model_dump(mode="json") for t in tournaments],
                "count": len(tournaments),
            }
        except TournamentError as e:
            raise _to_http(e)

    def get_tournament(self, tournament_id: int) -> dict[str, Any]:
        """Get tournament details."""
        try:
            tournament = self.manager.get_tournament(tournament_id)
            if tournament is None:
                raise NotFoundError(
                    f"Tournament {tournament_id} not found", tournament_id=tournament_id
                )
        except TournamentError as e:
            raise _to_http(e)

        return tournament.model_dump(mode="json")

    def register_entrant(
        self, tournament_id: int, request: RegistrationRequest, caller: Caller
    ) -> dict[str, Any]:
        """Register an entrant in a draft tournament.

        Competitors register themselves; administrators may register anyone.
        """
        if not caller.is_admin and caller.user_id != request.competitor_id:
            raise HTTPException(
                status_code=403, detail="Competitors can only register themselves"
            )
        try:
            registration = self.manager.register_entrant(
                tournament_id,
                competitor_id=request.competitor_id,
                club_id=request.club_id,
                robot_id=request.robot_id,
            )
            return {
                "message": "Registration created successfully",
                "registration": registration.model_dump(mode="json"),
            }
        except TournamentError as e:
            raise _to_http(e)

    def get_registrations(self, tournament_id: int) -> dict[str, Any]:
        try:
            registrations = self.manager.list_registrations(tournament_id)
            return {
                "tournament_id": tournament_id,
                "registrations": [r.model_dump(mode="json") for r in registrations],
                "count": len(registrations),
            }
        except TournamentError as e:
            raise _to_http(e)

    def start_tournament(
        self, tournament_id: int, request: StartTournamentRequest, caller: Caller
    ) -> dict[str, Any]:
        """Start a tournament and generate its first round."""
        self.require_admin(caller)
        try:
            result = self.manager.start_tournament(
                tournament_id,
                judge_id=request.judge_id,
                duration_sec=request.duration_sec,
            )
            return {
                "message": "Tournament started successfully",
                "tournament_id": tournament_id,
                "matches": [m.model_dump(mode="json") for m in result.matches],
                "total_paired": result.total_paired,
                "byes": result.byes,
                "dropped": result.dropped,
            }
        except TournamentError as e:
            raise _to_http(e)

    def record_match_result(
        self, match_id: int, request: MatchResultRequest, caller: Caller
    ) -> dict[str, Any]:
        """Record the winner of a match."""
        self.require_match_judge(caller, match_id)
        try:
            outcome = self.manager.record_match_result(
                match_id, request.winner_id, request.victory_type
            )
            return {
                "message": "Result recorded successfully",
                "match": outcome.match.model_dump(mode="json"),
                "round_completed": outcome.round_completed,
                "next_round_matches": [
                    m.model_dump(mode="json") for m in outcome.next_round_matches
                ],
                "champion_id": outcome.champion_id,
                "tournament_status": outcome.tournament_status.value,
            }
        except TournamentError as e:
            raise _to_http(e)

    def cancel_tournament(self, tournament_id: int, caller: Caller) -> dict[str, Any]:
        """Cancel a tournament."""
        self.require_admin(caller)
        try:
            tournament = self.manager.cancel_tournament(tournament_id)
            return {
                "tournament_id": tournament_id,
                "message": "Tournament cancelled successfully",
                "status": tournament.status.value,
            }
        except TournamentError as e:
            raise _to_http(e)

    def get_matches(
        self, tournament_id: int, round_number: int | None = None
    ) -> dict[str, Any]:
        """Get tournament matches, optionally filtered by round."""
        try:
            matches = self.manager.get_matches(tournament_id, round_number)
            return {
                "tournament_id": tournament_id,
                "round_number": round_number,
                "matches": [m.model_dump(mode="json") for m in matches],
                "count": len(matches),
            }
        except TournamentError as e:
            raise _to_http(e)

    def get_bracket(self, tournament_id: int) -> dict[str, Any]:
        """Get tournament bracket visualization data."""
        try:
            bracket_data = self.manager.get_bracket_view(tournament_id)
            if bracket_data is None:
                raise NotFoundError(
                    f"Tournament {tournament_id} not found", tournament_id=tournament_id
                )
        except TournamentError as e:
            raise _to_http(e)

        return bracket_data.model_dump(mode="json")

    def get_round_status(self, tournament_id: int, round_number: int) -> dict[str, Any]:
        """Get status of all matches in a specific round."""
        try:
            round_status = self.manager.get_round_status(tournament_id, round_number)
        except TournamentError as e:
            raise _to_http(e)

        return {
            "tournament_id": tournament_id,
            **round_status.model_dump(),
            "all_finished": round_status.all_finished,
            "completion_percentage": (
                round_status.finished_matches / round_status.total_matches * 100
                if round_status.total_matches > 0
                else 0
            ),
        }

    def get_ranking(self, kind: str, skip: int = 0, take: int = 50) -> dict[str, Any]:
        try:
            if kind == "clubs":
                ranking = self.manager.get_club_ranking(skip=skip, take=take)
            else:
                ranking = self.manager.get_competitor_ranking(skip=skip, take=take)
            return ranking.model_dump(mode="json")
        except TournamentError as e:
            raise _to_http(e)
