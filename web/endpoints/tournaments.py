"""Tournament management endpoints."""

from fastapi import APIRouter, Depends

from tournaments import TournamentAPI
from tournaments.api import Caller
from tournaments.models import (
    RegistrationRequest,
    StartTournamentRequest,
    TournamentCreateRequest,
)
from web.dependencies import get_caller, get_tournament_api

router = APIRouter(prefix="/api")


@router.post("/tournaments", status_code=201)
def create_tournament(
    request: TournamentCreateRequest,
    caller: Caller = Depends(get_caller),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Create a new tournament in draft status."""
    return api.create_tournament(request, caller)


@router.get("/tournaments")
def list_tournaments(
    limit: int | None = None,
    offset: int = 0,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """List all tournaments."""
    return api.list_tournaments(limit, offset)


@router.get("/tournaments/{tournament_id}")
def get_tournament(tournament_id: int, api: TournamentAPI = Depends(get_tournament_api)):
    """Get tournament details."""
    return api.get_tournament(tournament_id)


@router.post("/tournaments/{tournament_id}/registrations", status_code=201)
def register_entrant(
    tournament_id: int,
    request: RegistrationRequest,
    caller: Caller = Depends(get_caller),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Register a competitor, club and robot in a draft tournament."""
    return api.register_entrant(tournament_id, request, caller)


@router.get("/tournaments/{tournament_id}/registrations")
def get_registrations(tournament_id: int, api: TournamentAPI = Depends(get_tournament_api)):
    """Get all registrations for a tournament."""
    return api.get_registrations(tournament_id)


@router.post("/tournaments/{tournament_id}/start")
def start_tournament(
    tournament_id: int,
    request: StartTournamentRequest | None = None,
    caller: Caller = Depends(get_caller),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Start a tournament and generate its first round."""
    return api.start_tournament(tournament_id, request or StartTournamentRequest(), caller)


@router.post("/tournaments/{tournament_id}/cancel")
def cancel_tournament(
    tournament_id: int,
    caller: Caller = Depends(get_caller),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Cancel a tournament."""
    return api.cancel_tournament(tournament_id, caller)


@router.get("/tournaments/{tournament_id}/bracket")
def get_tournament_bracket(
    tournament_id: int, api: TournamentAPI = Depends(get_tournament_api)
):
    """Get tournament bracket visualization data."""
    return api.get_bracket(tournament_id)


@router.get("/tournaments/{tournament_id}/matches")
def get_tournament_matches(
    tournament_id: int,
    round_number: int | None = None,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Get tournament matches, optionally filtered by round."""
    return api.get_matches(tournament_id, round_number)


@router.get("/tournaments/{tournament_id}/rounds/{round_number}/status")
def get_round_status(
    tournament_id: int,
    round_number: int,
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Get status of all matches in a specific round."""
    return api.get_round_status(tournament_id, round_number)
