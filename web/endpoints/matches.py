"""Match result endpoints."""

from fastapi import APIRouter, Depends

from tournaments import TournamentAPI
from tournaments.api import Caller
from tournaments.models import MatchResultRequest
from web.dependencies import get_caller, get_tournament_api

router = APIRouter(prefix="/api")


@router.post("/matches/{match_id}/result")
def record_match_result(
    match_id: int,
    request: MatchResultRequest,
    caller: Caller = Depends(get_caller),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Record the winner of a match (assigned judge or administrator)."""
    return api.record_match_result(match_id, request, caller)
