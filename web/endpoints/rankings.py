"""Ranking endpoints."""

from fastapi import APIRouter, Depends, Query

from tournaments import TournamentAPI
from web.dependencies import get_tournament_api

router = APIRouter(prefix="/api")


@router.get("/rankings/competitors")
def get_competitor_ranking(
    skip: int = Query(default=0, ge=0),
    take: int = Query(default=50, ge=1, le=200),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Competitors ordered by accumulated points."""
    return api.get_ranking("competitors", skip=skip, take=take)


@router.get("/rankings/clubs")
def get_club_ranking(
    skip: int = Query(default=0, ge=0),
    take: int = Query(default=50, ge=1, le=200),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Clubs ordered by accumulated points."""
    return api.get_ranking("clubs", skip=skip, take=take)
