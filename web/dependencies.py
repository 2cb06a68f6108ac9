"""Shared FastAPI dependencies."""

import logging

from fastapi import Header, HTTPException

from config.settings import get_default_config
from tournaments import TournamentAPI, TournamentManager
from tournaments.api import Caller

logger = logging.getLogger(__name__)

tournament_api: TournamentAPI | None = None


def get_tournament_api() -> TournamentAPI:
    """Get or create tournament API instance."""
    global tournament_api
    if tournament_api is None:
        config = get_default_config()
        tournament_api = TournamentAPI(TournamentManager(config=config))
        logger.info(f"Tournament API ready (database: {config.storage.db_path})")
    return tournament_api


def get_caller(
    x_user_id: int | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Caller:
    """Caller identity forwarded by the authenticating gateway."""
    if x_user_id is None or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    return Caller(user_id=x_user_id, role=x_user_role)
