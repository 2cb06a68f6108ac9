"""FastAPI web application for the combat tournament engine."""

from fastapi import FastAPI

from web.endpoints.matches import router as matches_router
from web.endpoints.rankings import router as rankings_router
from web.endpoints.system import router as system_router
from web.endpoints.tournaments import router as tournaments_router


def create_app() -> FastAPI:
    """Build the application with all routers mounted."""
    application = FastAPI(
        title="Combat Tournament Engine",
        description="Single-elimination robot combat tournaments",
        version="1.0.0",
    )

    application.include_router(system_router)
    application.include_router(tournaments_router)
    application.include_router(matches_router)
    application.include_router(rankings_router)

    return application


app: FastAPI = create_app()
