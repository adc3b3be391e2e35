"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from voting_portal.api.routes import auth, health, results, subjects, votes


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(votes.router, tags=["votes"])
    api_router.include_router(results.router, tags=["results"])
    api_router.include_router(subjects.router, tags=["subjects"])

    application.include_router(api_router)


__all__ = ["register_routes"]
