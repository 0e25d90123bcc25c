"""API dependencies for dependency injection."""

from fastapi import Request

from ..core.orchestrator import HousekeepingEngine


def get_engine(request: Request) -> HousekeepingEngine:
    """Engine built by the application factory."""
    return request.app.state.engine
