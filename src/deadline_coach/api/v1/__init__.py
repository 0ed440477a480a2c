# src/deadline_coach/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import countdown_router, system_router

__all__ = ["countdown_router", "system_router"]
