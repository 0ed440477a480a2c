# src/deadline_coach/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .countdown import router as countdown_router
from .system import router as system_router

__all__ = ["countdown_router", "system_router"]
