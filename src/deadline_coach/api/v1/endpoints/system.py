"""System and transparency endpoints for Deadline Coach API."""

from __future__ import annotations

from fastapi import APIRouter

from deadline_coach.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "countdown": {
            "min_days": settings.min_days,
            "max_days": settings.max_days,
            "deadline_hour": settings.deadline_hour,
            "tick_interval_seconds": settings.tick_interval_seconds,
        },
        "generation": {
            "enabled": bool(settings.generation_api_key),
            "model": settings.generation_model,
            "max_retries": settings.generation_max_retries,
            "backoff_schedule_seconds": settings.generation_backoff_schedule,
        },
    }
