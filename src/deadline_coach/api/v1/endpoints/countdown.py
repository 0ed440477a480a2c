"""Countdown endpoints for Deadline Coach API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from deadline_coach.api.v1.dependencies import IdentityDep, RegistryDep
from deadline_coach.schemas.countdown import CountdownResponse, CountdownStart
from deadline_coach.services.controller import ControllerStateError
from deadline_coach.services.countdown_input import DayCountError

router = APIRouter(prefix="/countdown", tags=["countdown"])


@router.get("", response_model=CountdownResponse)
async def get_countdown(identity: IdentityDep, registry: RegistryDep) -> CountdownResponse:
    """Return the caller's countdown, loading it on first access."""
    controller = await registry.get(identity)
    return CountdownResponse.from_snapshot(controller.snapshot())


@router.post("", response_model=CountdownResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_countdown(
    payload: CountdownStart,
    identity: IdentityDep,
    registry: RegistryDep,
) -> CountdownResponse:
    """Start a countdown of ``payload.days`` days.

    Args:
        payload: Requested day count
        identity: Caller identity
        registry: Controller registry

    Returns:
        The countdown state right after the first tick

    Raises:
        HTTPException: 409 if a countdown is already running or finished,
            422 if the day count is rejected
    """
    controller = await registry.get(identity)
    try:
        snapshot = await controller.submit_days(payload.days)
    except ControllerStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except DayCountError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return CountdownResponse.from_snapshot(snapshot)


@router.post("/reset", response_model=CountdownResponse)
async def reset_countdown(identity: IdentityDep, registry: RegistryDep) -> CountdownResponse:
    """Discard the caller's countdown and return to awaiting input."""
    controller = await registry.get(identity)
    snapshot = await controller.reset()
    return CountdownResponse.from_snapshot(snapshot)
