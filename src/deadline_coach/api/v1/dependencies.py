"""Shared API dependencies for identity and controller lookup."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from deadline_coach.core.settings import settings
from deadline_coach.services.registry import CountdownRegistry


def get_identity(request: Request) -> str:
    """Return the opaque caller identity supplied by the upstream auth layer.

    Raises:
        HTTPException: If the identity header is missing or blank
    """
    identity = request.headers.get(settings.identity_header, "").strip()
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.identity_header} header",
        )
    return identity


def get_registry(request: Request) -> CountdownRegistry:
    """Return the application-wide countdown registry."""
    registry: CountdownRegistry | None = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Countdown service is not ready",
        )
    return registry


IdentityDep = Annotated[str, Depends(get_identity)]
RegistryDep = Annotated[CountdownRegistry, Depends(get_registry)]
