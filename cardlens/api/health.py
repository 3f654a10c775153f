"""
Health check endpoints.

Provides liveness and readiness checks. Readiness requires a loaded catalog.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from cardlens.api.dependencies import get_optional_identifier
from cardlens.services.identification import CardIdentifier

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    catalog: str | None = None
    cards: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness check.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    identifier: Annotated[CardIdentifier | None, Depends(get_optional_identifier)],
) -> HealthResponse:
    """
    Readiness check.

    Returns ready once the catalog is loaded and indexed, 503 otherwise.
    """
    if identifier is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", catalog="not loaded")
    return HealthResponse(status="ready", catalog="loaded", cards=len(identifier.index))
