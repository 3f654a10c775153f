"""
Request dependencies.

The identifier is built once in the application lifespan and stored on
app.state. Tests override get_optional_identifier.
"""

from typing import Annotated

from fastapi import Depends, Request

from cardlens.models.failure import FailureKind, KnownError
from cardlens.services.identification import CardIdentifier


def get_optional_identifier(request: Request) -> CardIdentifier | None:
    """The application's identifier, or None before startup completed."""
    return getattr(request.app.state, "identifier", None)


def get_identifier(
    identifier: Annotated[CardIdentifier | None, Depends(get_optional_identifier)],
) -> CardIdentifier:
    """
    The application's identifier.

    Raises:
        KnownError: 503 if the catalog has not been loaded
    """
    if identifier is None:
        raise KnownError(
            kind=FailureKind.SERVICE_UNAVAILABLE,
            message="The card catalog is not loaded yet.",
            suggestion="Retry once /ready reports ready.",
            status_code=503,
        )
    return identifier
