"""
Failure classification.

Every failure that reaches an API caller is a KnownError with a kind,
a message, and an HTTP status. Absence of a match is NOT a failure:
empty results are returned as normal outcomes.

Failure classes:
- Catalog unavailable: fatal at startup, no partial catalog is served
- Invalid input: the query image or payload cannot be used
- Fetch failures: per-record, recovered inside fingerprint index construction
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    INVALID_IMAGE = "invalid_image"

    # Resource failures
    NOT_FOUND = "not_found"

    # Service failures
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    SERVICE_UNAVAILABLE = "service_unavailable"
    EXTERNAL_API_ERROR = "external_api_error"

    # Unknown
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a serializable FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.to_detail().model_dump(mode="json")


class CatalogLoadError(KnownError):
    """
    Raised when the reference catalog cannot be loaded.

    This is an initialization failure. The engine never operates on a
    partial catalog.
    """

    def __init__(self, path: object, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(
            kind=FailureKind.CATALOG_UNAVAILABLE,
            message="The reference card catalog could not be loaded.",
            detail=f"{path}: {reason}",
            suggestion="Check catalog_path and that the dataset is intact.",
            status_code=503,
        )


class InvalidImageError(KnownError):
    """Raised when a query image cannot be decoded."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_IMAGE,
            message="The image could not be decoded.",
            detail=detail,
            suggestion="Send a JPEG or PNG image of a single card.",
            status_code=400,
        )


class FingerprintFetchError(Exception):
    """Raised when a reference image cannot be fetched or fingerprinted."""

    def __init__(self, card_id: str, reason: str) -> None:
        self.card_id = card_id
        self.reason = reason
        super().__init__(f"Failed to fingerprint {card_id}: {reason}")
