"""
Identification API endpoints.

Thin HTTP wrappers over CardIdentifier. Empty results are normal
responses; only undecodable input is an error.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from cardlens.api.dependencies import get_identifier
from cardlens.models.candidate import ScoredCandidate
from cardlens.models.card import CardRecord
from cardlens.models.failure import FailureKind, KnownError
from cardlens.models.fields import ParsedFields, TextZones
from cardlens.services.identification import CardIdentifier

router = APIRouter(tags=["identify"])


class ZonesRequest(BaseModel):
    """Recognized text partitioned by position on the card."""

    top: str = ""
    middle: str = ""
    bottom: str = ""


class TextIdentifyRequest(BaseModel):
    """Recognized text from one capture."""

    text: str
    words: list[str] | None = None
    zones: ZonesRequest | None = None


class CardResponse(BaseModel):
    """A catalog record."""

    id: str
    name: str
    hp: int | None = None
    set_name: str = ""
    caption: str = ""
    image_url: str | None = None

    @classmethod
    def from_record(cls, record: CardRecord) -> "CardResponse":
        return cls(
            id=record.id,
            name=record.name,
            hp=record.hp,
            set_name=record.set_name,
            caption=record.caption,
            image_url=record.image_url,
        )


class CandidateResponse(BaseModel):
    """A ranked candidate with diagnostic reasons."""

    id: str
    name: str
    hp: int | None = None
    set_name: str = ""
    score: int
    reasons: list[str] = Field(default_factory=list)

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> "CandidateResponse":
        record = candidate.record
        return cls(
            id=record.id,
            name=record.name,
            hp=record.hp,
            set_name=record.set_name,
            score=candidate.score,
            reasons=list(candidate.reasons),
        )


class FieldsResponse(BaseModel):
    """Fields extracted from the recognized text."""

    name: str | None = None
    hp: int | None = None
    set_number: str | None = None
    attacks: list[str] = Field(default_factory=list)

    @classmethod
    def from_fields(cls, fields: ParsedFields) -> "FieldsResponse":
        return cls(
            name=fields.name,
            hp=fields.hp,
            set_number=fields.set_number,
            attacks=list(fields.attacks),
        )


class TextIdentifyResponse(BaseModel):
    """Ranked candidates for recognized text."""

    fields: FieldsResponse
    candidates: list[CandidateResponse] = Field(default_factory=list)


class VisualMatchResponse(BaseModel):
    """Closest fingerprint match."""

    id: str
    name: str | None = None
    distance: int


class ImageIdentifyResponse(BaseModel):
    """Visual identification result; match is null when nothing is close enough."""

    match: VisualMatchResponse | None = None


@router.post("/identify/text", response_model=TextIdentifyResponse)
async def identify_text(
    request: TextIdentifyRequest,
    identifier: Annotated[CardIdentifier, Depends(get_identifier)],
) -> TextIdentifyResponse:
    """Rank catalog cards against recognized text."""
    zones = None
    if request.zones is not None:
        zones = TextZones(
            top=request.zones.top,
            middle=request.zones.middle,
            bottom=request.zones.bottom,
        )

    result = identifier.identify_text(request.text, request.words, zones)

    return TextIdentifyResponse(
        fields=FieldsResponse.from_fields(result.fields),
        candidates=[CandidateResponse.from_candidate(c) for c in result.candidates],
    )


@router.post("/identify/image", response_model=ImageIdentifyResponse)
async def identify_image(
    request: Request,
    identifier: Annotated[CardIdentifier, Depends(get_identifier)],
) -> ImageIdentifyResponse:
    """
    Match a cropped card image (raw JPEG/PNG request body) by fingerprint.
    """
    data = await request.body()
    if not data:
        raise KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="No image data received.",
            suggestion="Send the image bytes as the request body.",
        )

    match = await identifier.identify_image(data)
    if match is None:
        return ImageIdentifyResponse(match=None)

    record = identifier.get_card(match.card_id)
    return ImageIdentifyResponse(
        match=VisualMatchResponse(
            id=match.card_id,
            name=record.name if record else None,
            distance=match.distance,
        )
    )


@router.get("/cards/{card_id}", response_model=CardResponse)
async def get_card(
    card_id: str,
    identifier: Annotated[CardIdentifier, Depends(get_identifier)],
) -> CardResponse:
    """Look up a catalog card by identifier."""
    record = identifier.get_card(card_id)
    if record is None:
        raise KnownError(
            kind=FailureKind.NOT_FOUND,
            message=f"Card '{card_id}' not found.",
            status_code=404,
        )
    return CardResponse.from_record(record)
