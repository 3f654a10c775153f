"""
Recognized-text structures.

TextZones is what the OCR collaborator hands in; ParsedFields is what the
extractor hands to the ranker. Neither holds a catalog reference.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class TextZones:
    """
    Recognized text partitioned by vertical position on the card.

    Attributes:
        top: Name and HP area
        middle: Attack and ability text
        bottom: Set number and retreat cost
    """

    top: str = ""
    middle: str = ""
    bottom: str = ""


@dataclass(frozen=True, slots=True)
class ParsedFields:
    """Typed hints extracted from one recognition attempt."""

    name: str | None = None
    hp: int | None = None
    set_number: str | None = None
    attacks: tuple[str, ...] = field(default_factory=tuple)
    words: tuple[str, ...] = field(default_factory=tuple)

    @property
    def set_numerator(self) -> str | None:
        """Printed card number with leading zeros stripped ("04/102" -> "4")."""
        if self.set_number is None:
            return None
        numerator = self.set_number.split("/", 1)[0].lstrip("0")
        return numerator or "0"

    def is_empty(self) -> bool:
        """True if no field resolved."""
        return (
            self.name is None
            and self.hp is None
            and self.set_number is None
            and not self.attacks
        )
