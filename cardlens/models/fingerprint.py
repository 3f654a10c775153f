from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FingerprintEntry:
    """
    A catalog identifier paired with its difference hash.

    Attributes:
        card_id: CardRecord identifier
        hash: Hexadecimal hash string (4 bits per digit)
    """

    card_id: str
    hash: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.card_id, "hash": self.hash}


@dataclass(frozen=True, slots=True)
class FingerprintMatch:
    """Closest visual index entry and its Hamming distance in bits."""

    card_id: str
    distance: int
