"""
Catalog index.

In-memory lookup structures over the reference catalog, built once at
startup and shared read-only by every extraction and ranking call.

INVARIANTS:
- Every record appears in exactly one name bucket, exactly once
- A record appears in an HP bucket iff its HP is present
- Buckets preserve catalog insertion order (deterministic iteration)
- Lookups for absent keys return empty tuples, never raise
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from cardlens.models.card import CardRecord

logger = logging.getLogger(__name__)

# Attack names mentioned in catalog captions ("... the attack Thunder Shock ...")
CAPTION_ATTACK_PATTERN = re.compile(r"the attack (\w+)", re.IGNORECASE)

# Caption attack tokens this short are too ambiguous to index
MIN_ATTACK_TOKEN_LENGTH = 4

Bucket = tuple[CardRecord, ...]


def normalize_name(name: str) -> str:
    """Normalized name key: lower-cased and trimmed."""
    return name.strip().lower()


def extract_caption_attacks(caption: str) -> list[str]:
    """
    Extract indexed attack tokens from a caption.

    Returns:
        Lower-cased tokens in order of appearance, deduplicated,
        tokens of 3 characters or fewer discarded.
    """
    tokens: list[str] = []
    for match in CAPTION_ATTACK_PATTERN.finditer(caption or ""):
        token = match.group(1).lower()
        if len(token) >= MIN_ATTACK_TOKEN_LENGTH and token not in tokens:
            tokens.append(token)
    return tokens


@dataclass(frozen=True)
class CatalogIndex:
    """
    Immutable catalog plus its derived lookups.

    Build with build_catalog_index(); never construct buckets by hand.
    """

    records: Bucket
    by_id: Mapping[str, CardRecord] = field(repr=False)
    by_hp: Mapping[int, Bucket] = field(repr=False)
    by_name: Mapping[str, Bucket] = field(repr=False)
    by_attack: Mapping[str, Bucket] = field(repr=False)

    def __len__(self) -> int:
        return len(self.records)

    def get(self, card_id: str) -> CardRecord | None:
        """Look up a record by identifier."""
        return self.by_id.get(card_id)

    def by_hp_value(self, hp: int) -> Bucket:
        return self.by_hp.get(hp, ())

    def by_name_value(self, name: str) -> Bucket:
        return self.by_name.get(normalize_name(name), ())

    def by_attack_value(self, token: str) -> Bucket:
        return self.by_attack.get(token.strip().lower(), ())

    def has_name(self, name: str) -> bool:
        return normalize_name(name) in self.by_name

    def names(self) -> Iterable[str]:
        """Normalized names in catalog insertion order."""
        return self.by_name.keys()


def _freeze(buckets: dict) -> Mapping:
    return MappingProxyType({key: tuple(members) for key, members in buckets.items()})


def build_catalog_index(records: Iterable[CardRecord]) -> CatalogIndex:
    """
    Build all lookup structures in a single pass.

    Args:
        records: Catalog records in their canonical order

    Returns:
        CatalogIndex

    Raises:
        ValueError: If a record has no name (catalog data must be pre-validated)
    """
    ordered: list[CardRecord] = []
    by_id: dict[str, CardRecord] = {}
    by_hp: dict[int, list[CardRecord]] = {}
    by_name: dict[str, list[CardRecord]] = {}
    by_attack: dict[str, list[CardRecord]] = {}

    for record in records:
        if not record.name or not record.name.strip():
            raise ValueError(f"Catalog record {record.id!r} has no name")

        ordered.append(record)
        by_id.setdefault(record.id, record)

        if record.hp is not None:
            by_hp.setdefault(record.hp, []).append(record)

        by_name.setdefault(normalize_name(record.name), []).append(record)

        for token in extract_caption_attacks(record.caption):
            by_attack.setdefault(token, []).append(record)

    logger.info(
        "Indexed %d cards. HP buckets: %d, Name buckets: %d, Attacks: %d",
        len(ordered),
        len(by_hp),
        len(by_name),
        len(by_attack),
    )

    return CatalogIndex(
        records=tuple(ordered),
        by_id=MappingProxyType(by_id),
        by_hp=_freeze(by_hp),
        by_name=_freeze(by_name),
        by_attack=_freeze(by_attack),
    )
