"""
Locale translation tables.

Maps text recognized on non-English prints to the vocabulary of the
reference catalog. Tables are plain data, loaded once and injected into
the text field extractor so tests can supply synthetic tables.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

_EMPTY: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True)
class LocaleTables:
    """
    Immutable locale lookup tables.

    Attributes:
        names: Recognized (lower-cased) name -> canonical catalog name
        attacks: Recognized (lower-cased) attack phrase -> caption vocabulary
        hp_labels: Printed hit-point labels other than "HP" (e.g., "PV", "KP")
    """

    names: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    attacks: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    hp_labels: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LocaleTables":
        """Build tables from a decoded JSON document, lower-casing keys."""
        names = {
            str(k).strip().lower(): str(v).strip().lower()
            for k, v in (data.get("names") or {}).items()
        }
        attacks = {
            str(k).strip().lower(): str(v).strip().lower()
            for k, v in (data.get("attacks") or {}).items()
        }
        hp_labels = tuple(str(label).strip() for label in data.get("hp_labels") or [] if label)
        return cls(
            names=MappingProxyType(names),
            attacks=MappingProxyType(attacks),
            hp_labels=hp_labels,
        )

    def translate_name(self, word: str) -> str | None:
        return self.names.get(word.lower())

    def translate_attack(self, token: str) -> str:
        """Map a recognized attack token to catalog vocabulary, unchanged if unknown."""
        return self.attacks.get(token.lower(), token)


EMPTY_TABLES = LocaleTables()


def load_locale_tables(path: Path) -> LocaleTables:
    """
    Load locale tables from a JSON file.

    Args:
        path: JSON document with optional "names", "attacks", "hp_labels" keys

    Returns:
        LocaleTables

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a JSON object
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Locale tables at {path} must be a JSON object")

    return LocaleTables.from_dict(data)
