"""
Text Field Extractor.

Turns raw recognized text into typed hints: hit points, printed set
number, card name, and attack/ability tokens. Each field is resolved
independently; failing to resolve one is a normal outcome, not an error.

All thresholds and word lists below are part of the extraction contract.
Changing them changes recall and precision.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from cardlens.config import HP_MAX, HP_MIN
from cardlens.models.fields import ParsedFields, TextZones
from cardlens.models.locale import EMPTY_TABLES, LocaleTables
from cardlens.parsers.rules import ExtractionRule, first_match
from cardlens.parsers.zones import (
    derive_zones,
    letter_tokens,
    normalize_word,
    tokenize_recognized_text,
)
from cardlens.services.catalog_index import CatalogIndex

logger = logging.getLogger(__name__)

# =============================================================================
# CONTRACT CONSTANTS
# =============================================================================

# Normalized words this short are never looked up as names
MIN_NAME_WORD_LENGTH = 3

# Minimum word length for substring name matching
MIN_SUBSTRING_NAME_LENGTH = 4

# Standalone words must be longer than this to count as attack tokens
MIN_ATTACK_WORD_LENGTH = 6

# Capitalized phrases must be longer than this to count as attack names
MIN_ATTACK_PHRASE_LENGTH = 6

# Card-variant suffixes, longest first so "vmax" wins over "v"
VARIANT_SUFFIXES: tuple[str, ...] = ("vmax", "vstar", "gx", "ex", "v")

# Faction and regional markers printed before the base name
FACTION_PREFIXES: tuple[str, ...] = (
    "team rocket's",
    "radiant",
    "galarian",
    "alolan",
    "hisuian",
    "paldean",
)

# Card-layout boilerplate that looks like a two-word attack name
LAYOUT_PHRASES: tuple[str, ...] = (
    "basic pokemon",
    "stage pokemon",
    "active spot",
    "stadium cards",
    "your opponent",
)

ATTACK_STOPWORDS: frozenset[str] = frozenset(
    {
        "basic",
        "stage",
        "pokemon",
        "trainer",
        "energy",
        "weakness",
        "resistance",
        "retreat",
        "cost",
        "damage",
        "coin",
        "flip",
        "your",
        "opponent",
        "this",
        "that",
        "the",
        "attack",
        "ability",
        "spatial",
        "active",
        "stadium",
        "cards",
        "hand",
        "during",
    }
)

ABILITY_PATTERN = re.compile(r"Ability[\s:]+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)")
TWO_WORD_PHRASE_PATTERN = re.compile(r"([A-Z][a-z]+\s+[A-Z][a-z]+)(?=\s|$)")

# =============================================================================
# RULE TABLES
# =============================================================================


def _hp_in_range(match: re.Match[str]) -> int | None:
    value = int(match.group(1))
    return value if HP_MIN <= value <= HP_MAX else None


def _hp_round_number(match: re.Match[str]) -> int | None:
    value = _hp_in_range(match)
    return value if value is not None and value % 10 == 0 else None


def _set_fraction(match: re.Match[str]) -> str:
    return f"{match.group(1)}/{match.group(2)}"


def build_hp_rules(locale_labels: Sequence[str] = ()) -> tuple[ExtractionRule[int], ...]:
    """
    Labelled hit-point rules: "70 HP", "HP 70", "70 H P", then locale labels.
    """
    rules: list[ExtractionRule[int]] = [
        ExtractionRule("hp_suffix", re.compile(r"(\d{2,3})\s*HP", re.IGNORECASE), _hp_in_range),
        ExtractionRule("hp_prefix", re.compile(r"HP\s*(\d{2,3})", re.IGNORECASE), _hp_in_range),
        ExtractionRule(
            "hp_spaced", re.compile(r"(\d{2,3})\s*H\s*P", re.IGNORECASE), _hp_in_range
        ),
    ]
    for label in locale_labels:
        escaped = re.escape(label)
        rules.append(
            ExtractionRule(
                f"hp_suffix_{label.lower()}",
                re.compile(rf"(\d{{2,3}})\s*{escaped}\b", re.IGNORECASE),
                _hp_in_range,
            )
        )
        rules.append(
            ExtractionRule(
                f"hp_prefix_{label.lower()}",
                re.compile(rf"\b{escaped}\s*(\d{{2,3}})", re.IGNORECASE),
                _hp_in_range,
            )
        )
    return tuple(rules)


# HP is often printed as a bare number in the corner with no unit label
HP_BARE_NUMBER_RULE: ExtractionRule[int] = ExtractionRule(
    "hp_bare_number",
    re.compile(r"\b(\d{2,3})\b"),
    _hp_round_number,
    scan_all=True,
)

SET_NUMBER_RULES: tuple[ExtractionRule[str], ...] = (
    ExtractionRule("set_fraction", re.compile(r"(\d{1,3})\s*/\s*(\d{2,3})"), _set_fraction),
)


def _dedupe(items: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(items))


# =============================================================================
# EXTRACTOR
# =============================================================================


class TextFieldExtractor:
    """
    Extracts ParsedFields from recognized text.

    The catalog index is needed for name resolution only. Locale tables are
    injected so tests can use synthetic vocabularies.

    Usage:
        extractor = TextFieldExtractor(index, tables)
        fields = extractor.extract(full_text, words, zones)
    """

    def __init__(self, index: CatalogIndex, tables: LocaleTables = EMPTY_TABLES) -> None:
        self._index = index
        self._tables = tables
        self._hp_rules = build_hp_rules(tables.hp_labels)

    def extract(
        self,
        full_text: str,
        words: Sequence[str] | None = None,
        zones: TextZones | None = None,
    ) -> ParsedFields:
        """
        Extract all fields from one recognition attempt.

        Args:
            full_text: Recognized text, line breaks preserved
            words: Flattened lower-cased words; derived from full_text if None
            zones: Spatial partition; approximated from full_text if None

        Returns:
            ParsedFields (fields that could not be resolved are None/empty)
        """
        if words is None:
            words = tokenize_recognized_text(full_text)
        if zones is None:
            zones = derive_zones(full_text)

        logger.debug("OCR raw text: %s", full_text[:300].replace("\n", " "))

        fields = ParsedFields(
            name=self.resolve_name(full_text, words, zones),
            hp=self.extract_hp(full_text, zones),
            set_number=self.extract_set_number(full_text, zones),
            attacks=tuple(self.extract_attacks(full_text, zones)),
            words=tuple(words),
        )

        logger.info(
            "Parsed OCR: name=%s hp=%s set_number=%s attacks=%s",
            fields.name,
            fields.hp,
            fields.set_number,
            list(fields.attacks[:5]),
        )
        return fields

    # -------------------------------------------------------------------------
    # HP and set number
    # -------------------------------------------------------------------------

    def extract_hp(self, full_text: str, zones: TextZones) -> int | None:
        """Labelled HP in top zone then full text; else a round bare number on top."""
        hit = first_match(self._hp_rules, (zones.top, full_text))
        if hit is None:
            hit = first_match((HP_BARE_NUMBER_RULE,), (zones.top,))
            if hit is not None:
                logger.debug("HP detected from bare number: %d", hit.value)
        return hit.value if hit else None

    def extract_set_number(self, full_text: str, zones: TextZones) -> str | None:
        """Printed "num/denom" set fraction, bottom zone first."""
        hit = first_match(SET_NUMBER_RULES, (zones.bottom, full_text))
        return hit.value if hit else None

    # -------------------------------------------------------------------------
    # Name
    # -------------------------------------------------------------------------

    def _candidate_words(self, words: Sequence[str], zones: TextZones) -> list[str]:
        """Normalized words, top zone first, deduplicated."""
        top_words = [normalize_word(w) for w in zones.top.split()]
        all_words = [normalize_word(w) for w in words]
        return _dedupe([w for w in top_words + all_words if len(w) >= MIN_NAME_WORD_LENGTH])

    def _prefer_variant(self, base: str, full_text: str) -> str:
        """Return the variant bucket ("pikachu vmax") when the text shows its marker."""
        tokens = set(letter_tokens(full_text))
        for suffix in VARIANT_SUFFIXES:
            candidate = f"{base} {suffix}"
            if suffix in tokens and self._index.has_name(candidate):
                return candidate

        lowered = full_text.lower()
        for prefix in FACTION_PREFIXES:
            candidate = f"{prefix} {base}"
            if prefix in lowered and self._index.has_name(candidate):
                return candidate

        return base

    def resolve_name(
        self,
        full_text: str,
        words: Sequence[str],
        zones: TextZones,
    ) -> str | None:
        """
        Resolve the card name against the catalog.

        Order: exact bucket hit, locale translation, substring containment.
        Substring matching walks catalog names in insertion order, so the
        result is deterministic for a given catalog.
        """
        candidates = self._candidate_words(words, zones)

        for word in candidates:
            if self._index.has_name(word):
                return self._prefer_variant(word, full_text)

        for word in candidates:
            canonical = self._tables.translate_name(word)
            if canonical and self._index.has_name(canonical):
                logger.debug("Name translated: %s -> %s", word, canonical)
                return self._prefer_variant(canonical, full_text)

        for word in candidates:
            if len(word) < MIN_SUBSTRING_NAME_LENGTH:
                continue
            for name in self._index.names():
                if word in name or name in word:
                    logger.debug("Name by substring: %s ~ %s", word, name)
                    return name

        return None

    # -------------------------------------------------------------------------
    # Attacks
    # -------------------------------------------------------------------------

    def extract_attacks(self, full_text: str, zones: TextZones) -> list[str]:
        """
        Collect attack and ability tokens, translated to catalog vocabulary.

        Sources (middle zone, falling back to full text): "Ability: Name",
        two-word capitalized phrases, and long standalone words.
        """
        source = zones.middle or full_text
        found: list[str] = []

        ability = ABILITY_PATTERN.search(source)
        if ability:
            found.append(ability.group(1).lower())

        for match in TWO_WORD_PHRASE_PATTERN.finditer(source):
            phrase = match.group(1).lower()
            if len(phrase) < MIN_ATTACK_PHRASE_LENGTH:
                continue
            if any(skip in phrase for skip in LAYOUT_PHRASES):
                continue
            found.append(phrase)

        for raw in source.split():
            if raw.isdigit():
                continue
            clean = normalize_word(raw)
            if len(clean) >= MIN_ATTACK_WORD_LENGTH and clean not in ATTACK_STOPWORDS:
                found.append(clean)

        translated = [self._tables.translate_attack(token) for token in found]

        lowered = full_text.lower()
        for phrase, translation in self._tables.attacks.items():
            if phrase in lowered:
                translated.append(translation)

        return _dedupe(translated)


def extract_fields(
    full_text: str,
    words: Sequence[str] | None,
    index: CatalogIndex,
    zones: TextZones | None = None,
    tables: LocaleTables = EMPTY_TABLES,
) -> ParsedFields:
    """Functional form of TextFieldExtractor.extract."""
    return TextFieldExtractor(index, tables).extract(full_text, words, zones)
