"""
Recognized text helpers.

Word tokenization and the fallback spatial partition used when the OCR
collaborator does not supply zone geometry.
"""

import re

from cardlens.models.fields import TextZones

# Fraction of characters treated as top (and bottom) when there are too
# few lines to split by line
ZONE_CHAR_FRACTION = 0.3

# Minimum number of non-empty lines for a line-based split
MIN_LINES_FOR_LINE_SPLIT = 3

_NON_LETTERS = re.compile(r"[\W\d_]+")
_LETTER_RUNS = re.compile(r"[^\W\d_]+")


def tokenize_recognized_text(text: str) -> tuple[str, ...]:
    """
    Flatten recognized text into lower-cased words.

    Single-character fragments are dropped; they are almost always OCR noise.
    """
    return tuple(w for w in text.lower().split() if len(w) > 1)


def normalize_word(word: str) -> str:
    """Strip everything but letters and lower-case ("Pikachu," -> "pikachu")."""
    return _NON_LETTERS.sub("", word).lower()


def letter_tokens(text: str) -> list[str]:
    """Lower-cased runs of letters ("Pikachu-GX" -> ["pikachu", "gx"])."""
    return _LETTER_RUNS.findall(text.lower())


def derive_zones(full_text: str) -> TextZones:
    """
    Approximate top/middle/bottom zones from unpartitioned text.

    With at least three non-empty lines the lines are split into thirds
    (top and bottom get equal shares, middle takes the rest). Otherwise the
    first and last 30% of characters become top and bottom.
    """
    lines = [line for line in full_text.splitlines() if line.strip()]

    if len(lines) >= MIN_LINES_FOR_LINE_SPLIT:
        third = len(lines) // 3
        return TextZones(
            top="\n".join(lines[:third]),
            middle="\n".join(lines[third : len(lines) - third]),
            bottom="\n".join(lines[len(lines) - third :]),
        )

    cut = int(len(full_text) * ZONE_CHAR_FRACTION)
    return TextZones(
        top=full_text[:cut],
        middle=full_text[cut : len(full_text) - cut],
        bottom=full_text[len(full_text) - cut :],
    )
