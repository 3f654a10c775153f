"""
Candidate ranking algorithm.

Ranks catalog records against the fields extracted from one recognition
attempt. Stages run in priority order and may short-circuit:

1. Narrow the fuzzy search pool by HP
2. Exact name path (set number, then HP, then attacks)
3. Fuzzy fallback over the pool when fewer than TOP_K candidates exist
4. Deduplicate, stable sort by score, keep TOP_K

Every scoring rule is a pure function returning an immutable
ScoreContribution; a record's score is the ordered sum of its rules.
No errors are raised: no evidence means an empty ranking.
"""

import logging
import re
from collections.abc import Sequence
from functools import reduce

from cardlens.config import TOP_K
from cardlens.models.candidate import NO_SCORE, ScoreContribution, ScoredCandidate
from cardlens.models.card import CardRecord
from cardlens.models.fields import ParsedFields
from cardlens.services.catalog_index import CatalogIndex

logger = logging.getLogger(__name__)

# =============================================================================
# SCORE WEIGHTS
# =============================================================================

# Exact name plus printed card number: near-certain
NAME_AND_NUMBER_SCORE = 120

NAME_AND_HP_SCORE = 100

# Name matched but HP did not; OCR HP is unreliable so keep as weak candidates
NAME_HP_MISMATCH_SCORE = 50
NAME_HP_MISMATCH_LIMIT = 5

NAME_ONLY_SCORE = 40

ATTACK_MATCH_SCORE = 25
MULTI_ATTACK_BONUS = 30
MULTI_ATTACK_MIN_MATCHES = 2

FULL_NAME_IN_TEXT_SCORE = 30
PARTIAL_NAME_SCORE = 10
HP_MATCH_SCORE = 20
SET_NAME_WORD_SCORE = 10

# Fuzzy candidates at or below this score are noise
NOISE_FLOOR = 10

# Minimum lengths for tokens to count as evidence
MIN_ATTACK_TOKEN_LENGTH = 6
MIN_NAME_PART_LENGTH = 4
MIN_SET_WORD_LENGTH = 5

_TRAILING_DIGITS = re.compile(r"(\d+)$")


# =============================================================================
# SCORING RULES
# =============================================================================


def matches_card_number(record: CardRecord, numerator: str) -> bool:
    """
    True if the record's printed number equals the card number.

    The printed number is the trailing digit run of the identifier, so a
    prefixed number counts as a suffix match. Leading zeros are ignored on
    both sides: "xy1-04" and "sm35-TG04" match numerator "4"; "xy1-14" and
    "xy1-44" do not.
    """
    digits = _TRAILING_DIGITS.search(record.number)
    if digits is None:
        return False
    return (digits.group(1).lstrip("0") or "0") == numerator


def matched_attacks(record: CardRecord, attacks: Sequence[str]) -> list[str]:
    """Attack tokens long enough to count that appear in the record's caption."""
    if not record.caption or not attacks:
        return []
    caption = record.caption.lower()
    return [a for a in attacks if len(a) >= MIN_ATTACK_TOKEN_LENGTH and a in caption]


def score_attacks(
    record: CardRecord, attacks: Sequence[str], multi_bonus: bool = False
) -> ScoreContribution:
    """+25 per caption attack match; optionally +30 for two or more."""
    matched = matched_attacks(record, attacks)
    contribution = ScoreContribution(
        score=ATTACK_MATCH_SCORE * len(matched),
        reasons=tuple(f"Attack: {a}" for a in matched),
    )
    if multi_bonus and len(matched) >= MULTI_ATTACK_MIN_MATCHES:
        contribution += ScoreContribution(MULTI_ATTACK_BONUS, ("Multi-attack bonus",))
    return contribution


def score_name_in_text(record: CardRecord, lowered_text: str) -> ScoreContribution:
    """+30 if the full name appears verbatim, else +10 per long name word found."""
    name = record.name.lower()
    if name in lowered_text:
        return ScoreContribution(FULL_NAME_IN_TEXT_SCORE, (f"Name in text: {record.name}",))

    parts = [p for p in name.split() if len(p) >= MIN_NAME_PART_LENGTH and p in lowered_text]
    return ScoreContribution(
        score=PARTIAL_NAME_SCORE * len(parts),
        reasons=tuple(f"Partial name: {p}" for p in parts),
    )


def score_hp(record: CardRecord, hp: int | None) -> ScoreContribution:
    """+20 if resolved HP equals the record's HP."""
    if hp is not None and record.hp == hp:
        return ScoreContribution(HP_MATCH_SCORE, (f"HP match: {hp}",))
    return NO_SCORE


def score_set_name(record: CardRecord, lowered_text: str) -> ScoreContribution:
    """+10 per long set-name word found in the text."""
    words = [
        w
        for w in record.set_name.lower().split()
        if len(w) >= MIN_SET_WORD_LENGTH and w in lowered_text
    ]
    return ScoreContribution(
        score=SET_NAME_WORD_SCORE * len(words),
        reasons=tuple(f"Set match: {w}" for w in words),
    )


def score_fuzzy(record: CardRecord, fields: ParsedFields, lowered_text: str) -> ScoreContribution:
    """Combined fuzzy score for one record, rules reduced in fixed order."""
    contributions = (
        score_name_in_text(record, lowered_text),
        score_hp(record, fields.hp),
        score_attacks(record, fields.attacks, multi_bonus=True),
        score_set_name(record, lowered_text),
    )
    return reduce(lambda total, part: total + part, contributions, NO_SCORE)


# =============================================================================
# STAGES
# =============================================================================


def search_pool(fields: ParsedFields, index: CatalogIndex) -> tuple[CardRecord, ...]:
    """HP bucket when HP resolved and non-empty, otherwise the whole catalog."""
    if fields.hp is not None:
        bucket = index.by_hp_value(fields.hp)
        if bucket:
            logger.info("Filtered by HP %d: %d cards", fields.hp, len(bucket))
            return bucket
    return index.records


def _exact_name_stage(
    fields: ParsedFields, index: CatalogIndex
) -> tuple[list[ScoredCandidate], bool]:
    """
    Score members of the resolved name bucket.

    Returns:
        (candidates, final) where final means the card number matched and
        no further stage should run.
    """
    if fields.name is None:
        return [], False

    bucket = index.by_name_value(fields.name)
    if not bucket:
        return [], False

    name_reason = f"Exact name: {fields.name}"

    numerator = fields.set_numerator
    if numerator is not None:
        numbered = [r for r in bucket if matches_card_number(r, numerator)]
        if numbered:
            logger.info(
                "SetNumber %s narrowed %d -> %d cards",
                fields.set_number,
                len(bucket),
                len(numbered),
            )
            contribution = ScoreContribution(
                NAME_AND_NUMBER_SCORE, (name_reason, f"Card number match: {numerator}")
            )
            return [ScoredCandidate.from_contribution(r, contribution) for r in numbered], True

    if fields.hp is not None:
        same_hp = [r for r in bucket if r.hp == fields.hp]
        if same_hp:
            contribution = ScoreContribution(
                NAME_AND_HP_SCORE, (name_reason, f"HP match: {fields.hp}")
            )
            return [ScoredCandidate.from_contribution(r, contribution) for r in same_hp], False

        return [
            ScoredCandidate.from_contribution(
                r,
                ScoreContribution(
                    NAME_HP_MISMATCH_SCORE,
                    (name_reason, f"HP mismatch (card: {r.hp}, OCR: {fields.hp})"),
                ),
            )
            for r in bucket[:NAME_HP_MISMATCH_LIMIT]
        ], False

    base = ScoreContribution(NAME_ONLY_SCORE, (name_reason,))
    return [
        ScoredCandidate.from_contribution(r, base + score_attacks(r, fields.attacks))
        for r in bucket
    ], False


def _fuzzy_stage(
    fields: ParsedFields,
    full_text: str,
    pool: Sequence[CardRecord],
    seen_ids: set[str],
) -> list[ScoredCandidate]:
    """Score every unseen pool record; keep those above the noise floor."""
    lowered = full_text.lower()
    candidates: list[ScoredCandidate] = []

    for record in pool:
        if record.id in seen_ids:
            continue
        contribution = score_fuzzy(record, fields, lowered)
        if contribution.score > NOISE_FLOOR:
            candidates.append(ScoredCandidate.from_contribution(record, contribution))

    return candidates


def _finalize(candidates: Sequence[ScoredCandidate], top_k: int) -> list[ScoredCandidate]:
    """Deduplicate by id (first occurrence wins) and stable-sort by score."""
    unique: dict[str, ScoredCandidate] = {}
    for candidate in candidates:
        unique.setdefault(candidate.record.id, candidate)

    ranked = sorted(unique.values(), key=lambda c: c.score, reverse=True)
    return ranked[:top_k]


# =============================================================================
# ENTRY POINTS
# =============================================================================


def score_candidates(
    fields: ParsedFields,
    full_text: str,
    index: CatalogIndex,
    top_k: int = TOP_K,
) -> list[ScoredCandidate]:
    """
    Rank catalog records for one recognition attempt.

    Args:
        fields: Extracted fields
        full_text: Recognized text (searched for names and set words)
        index: Catalog index
        top_k: Maximum candidates to return

    Returns:
        Up to top_k ScoredCandidates, highest score first. Ties keep catalog
        order.
    """
    pool = search_pool(fields, index)

    candidates, final = _exact_name_stage(fields, index)
    if final:
        ranked = _finalize(candidates, top_k)
        _log_ranking(ranked)
        return ranked

    if len(candidates) < top_k:
        seen_ids = {c.record.id for c in candidates}
        candidates = candidates + _fuzzy_stage(fields, full_text, pool, seen_ids)

    ranked = _finalize(candidates, top_k)
    _log_ranking(ranked)
    return ranked


def rank_candidates(
    fields: ParsedFields,
    full_text: str,
    index: CatalogIndex,
) -> list[CardRecord]:
    """Ranked records only; scores and reasons are diagnostic."""
    return [c.record for c in score_candidates(fields, full_text, index)]


def _log_ranking(ranked: Sequence[ScoredCandidate]) -> None:
    if not ranked:
        logger.info("No candidates")
        return
    logger.debug("Ranked %d candidates, top score %d", len(ranked), ranked[0].score)
