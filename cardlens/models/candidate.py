"""
Scoring values for the candidate ranker.

INVARIANTS:
- Scores are combined by addition of immutable contributions
- Reasons are diagnostic only and never influence ordering
"""

from dataclasses import dataclass, field

from cardlens.models.card import CardRecord
from cardlens.models.fields import ParsedFields


@dataclass(frozen=True, slots=True)
class ScoreContribution:
    """Score awarded by a single scoring rule, with its explanation."""

    score: int = 0
    reasons: tuple[str, ...] = field(default_factory=tuple)

    def __add__(self, other: "ScoreContribution") -> "ScoreContribution":
        return ScoreContribution(
            score=self.score + other.score,
            reasons=self.reasons + other.reasons,
        )


NO_SCORE = ScoreContribution()


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    """A catalog record with its accumulated score."""

    record: CardRecord
    score: int
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_contribution(
        cls, record: CardRecord, contribution: ScoreContribution
    ) -> "ScoredCandidate":
        return cls(record=record, score=contribution.score, reasons=contribution.reasons)

    def describe(self) -> str:
        """One-line summary for logs."""
        hp = f"{self.record.hp}HP" if self.record.hp is not None else "no HP"
        return (
            f"{self.record.name} [{self.record.id}] ({hp}) - "
            f"Score: {self.score} - {', '.join(self.reasons)}"
        )


@dataclass(frozen=True)
class IdentificationResult:
    """Outcome of one text identification attempt."""

    fields: ParsedFields
    candidates: tuple[ScoredCandidate, ...]

    @property
    def records(self) -> list[CardRecord]:
        """Ranked records, best first."""
        return [c.record for c in self.candidates]

    @property
    def best(self) -> CardRecord | None:
        """Top candidate, if any."""
        return self.candidates[0].record if self.candidates else None
