"""
Declarative extraction rules.

Each rule is a compiled pattern plus a converter that turns a match into a
typed value, or rejects it by returning None. The driver tries texts in
order and, within each text, rules in order: the first accepted value wins.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ExtractionRule(Generic[T]):
    """
    A pattern-plus-validator pair.

    Attributes:
        name: Identifier used in logs
        pattern: Compiled regular expression
        convert: Match -> value, or None to reject the match
        scan_all: Try every match in the text, not only the first
    """

    name: str
    pattern: re.Pattern[str]
    convert: Callable[[re.Match[str]], T | None]
    scan_all: bool = False

    def apply(self, text: str) -> T | None:
        """Return the first accepted value in text, or None."""
        if self.scan_all:
            matches: Iterable[re.Match[str]] = self.pattern.finditer(text)
        else:
            first = self.pattern.search(text)
            matches = (first,) if first else ()

        for match in matches:
            value = self.convert(match)
            if value is not None:
                return value
        return None


@dataclass(frozen=True)
class RuleHit(Generic[T]):
    """An accepted value and the rule that produced it."""

    value: T
    rule: str


def first_match(rules: Sequence[ExtractionRule[T]], texts: Sequence[str]) -> RuleHit[T] | None:
    """
    Evaluate rules against texts; the first accepted value wins.

    Empty texts are skipped.
    """
    for text in texts:
        if not text:
            continue
        for rule in rules:
            value = rule.apply(text)
            if value is not None:
                return RuleHit(value=value, rule=rule.name)
    return None
