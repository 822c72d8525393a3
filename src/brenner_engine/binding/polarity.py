"""
Polarity classification for result and prediction text.

The default classifier is a fixed keyword heuristic. Negative patterns are
checked first because negated phrases ("not present") contain their
positive counterparts. Nested negation and hedging are not handled; swap in
another :class:`PolarityClassifier` to do better.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Protocol, runtime_checkable


class Polarity(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    AMBIGUOUS = "ambiguous"


@runtime_checkable
class PolarityClassifier(Protocol):
    """Strategy mapping free text to a polarity."""

    def classify(self, text: str) -> Polarity: ...


NEGATIVE_PATTERNS: tuple[str, ...] = (
    r"\bnot detected\b",
    r"\bnot observed\b",
    r"\bnot present\b",
    r"\bno effect\b",
    r"\babsent\b",
    r"\bnegative\b",
    r"\bnone\b",
    r"\bfalse\b",
)

POSITIVE_PATTERNS: tuple[str, ...] = (
    r"\bdetected\b",
    r"\bobserved\b",
    r"\bpresent\b",
    r"\beffect\b",
    r"\bpositive\b",
    r"\byes\b",
    r"\btrue\b",
)


class KeywordPolarityClassifier:
    """Negation-first keyword matcher."""

    def __init__(
        self,
        negative_patterns: tuple[str, ...] = NEGATIVE_PATTERNS,
        positive_patterns: tuple[str, ...] = POSITIVE_PATTERNS,
    ):
        self._negative = [re.compile(p, re.IGNORECASE) for p in negative_patterns]
        self._positive = [re.compile(p, re.IGNORECASE) for p in positive_patterns]

    def classify(self, text: str) -> Polarity:
        if any(p.search(text) for p in self._negative):
            return Polarity.NEGATIVE
        if any(p.search(text) for p in self._positive):
            return Polarity.POSITIVE
        return Polarity.AMBIGUOUS


DEFAULT_CLASSIFIER = KeywordPolarityClassifier()


def detect_polarity(text: str, classifier: PolarityClassifier | None = None) -> Polarity:
    return (classifier or DEFAULT_CLASSIFIER).classify(text)
