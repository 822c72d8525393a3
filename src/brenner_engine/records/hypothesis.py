"""
Hypothesis records.

A hypothesis is a candidate explanation tracked through a kill/confirm
lifecycle. Records are immutable in practice: state changes go through
:mod:`brenner_engine.lifecycle`, which returns new copies.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from brenner_engine.records.base import Anchor, RecordModel, now_utc
from brenner_engine.records.ids import HYPOTHESIS_ID_PATTERN


class HypothesisState(str, Enum):
    """Lifecycle state of a hypothesis."""

    PROPOSED = "proposed"
    ACTIVE = "active"
    CONFIRMED = "confirmed"
    REFUTED = "refuted"  # terminal
    SUPERSEDED = "superseded"  # terminal
    DEFERRED = "deferred"


class HypothesisCategory(str, Enum):
    MECHANISTIC = "mechanistic"
    PHENOMENOLOGICAL = "phenomenological"
    BOUNDARY = "boundary"
    AUXILIARY = "auxiliary"
    THIRD_ALTERNATIVE = "third_alternative"


class HypothesisOrigin(str, Enum):
    PROPOSED = "proposed"
    THIRD_ALTERNATIVE = "third_alternative"
    REFINEMENT = "refinement"
    ANOMALY_SPAWNED = "anomaly_spawned"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    SPECULATIVE = "speculative"


class Hypothesis(RecordModel):
    """A candidate explanation owned by a research session."""

    id: str = Field(..., pattern=HYPOTHESIS_ID_PATTERN, description="Session-scoped hypothesis id")
    statement: str = Field(..., min_length=10, max_length=500, description="The hypothesis claim")
    mechanism: str | None = Field(default=None, max_length=1000, description="Proposed causal mechanism")
    origin: HypothesisOrigin = Field(default=HypothesisOrigin.PROPOSED)
    category: HypothesisCategory = Field(default=HypothesisCategory.MECHANISTIC)
    confidence: Confidence = Field(default=Confidence.MEDIUM)
    parent_id: str | None = Field(default=None, pattern=HYPOTHESIS_ID_PATTERN, description="Refined-from hypothesis")
    spawned_from_anomaly: str | None = Field(default=None, description="Anomaly that spawned this hypothesis")
    session_id: str = Field(..., min_length=1, description="Owning session")
    proposed_by: str | None = Field(default=None, description="Agent or person who proposed it")
    state: HypothesisState = Field(default=HypothesisState.PROPOSED)
    anchors: list[Anchor] = Field(default_factory=list, description="Transcript anchors (§n)")
    is_inference: bool = Field(default=False, description="True when not directly grounded in the transcript")
    linked_assumptions: list[str] = Field(default_factory=list)
    linked_anomalies: list[str] = Field(default_factory=list)
    unresolved_critique_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(default=None, max_length=2000)


def create_hypothesis(
    id: str,
    statement: str,
    session_id: str,
    *,
    mechanism: str | None = None,
    category: HypothesisCategory = HypothesisCategory.MECHANISTIC,
    origin: HypothesisOrigin = HypothesisOrigin.PROPOSED,
    confidence: Confidence = Confidence.MEDIUM,
    **extra: object,
) -> Hypothesis:
    """Create a hypothesis in the ``proposed`` state.

    Raises:
        pydantic.ValidationError: If the fields are structurally invalid.
    """
    now = now_utc()
    return Hypothesis(
        id=id,
        statement=statement,
        session_id=session_id,
        mechanism=mechanism,
        category=category,
        origin=origin,
        confidence=confidence,
        state=HypothesisState.PROPOSED,
        created_at=now,
        updated_at=now,
        **extra,
    )


def create_third_alternative(
    id: str,
    statement: str,
    session_id: str,
    *,
    mechanism: str | None = None,
    **extra: object,
) -> Hypothesis:
    """Create a third-alternative hypothesis (always marked as inference)."""
    return create_hypothesis(
        id,
        statement,
        session_id,
        mechanism=mechanism,
        category=HypothesisCategory.THIRD_ALTERNATIVE,
        origin=HypothesisOrigin.THIRD_ALTERNATIVE,
        is_inference=True,
        **extra,
    )


LEVEL_CONFLATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"the gene (?:tells?|instructs?|commands?|makes?)", re.IGNORECASE),
    re.compile(r"the (?:organism|cell|protein) (?:decides?|chooses?|wants?)", re.IGNORECASE),
    re.compile(r"(?:dna|rna|gene) (?:knows?|remembers?|learns?)", re.IGNORECASE),
    re.compile(r"(?:it|this) (?:wants to|tries to|needs to)", re.IGNORECASE),
)


def detect_level_conflation(text: str) -> list[str]:
    """Return the phrases in ``text`` that mix program-level and agent-level language."""
    return [match.group(0) for pattern in LEVEL_CONFLATION_PATTERNS if (match := pattern.search(text))]


_PLACEHOLDER_RE = re.compile(
    r"both (?:could be|are|might be) wrong|neither (?:is|may be) correct|question (?:is|may be) misspecified",
    re.IGNORECASE,
)
_ORTHOGONAL_RE = re.compile(
    r"different causal structure|shared assumption|cross-domain|neither.*nor|entirely different|orthogonal",
    re.IGNORECASE,
)


class ThirdAlternativeCheck(BaseModel):
    """Quality assessment of a session's third alternative."""

    present: bool
    quality: int = Field(..., ge=0, le=3)
    message: str


def validate_third_alternative(hypotheses: list[Hypothesis]) -> ThirdAlternativeCheck:
    """
    Assess whether a genuine third alternative exists among ``hypotheses``.

    Quality: 0 none, 1 placeholder or weak, 2 has a mechanism, 3 structurally
    orthogonal to the existing framing.
    """
    third = [h for h in hypotheses if h.category == HypothesisCategory.THIRD_ALTERNATIVE]
    if not third:
        return ThirdAlternativeCheck(
            present=False,
            quality=0,
            message="No third alternative proposed. Consider: both framings could be wrong.",
        )

    best = 0
    message = ""
    for hypothesis in third:
        text = f"{hypothesis.statement} {hypothesis.mechanism or ''}"
        if _PLACEHOLDER_RE.search(hypothesis.statement) and not hypothesis.mechanism:
            quality, note = 1, "Third alternative is a placeholder without a mechanism."
        elif _ORTHOGONAL_RE.search(text):
            quality, note = 3, "Third alternative proposes an orthogonal explanation."
        elif hypothesis.mechanism:
            quality, note = 2, "Third alternative has a mechanism but may be derivative of existing hypotheses."
        else:
            quality, note = 1, "Third alternative lacks a mechanism."
        if quality > best:
            best, message = quality, note

    return ThirdAlternativeCheck(present=True, quality=best, message=message)
