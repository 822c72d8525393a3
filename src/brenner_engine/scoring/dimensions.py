"""
Session dimension scoring.

Seven fixed dimensions, each built from independently checked signals with
fixed point values and capped at the dimension maximum. Keyword checks are
plain case-insensitive substring matches.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from brenner_engine.records.base import now_utc
from brenner_engine.scoring.artifact import SessionData

Grade = Literal["A", "B", "C", "D", "F"]

PARADOX_KEYWORDS: tuple[str, ...] = (
    "paradox",
    "puzzle",
    "surprising",
    "unexpected",
    "contradiction",
    "anomaly",
    "mystery",
    "counterintuitive",
    "but",
    "yet",
    "however",
    "despite",
    "although",
)

CHALLENGE_KEYWORDS: tuple[str, ...] = (
    "challenge",
    "question",
    "rethink",
    "reconsider",
    "alternative",
    "contrary to",
    "unlike",
    "different from",
    "not as assumed",
    "wrong",
    "incorrect",
    "mistaken",
)

OBSERVABLE_KEYWORDS: tuple[str, ...] = (
    "measure",
    "observe",
    "detect",
    "count",
    "quantify",
    "assay",
    "analyze",
    "sequence",
    "image",
    "stain",
)

CAUSAL_KEYWORDS: tuple[str, ...] = ("because", "causes", "leads to", "results in", "triggers", "enables", "prevents")

KILL_STATES = frozenset({"refuted", "killed"})
TEST_TRIGGER_PREFIXES = ("T-", "test-")
ORTHOGONAL_OVERLAP_THRESHOLD = 0.3


class ScoreSignal(BaseModel):
    signal: str
    points: int
    found: bool
    evidence: str | None = None


class DimensionScore(BaseModel):
    dimension: str
    points: int = Field(..., ge=0)
    max_points: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0, le=100)
    signals: list[ScoreSignal] = Field(default_factory=list)


class SessionDimensionScore(BaseModel):
    session_id: str
    scored_at: datetime = Field(default_factory=now_utc)
    dimensions: dict[str, DimensionScore]
    total_score: int
    max_score: int
    grade: Grade


def _contains_any(text: str | None, keywords: Iterable[str]) -> bool:
    if not text:
        return False
    lower = text.lower()
    return any(keyword in lower for keyword in keywords)


def _signal(signal: str, points: int, found: bool, evidence: str | None = None) -> ScoreSignal:
    return ScoreSignal(signal=signal, points=points, found=found, evidence=evidence if found else None)


def compute_dimension_score(dimension: str, signals: list[ScoreSignal], max_points: int) -> DimensionScore:
    """Sum found signals, clamped to ``[0, max_points]``."""
    raw = sum(s.points for s in signals if s.found)
    points = max(0, min(raw, max_points))
    percentage = round(points / max_points * 100) if max_points > 0 else 0
    return DimensionScore(
        dimension=dimension, points=points, max_points=max_points, percentage=percentage, signals=signals
    )


def score_paradox_grounding(session: SessionData) -> DimensionScore:
    """Dimension 1 (0-20): does the session start from a genuine puzzle?"""
    sections = session.artifact.sections
    question = session.research_question or (sections.research_thread.statement if sections.research_thread else "")
    anomalies = sections.anomaly_register
    falsified = [a for a in sections.assumption_ledger if a.status == "falsified"]

    signals = [
        _signal("Research question contains explicit paradox/puzzle", 5,
                _contains_any(question, PARADOX_KEYWORDS), "Keywords detected"),
        _signal("At least one surprising observation cited", 5,
                bool(anomalies), f"{len(anomalies)} anomalies registered"),
        _signal("Question challenges existing paradigm", 5,
                _contains_any(question, CHALLENGE_KEYWORDS), "Challenge language detected"),
        _signal("Foundational assumptions questioned", 5,
                bool(falsified), f"{len(falsified)} assumptions falsified"),
    ]
    return compute_dimension_score("paradox_grounding", signals, 20)


def score_hypothesis_kill_rate(session: SessionData) -> DimensionScore:
    """
    Dimension 2 (0-20): are hypotheses actually eliminated?

    Kills are counted from transitions and from killed flags on the slate;
    a session with hypotheses but no transitions at all loses 5 points.
    """
    transitions = session.hypothesis_transitions
    hypotheses = session.artifact.sections.hypothesis_slate

    transition_kills = [t for t in transitions if t.to_state in KILL_STATES]
    flagged_kills = [h for h in hypotheses if h.killed]
    total_kills = max(len(transition_kills), len(flagged_kills))

    linked = sum(1 for t in transition_kills if (t.triggered_by or "").startswith(TEST_TRIGGER_PREFIXES))
    linked += sum(1 for h in flagged_kills if (h.killed_by or "").startswith(TEST_TRIGGER_PREFIXES))
    reasoned = [t for t in transition_kills if t.reason and len(t.reason) >= 10]

    signals = [
        _signal("At least one hypothesis killed in session", 10, total_kills > 0, f"{total_kills} hypotheses killed"),
        _signal("Kill linked to specific test result", 5, linked > 0, f"{linked} kills linked to tests"),
        _signal(
            "Kill reasoning documented",
            5,
            bool(transition_kills) and len(reasoned) == len(transition_kills),
            f"{len(reasoned)} kills with reasoning",
        ),
    ]
    if not transitions and hypotheses:
        signals.append(
            _signal(
                "No hypothesis transitions (static session)",
                -5,
                True,
                f"{len(hypotheses)} hypotheses but no transitions",
            )
        )
    return compute_dimension_score("hypothesis_kill_rate", signals, 20)


def score_test_discriminability(session: SessionData) -> DimensionScore:
    """Dimension 3 (0-20): do tests separate hypotheses and carry potency checks?"""
    tests = session.artifact.sections.discriminative_tests
    discriminating = [t for t in tests if len(t.expected_outcomes) >= 2]
    observable = [t for t in tests if _contains_any(t.procedure, OBSERVABLE_KEYWORDS)]
    with_potency = [t for t in tests if t.potency_check and len(t.potency_check) > 10]

    signals = [
        _signal("Tests have different predictions for hypotheses", 8, bool(discriminating),
                f"{len(discriminating)}/{len(tests)} tests discriminate"),
        _signal("Outcomes are observable/measurable", 4, bool(observable),
                f"{len(observable)} tests with observable procedures"),
        _signal("Potency checks included", 8, bool(tests) and len(with_potency) == len(tests),
                f"{len(with_potency)}/{len(tests)} tests have potency checks"),
    ]
    return compute_dimension_score("test_discriminability", signals, 20)


def score_assumption_tracking(session: SessionData) -> DimensionScore:
    """Dimension 4 (0-15)."""
    assumptions = session.artifact.sections.assumption_ledger
    linked = [a for a in assumptions if a.load and len(a.load) > 5]
    scale_checks = [a for a in assumptions if a.scale_check]

    signals = [
        _signal("Assumptions are recorded", 5, bool(assumptions), f"{len(assumptions)} assumptions recorded"),
        _signal("Assumptions linked to hypotheses", 5, bool(linked),
                f"{len(linked)} assumptions have load-bearing links"),
        _signal("Scale/physics checks performed", 5, bool(scale_checks),
                f"{len(scale_checks)} scale checks performed"),
    ]
    return compute_dimension_score("assumption_tracking", signals, 15)


def _significant_words(text: str | None) -> set[str]:
    return {word for word in (text or "").lower().split() if len(word) > 3}


def score_third_alternative_discovery(session: SessionData) -> DimensionScore:
    """
    Dimension 5 (0-15).

    A third alternative counts as orthogonal when less than 30% of its
    mechanism's significant words appear in some main hypothesis's mechanism.
    """
    hypotheses = session.artifact.sections.hypothesis_slate
    third = [h for h in hypotheses if h.third_alternative]
    mains = [h for h in hypotheses if not h.third_alternative]

    def orthogonal(candidate) -> bool:
        words = _significant_words(candidate.mechanism)
        if not words:
            return False
        for other in mains:
            if other.id == candidate.id:
                continue
            overlap = len(words & _significant_words(other.mechanism))
            if overlap / len(words) < ORTHOGONAL_OVERLAP_THRESHOLD:
                return True
        return False

    is_orthogonal = any(orthogonal(h) for h in third)
    causal = [h for h in third if _contains_any(h.mechanism, CAUSAL_KEYWORDS)]

    signals = [
        _signal("Third alternatives proposed", 5, bool(third), f"{len(third)} third alternatives"),
        _signal("Third alternatives are genuinely orthogonal", 5, is_orthogonal,
                "Mechanism differs substantially from main hypotheses"),
        _signal("Third alternatives have different causal structure", 5, bool(causal),
                f"{len(causal)} with distinct causal structure"),
    ]
    return compute_dimension_score("third_alternative_discovery", signals, 15)


def score_experimental_feasibility(session: SessionData) -> DimensionScore:
    """Dimension 6 (0-10)."""
    tests = session.artifact.sections.discriminative_tests
    assessed = [t for t in tests if t.feasibility and len(t.feasibility) > 10]
    executed = [t for t in tests if t.status and t.status != "untested"]

    signals = [
        _signal("Tests have feasibility assessment", 5, bool(assessed),
                f"{len(assessed)}/{len(tests)} tests have feasibility notes"),
        _signal("Tests have been executed", 5, bool(executed), f"{len(executed)}/{len(tests)} tests executed"),
    ]
    return compute_dimension_score("experimental_feasibility", signals, 10)


def score_adversarial_pressure(session: SessionData) -> DimensionScore:
    """Dimension 7 (0-20)."""
    critiques = session.artifact.sections.adversarial_critique
    with_evidence = [c for c in critiques if c.evidence and len(c.evidence) > 20]
    real_third = [c for c in critiques if c.real_third_alternative]

    signals = [
        _signal("Critiques have been logged", 8, bool(critiques), f"{len(critiques)} critiques logged"),
        _signal("Critiques have evidence backing", 6, bool(with_evidence),
                f"{len(with_evidence)}/{len(critiques)} critiques have evidence"),
        _signal("Real third alternatives proposed from critique", 6, bool(real_third),
                f"{len(real_third)} real third alternatives from critique"),
    ]
    return compute_dimension_score("adversarial_pressure", signals, 20)


DIMENSION_SCORERS: tuple[Callable[[SessionData], DimensionScore], ...] = (
    score_paradox_grounding,
    score_hypothesis_kill_rate,
    score_test_discriminability,
    score_assumption_tracking,
    score_third_alternative_discovery,
    score_experimental_feasibility,
    score_adversarial_pressure,
)


def compute_grade(total_score: float, max_score: float) -> Grade:
    if max_score == 0:
        return "F"
    percentage = total_score / max_score * 100
    if percentage >= 90:
        return "A"
    if percentage >= 80:
        return "B"
    if percentage >= 70:
        return "C"
    if percentage >= 60:
        return "D"
    return "F"


def score_session(session: SessionData) -> SessionDimensionScore:
    """Score a session across all seven dimensions and assign a letter grade."""
    dimensions = {score.dimension: score for score in (scorer(session) for scorer in DIMENSION_SCORERS)}
    total = sum(d.points for d in dimensions.values())
    maximum = sum(d.max_points for d in dimensions.values())
    return SessionDimensionScore(
        session_id=session.session_id,
        dimensions=dimensions,
        total_score=total,
        max_score=maximum,
        grade=compute_grade(total, maximum),
    )
