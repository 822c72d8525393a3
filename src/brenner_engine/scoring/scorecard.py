"""
Per-contribution scorecard.

Each contribution is scored on three universal criteria plus the criteria of
its role. Criteria are 0-3 (or 0-2 for the optional ones) and combined with a
fixed weight table. Optional criteria that do not apply shrink the maximum
instead of counting as zero. Pass/fail gates can invalidate a contribution
regardless of its numeric score; warnings are coaching only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from statistics import mean
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from brenner_engine.records.base import now_utc

logger = logging.getLogger(__name__)

Score = Annotated[int, Field(ge=0, le=3)]
OptionalScore = Annotated[int, Field(ge=0, le=2)]


class ContributorRole(str, Enum):
    HYPOTHESIS_GENERATOR = "hypothesis_generator"
    TEST_DESIGNER = "test_designer"
    ADVERSARIAL_CRITIC = "adversarial_critic"


# Universal criteria


class StructuralCorrectness(BaseModel):
    score: Score = 0
    valid_json: bool = False
    has_required_fields: bool = False
    section_operation_match: bool = False


class CitationCompliance(BaseModel):
    score: Score = 0
    anchor_count: int = Field(default=0, ge=0)
    valid_anchors: int = Field(default=0, ge=0)
    has_inference_markers: bool = False
    fake_anchor_detected: bool = False


class RationaleQuality(BaseModel):
    score: Score = 0
    has_rationale: bool = False
    mentions_operators: bool = False
    explains_why: bool = False


class UniversalCriteria(BaseModel):
    structural_correctness: StructuralCorrectness = Field(default_factory=StructuralCorrectness)
    citation_compliance: CitationCompliance = Field(default_factory=CitationCompliance)
    rationale_quality: RationaleQuality = Field(default_factory=RationaleQuality)


# Hypothesis generator criteria


class LevelSeparation(BaseModel):
    score: Score = 0
    conflation_detected: bool = False
    conflation_patterns: list[str] = Field(default_factory=list)
    mechanism_typed: bool = False


class ThirdAlternativePresence(BaseModel):
    score: Score = 0
    has_third_alternative: bool = False
    is_genuinely_orthogonal: bool = False
    is_placeholder: bool = False


class ParadoxExploitation(BaseModel):
    score: OptionalScore = 0
    applicable: bool = False
    paradox_identified: bool = False
    hypothesis_derived_from_paradox: bool = False


class HypothesisGeneratorCriteria(BaseModel):
    level_separation: LevelSeparation = Field(default_factory=LevelSeparation)
    third_alternative_presence: ThirdAlternativePresence = Field(default_factory=ThirdAlternativePresence)
    paradox_exploitation: ParadoxExploitation = Field(default_factory=ParadoxExploitation)


# Test designer criteria


class DiscriminativePowerCriterion(BaseModel):
    score: Score = 0
    hypotheses_discriminated: int = Field(default=0, ge=0)
    outcomes_are_different: bool = False
    outcomes_are_observable: bool = False
    likelihood_ratio_estimate: float | None = Field(default=None, ge=0)


class PotencyCheckSufficiency(BaseModel):
    score: Score = 0
    has_potency_check: bool = False
    has_positive_control: bool = False
    has_sensitivity_verification: bool = False
    has_timing_validation: bool = False


class ObjectTranspositionCriterion(BaseModel):
    score: OptionalScore = 0
    applicable: bool = False
    alternatives_considered: int = Field(default=0, ge=0)
    cost_benefit_provided: bool = False


class ScoreCalibrationHonesty(BaseModel):
    score: OptionalScore = 0
    has_evidence_score: bool = False
    is_inflated: bool = False
    is_conservative: bool = False


class TestDesignerCriteria(BaseModel):
    __test__ = False

    discriminative_power: DiscriminativePowerCriterion = Field(default_factory=DiscriminativePowerCriterion)
    potency_check_sufficiency: PotencyCheckSufficiency = Field(default_factory=PotencyCheckSufficiency)
    object_transposition: ObjectTranspositionCriterion = Field(default_factory=ObjectTranspositionCriterion)
    score_calibration_honesty: ScoreCalibrationHonesty = Field(default_factory=ScoreCalibrationHonesty)


# Adversarial critic criteria


class ScaleCheckRigor(BaseModel):
    score: Score = 0
    has_scale_check: bool = False
    has_calculation: bool = False
    has_units: bool = False
    has_conclusion: bool = False


class AnomalyQuarantineDiscipline(BaseModel):
    score: Score = 0
    anomaly_count: int = Field(default=0, ge=0)
    quarantined_count: int = Field(default=0, ge=0)
    has_resolution_plans: bool = False
    prematurely_destroys: bool = False


class TheoryKillJustification(BaseModel):
    score: Score = 0
    applicable: bool = False
    has_evidence: bool = False
    evidence_is_decisive: bool = False
    rescue_moves_considered: bool = False
    unjustified_pattern_detected: bool = False


class RealThirdAlternative(BaseModel):
    score: Score = 0
    has_alternative: bool = False
    is_specific: bool = False
    has_mechanism: bool = False
    has_testable_predictions: bool = False


class AdversarialCriticCriteria(BaseModel):
    scale_check_rigor: ScaleCheckRigor = Field(default_factory=ScaleCheckRigor)
    anomaly_quarantine_discipline: AnomalyQuarantineDiscipline = Field(default_factory=AnomalyQuarantineDiscipline)
    theory_kill_justification: TheoryKillJustification = Field(default_factory=TheoryKillJustification)
    real_third_alternative: RealThirdAlternative = Field(default_factory=RealThirdAlternative)


SCORE_WEIGHTS: dict[str, float] = {
    "structural_correctness": 1.0,
    "citation_compliance": 1.0,
    "rationale_quality": 0.5,
    "level_separation": 1.5,
    "third_alternative_presence": 2.0,
    "paradox_exploitation": 0.5,
    "discriminative_power": 2.0,
    "potency_check_sufficiency": 2.0,
    "object_transposition": 0.5,
    "score_calibration_honesty": 0.5,
    "scale_check_rigor": 1.5,
    "anomaly_quarantine_discipline": 1.5,
    "theory_kill_justification": 1.5,
    "real_third_alternative": 1.5,
}

MAX_SCORES: dict[str, int] = {
    "structural_correctness": 3,
    "citation_compliance": 3,
    "rationale_quality": 3,
    "level_separation": 3,
    "third_alternative_presence": 3,
    "discriminative_power": 3,
    "potency_check_sufficiency": 3,
    "scale_check_rigor": 3,
    "anomaly_quarantine_discipline": 3,
    "theory_kill_justification": 3,
    "real_third_alternative": 3,
    "paradox_exploitation": 2,
    "object_transposition": 2,
    "score_calibration_honesty": 2,
}

# Universal 7.5 plus role-specific maxima.
MAX_ROLE_SCORES: dict[str, float] = {
    "hypothesis_generator": 19.0,
    "test_designer": 21.5,
    "adversarial_critic_with_kill": 25.5,
    "adversarial_critic_no_kill": 21.0,
}

OPERATORS: tuple[str, ...] = ("level_split", "exclusion_test", "object_transpose", "scale_check")

BRENNER_QUOTES: dict[str, str] = {
    "level_separation": "Programs don't have wants. Interpreters do. (§58)",
    "third_alternative_presence": "Both could be wrong. (§103)",
    "scale_check_rigor": "The imprisoned imagination: scale constraints are load-bearing. (§58)",
    "anomaly_quarantine_discipline": "We didn't conceal them; we put them in an appendix. (§110)",
    "theory_kill_justification": "When they go ugly, kill them. Get rid of them. (§229)",
    "discriminative_power": "Exclusion is always a tremendously good thing. (§147)",
}


def _weighted(name: str, score: int) -> float:
    return score * SCORE_WEIGHTS[name]


def _weighted_max(name: str) -> float:
    return MAX_SCORES[name] * SCORE_WEIGHTS[name]


def calculate_universal_score(criteria: UniversalCriteria) -> float:
    return (
        _weighted("structural_correctness", criteria.structural_correctness.score)
        + _weighted("citation_compliance", criteria.citation_compliance.score)
        + _weighted("rationale_quality", criteria.rationale_quality.score)
    )


def calculate_hypothesis_generator_score(
    universal: UniversalCriteria, specific: HypothesisGeneratorCriteria
) -> tuple[float, float]:
    """Return ``(score, max_score)``; paradox exploitation only counts when applicable."""
    paradox = specific.paradox_exploitation
    score = (
        calculate_universal_score(universal)
        + _weighted("level_separation", specific.level_separation.score)
        + _weighted("third_alternative_presence", specific.third_alternative_presence.score)
        + (_weighted("paradox_exploitation", paradox.score) if paradox.applicable else 0.0)
    )
    max_score = MAX_ROLE_SCORES["hypothesis_generator"]
    if not paradox.applicable:
        max_score -= _weighted_max("paradox_exploitation")
    return score, max_score


def calculate_test_designer_score(
    universal: UniversalCriteria, specific: TestDesignerCriteria
) -> tuple[float, float]:
    """Return ``(score, max_score)``; transposition and calibration are optional."""
    transposition = specific.object_transposition
    calibration = specific.score_calibration_honesty
    score = (
        calculate_universal_score(universal)
        + _weighted("discriminative_power", specific.discriminative_power.score)
        + _weighted("potency_check_sufficiency", specific.potency_check_sufficiency.score)
        + (_weighted("object_transposition", transposition.score) if transposition.applicable else 0.0)
        + (_weighted("score_calibration_honesty", calibration.score) if calibration.has_evidence_score else 0.0)
    )
    max_score = MAX_ROLE_SCORES["test_designer"]
    if not transposition.applicable:
        max_score -= _weighted_max("object_transposition")
    if not calibration.has_evidence_score:
        max_score -= _weighted_max("score_calibration_honesty")
    return score, max_score


def calculate_adversarial_critic_score(
    universal: UniversalCriteria, specific: AdversarialCriticCriteria
) -> tuple[float, float]:
    """Return ``(score, max_score)``; kill justification only counts when a kill was made."""
    kill = specific.theory_kill_justification
    score = (
        calculate_universal_score(universal)
        + _weighted("scale_check_rigor", specific.scale_check_rigor.score)
        + _weighted("anomaly_quarantine_discipline", specific.anomaly_quarantine_discipline.score)
        + (_weighted("theory_kill_justification", kill.score) if kill.applicable else 0.0)
        + _weighted("real_third_alternative", specific.real_third_alternative.score)
    )
    max_score = MAX_ROLE_SCORES["adversarial_critic_with_kill" if kill.applicable else "adversarial_critic_no_kill"]
    return score, max_score


class GateFailure(BaseModel):
    gate: str
    reason: str


class PassFailGates(BaseModel):
    passed: bool
    failures: list[GateFailure] = Field(default_factory=list)


class ScoreWarning(BaseModel):
    criterion: str
    message: str
    suggestion: str | None = None
    brenner_quote: str | None = None


class ContributionScore(BaseModel):
    """Scored contribution from one agent in one role."""

    contribution_id: str
    session_id: str
    role: ContributorRole
    universal: UniversalCriteria
    hypothesis_generator: HypothesisGeneratorCriteria | None = None
    test_designer: TestDesignerCriteria | None = None
    adversarial_critic: AdversarialCriticCriteria | None = None
    composite_score: float = Field(..., ge=0)
    max_score: float = Field(..., ge=0)
    percentage: float = Field(..., ge=0, le=100)
    pass_fail_gates: PassFailGates
    warnings: list[ScoreWarning] = Field(default_factory=list)
    scored_at: datetime = Field(default_factory=now_utc)


PASS_FAIL_GATES: dict[str, str] = {
    "invalid_json": "Invalid JSON in delta block",
    "missing_required_fields": "Missing required fields in delta",
    "missing_potency_check": "Missing potency check in test design",
    "fake_anchor": "Fake transcript anchor detected (§n that doesn't exist)",
    "kill_without_rationale": "KILL operation without evidence/rationale",
}

WARNING_THRESHOLDS: dict[str, tuple[str, str]] = {
    "low_quality_contribution": ("composite", "Low-quality contribution (< 50% of max score)"),
    "missing_scale_check": ("scale_check_rigor", "Scale check missing for mechanism claim"),
    "weak_potency": ("potency_check_sufficiency", "Weak assay design (potency score < 2)"),
}

WARNING_SUGGESTIONS: dict[str, str] = {
    "composite": "Revisit the role rubric and address the lowest-scoring criteria first.",
    "scale_check_rigor": "Estimate magnitudes with units and state what the calculation rules out.",
    "potency_check_sufficiency": "Add sensitivity verification and timing validation to the positive control.",
}


def check_pass_fail_gates(
    role: ContributorRole,
    universal: UniversalCriteria,
    test_designer: TestDesignerCriteria | None = None,
    adversarial_critic: AdversarialCriticCriteria | None = None,
) -> PassFailGates:
    """Evaluate the disqualifying gates for a contribution."""
    failed: list[str] = []
    if not universal.structural_correctness.valid_json:
        failed.append("invalid_json")
    if not universal.structural_correctness.has_required_fields:
        failed.append("missing_required_fields")
    if role == ContributorRole.TEST_DESIGNER and test_designer is not None:
        if not test_designer.potency_check_sufficiency.has_potency_check:
            failed.append("missing_potency_check")
    if universal.citation_compliance.fake_anchor_detected:
        failed.append("fake_anchor")
    if role == ContributorRole.ADVERSARIAL_CRITIC and adversarial_critic is not None:
        kill = adversarial_critic.theory_kill_justification
        if kill.applicable and not kill.has_evidence:
            failed.append("kill_without_rationale")

    failures = [GateFailure(gate=gate, reason=PASS_FAIL_GATES[gate]) for gate in failed]
    return PassFailGates(passed=not failures, failures=failures)


def generate_warnings(
    role: ContributorRole,
    percentage: float,
    test_designer: TestDesignerCriteria | None = None,
    adversarial_critic: AdversarialCriticCriteria | None = None,
) -> list[ScoreWarning]:
    triggered: list[str] = []
    if percentage < 50:
        triggered.append("low_quality_contribution")
    if role == ContributorRole.ADVERSARIAL_CRITIC:
        scale = adversarial_critic.scale_check_rigor.score if adversarial_critic else 0
        if scale == 0:
            triggered.append("missing_scale_check")
    if role == ContributorRole.TEST_DESIGNER:
        potency = test_designer.potency_check_sufficiency.score if test_designer else 0
        if potency < 2:
            triggered.append("weak_potency")

    warnings = []
    for name in triggered:
        criterion, message = WARNING_THRESHOLDS[name]
        warnings.append(
            ScoreWarning(
                criterion=criterion,
                message=message,
                suggestion=WARNING_SUGGESTIONS.get(criterion),
                brenner_quote=BRENNER_QUOTES.get(criterion),
            )
        )
    return warnings


def _percentage(score: float, max_score: float) -> float:
    if max_score <= 0:
        return 0.0
    return round(min(score / max_score * 100, 100.0), 1)


def score_contribution(
    contribution_id: str,
    session_id: str,
    role: ContributorRole,
    universal: UniversalCriteria,
    *,
    hypothesis_generator: HypothesisGeneratorCriteria | None = None,
    test_designer: TestDesignerCriteria | None = None,
    adversarial_critic: AdversarialCriticCriteria | None = None,
) -> ContributionScore:
    """
    Score one contribution.

    Args:
        contribution_id: Identifier of the scored contribution.
        session_id: Owning session.
        role: Role the contributor played.
        universal: Universal criteria.
        hypothesis_generator: Criteria when role is hypothesis_generator.
        test_designer: Criteria when role is test_designer.
        adversarial_critic: Criteria when role is adversarial_critic.

    Returns:
        ContributionScore with composite score, gates and warnings.

    Raises:
        ValueError: If the criteria block for ``role`` is missing.
    """
    role = ContributorRole(role)
    if role == ContributorRole.HYPOTHESIS_GENERATOR:
        if hypothesis_generator is None:
            raise ValueError("hypothesis_generator criteria are required for role hypothesis_generator")
        score, max_score = calculate_hypothesis_generator_score(universal, hypothesis_generator)
    elif role == ContributorRole.TEST_DESIGNER:
        if test_designer is None:
            raise ValueError("test_designer criteria are required for role test_designer")
        score, max_score = calculate_test_designer_score(universal, test_designer)
    else:
        if adversarial_critic is None:
            raise ValueError("adversarial_critic criteria are required for role adversarial_critic")
        score, max_score = calculate_adversarial_critic_score(universal, adversarial_critic)

    percentage = _percentage(score, max_score)
    gates = check_pass_fail_gates(role, universal, test_designer, adversarial_critic)
    if not gates.passed:
        logger.debug(f"Contribution {contribution_id} failed gates: {[f.gate for f in gates.failures]}")

    return ContributionScore(
        contribution_id=contribution_id,
        session_id=session_id,
        role=role,
        universal=universal,
        hypothesis_generator=hypothesis_generator if role == ContributorRole.HYPOTHESIS_GENERATOR else None,
        test_designer=test_designer if role == ContributorRole.TEST_DESIGNER else None,
        adversarial_critic=adversarial_critic if role == ContributorRole.ADVERSARIAL_CRITIC else None,
        composite_score=score,
        max_score=max_score,
        percentage=percentage,
        pass_fail_gates=gates,
        warnings=generate_warnings(role, percentage, test_designer, adversarial_critic),
    )


# Session aggregation


class RoleAggregation(BaseModel):
    count: int = Field(..., ge=0)
    mean_score: float = Field(..., ge=0)
    mean_percentage: float = Field(..., ge=0, le=100)


class Convergence(BaseModel):
    add_count: int = Field(default=0, ge=0)
    kill_count: int = Field(default=0, ge=0)
    converging: bool = False


class OperatorCoverage(BaseModel):
    used: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    coverage_percentage: float = Field(default=0.0, ge=0, le=100)


class SessionMetrics(BaseModel):
    total_contributions: int = Field(default=0, ge=0)
    progression: Literal["improving", "stable", "declining", "unknown"] = "unknown"
    convergence: Convergence = Field(default_factory=Convergence)
    operator_coverage: OperatorCoverage = Field(default_factory=OperatorCoverage)


class SessionScore(BaseModel):
    """Aggregated scorecard for a whole session."""

    session_id: str
    contributions: list[ContributionScore] = Field(default_factory=list)
    role_aggregations: dict[ContributorRole, RoleAggregation] = Field(default_factory=dict)
    session_metrics: SessionMetrics = Field(default_factory=SessionMetrics)
    overall_score: float = Field(default=0.0, ge=0)
    overall_percentage: float = Field(default=0.0, ge=0, le=100)
    warnings: list[ScoreWarning] = Field(default_factory=list)
    scored_at: datetime = Field(default_factory=now_utc)


PROGRESSION_TOLERANCE = 5.0

SESSION_WARNING_THRESHOLDS: dict[str, tuple[str, str]] = {
    "hypothesis_sprawl": ("convergence", "> 3 ADDs without KILL indicates possible hypothesis sprawl"),
    "low_convergence": ("convergence", "Session has not converged (more ADDs than KILLs at end)"),
    "low_operator_coverage": ("operator_coverage", "Less than 50% of operators used in session"),
    "declining_quality": ("progression", "Quality is declining over the session"),
}


def _progression(percentages: list[float]) -> Literal["improving", "stable", "declining", "unknown"]:
    if len(percentages) < 2:
        return "unknown"
    half = len(percentages) // 2
    delta = mean(percentages[half:]) - mean(percentages[:half])
    if delta > PROGRESSION_TOLERANCE:
        return "improving"
    if delta < -PROGRESSION_TOLERANCE:
        return "declining"
    return "stable"


def generate_session_warnings(session: SessionScore) -> list[ScoreWarning]:
    metrics = session.session_metrics
    triggered: list[str] = []
    if metrics.convergence.add_count > 3 and metrics.convergence.kill_count == 0:
        triggered.append("hypothesis_sprawl")
    if metrics.total_contributions >= 5 and not metrics.convergence.converging:
        triggered.append("low_convergence")
    if metrics.operator_coverage.coverage_percentage < 50:
        triggered.append("low_operator_coverage")
    if metrics.progression == "declining":
        triggered.append("declining_quality")
    return [
        ScoreWarning(criterion=SESSION_WARNING_THRESHOLDS[name][0], message=SESSION_WARNING_THRESHOLDS[name][1])
        for name in triggered
    ]


def aggregate_session(
    session_id: str,
    contributions: Iterable[ContributionScore],
    operations: Iterable[str] = (),
    operators_used: Iterable[str] = (),
) -> SessionScore:
    """
    Aggregate contribution scores into a session scorecard.

    Only contributions that passed their gates count toward aggregates.
    Contributions are taken in chronological order for progression.

    Args:
        session_id: Session being scored.
        contributions: Scored contributions in the order they were made.
        operations: Delta operations performed ("ADD", "EDIT", "KILL").
        operators_used: Method operators applied during the session.

    Returns:
        SessionScore with metrics and session-level warnings.
    """
    contributions = list(contributions)
    valid = [c for c in contributions if c.pass_fail_gates.passed]

    aggregations: dict[ContributorRole, RoleAggregation] = {}
    for role in ContributorRole:
        scored = [c for c in valid if c.role == role]
        if scored:
            aggregations[role] = RoleAggregation(
                count=len(scored),
                mean_score=round(mean(c.composite_score for c in scored), 2),
                mean_percentage=round(mean(c.percentage for c in scored), 1),
            )

    ops = [op.upper() for op in operations]
    add_count, kill_count = ops.count("ADD"), ops.count("KILL")
    used = sorted({op for op in operators_used if op in OPERATORS})

    metrics = SessionMetrics(
        total_contributions=len(valid),
        progression=_progression([c.percentage for c in valid]),
        convergence=Convergence(add_count=add_count, kill_count=kill_count, converging=kill_count >= add_count),
        operator_coverage=OperatorCoverage(
            used=used,
            missing=[op for op in OPERATORS if op not in used],
            coverage_percentage=round(len(used) / len(OPERATORS) * 100, 1),
        ),
    )

    total = sum(c.composite_score for c in valid)
    total_max = sum(c.max_score for c in valid)
    session = SessionScore(
        session_id=session_id,
        contributions=contributions,
        role_aggregations=aggregations,
        session_metrics=metrics,
        overall_score=total,
        overall_percentage=_percentage(total, total_max),
    )
    session.warnings = generate_session_warnings(session)
    return session
