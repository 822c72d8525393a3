"""
Test record validation.

Scores potency checks and discriminative power, flags over-optimistic
evidence-per-week estimates, and composes everything into one report. Only
missing discrimination and missing potency make a test invalid; everything
else is a warning.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from pydantic import BaseModel, Field

from brenner_engine.binding.polarity import Polarity
from brenner_engine.config import get_settings
from brenner_engine.errors import NonDiscriminativePredictionError
from brenner_engine.records.base import now_utc
from brenner_engine.records.testrecord import (
    EvidencePerWeekScore,
    ExpectedOutcome,
    PotencyCheck,
    ResultType,
    TestRecord,
)

logger = logging.getLogger(__name__)

MAX_EVIDENCE_TOTAL = 12

_BINARY_LANGUAGE_RE = re.compile(r"\b(?:present|absent|yes|no)\b", re.IGNORECASE)


class InflationPolicy(BaseModel):
    """Thresholds for flagging suspiciously high evidence-per-week scores."""

    inflated_total_threshold: int = Field(default=11, ge=0, le=MAX_EVIDENCE_TOTAL)
    flag_cheap_and_fast: bool = Field(default=True)

    @classmethod
    def from_settings(cls) -> "InflationPolicy":
        settings = get_settings()
        return cls(
            inflated_total_threshold=settings.inflated_total_threshold,
            flag_cheap_and_fast=settings.flag_cheap_and_fast,
        )


class InflationCheck(BaseModel):
    inflated: bool
    message: str | None = None


class ValidationOutcome(BaseModel):
    """Validity plus a 0-3 score and the issues behind it."""

    valid: bool
    score: int = Field(..., ge=0, le=3)
    issues: list[str] = Field(default_factory=list)


class TestValidationReport(BaseModel):
    """Composite validity report for one test."""

    __test__ = False

    valid: bool
    discriminative_power: int = Field(..., ge=0, le=3)
    potency_score: int = Field(..., ge=0, le=3)
    score_inflated: bool
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def _min_length(min_length: int | None) -> int:
    return min_length if min_length is not None else get_settings().min_text_length


def calculate_potency_score(check: PotencyCheck, min_length: int | None = None) -> int:
    """One point each for a specific positive control, sensitivity verification and timing validation."""
    threshold = _min_length(min_length)
    parts = (check.positive_control, check.sensitivity_verification, check.timing_validation)
    return sum(1 for part in parts if part and len(part) >= threshold)


def validate_potency_check(
    subject: TestRecord | PotencyCheck | None,
    min_length: int | None = None,
) -> ValidationOutcome:
    """
    Gate a test on its potency check.

    A missing potency check, or a positive control shorter than the minimum
    length, is invalid with score 0 regardless of anything else.
    """
    check = subject.potency_check if isinstance(subject, TestRecord) else subject
    if check is None:
        return ValidationOutcome(
            valid=False,
            score=0,
            issues=["CRITICAL: No potency check. Test MUST have a potency check."],
        )

    threshold = _min_length(min_length)
    if len(check.positive_control or "") < threshold:
        return ValidationOutcome(
            valid=False,
            score=0,
            issues=["Potency check must have a specific positive control"],
        )
    return ValidationOutcome(valid=True, score=calculate_potency_score(check, threshold))


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def validate_discriminative_power(test: TestRecord) -> ValidationOutcome:
    """
    Score how well a test's expected outcomes separate its hypotheses.

    Returns:
        Invalid with score 0 when fewer than two hypotheses are discriminated,
        an outcome is missing, or all outcomes are identical. Otherwise 3 for
        distinct outcomes where at least one is binary, 2 for distinct
        outcomes, 1 otherwise.
    """
    issues: list[str] = []
    if len(test.discriminates) < 2:
        issues.append("Test must discriminate between at least 2 hypotheses")
    if len(test.expected_outcomes) < 2:
        issues.append("Test must have expected outcomes for at least 2 hypotheses")
    for hypothesis_id in test.discriminates:
        if test.outcome_for(hypothesis_id) is None:
            issues.append(f"Missing expected outcome for hypothesis {hypothesis_id}")
    if issues:
        return ValidationOutcome(valid=False, score=0, issues=issues)

    texts = [_normalize(o.outcome) for o in test.expected_outcomes]
    distinct = set(texts)
    if len(distinct) == 1:
        return ValidationOutcome(
            valid=False,
            score=0,
            issues=["All expected outcomes are identical - test cannot discriminate"],
        )

    all_distinct = len(distinct) == len(texts)
    binary = any(
        o.result_type in (ResultType.POSITIVE, ResultType.NEGATIVE) or _BINARY_LANGUAGE_RE.search(o.outcome)
        for o in test.expected_outcomes
    )
    if binary and all_distinct:
        score = 3
    elif all_distinct:
        score = 2
    else:
        score = 1
    return ValidationOutcome(valid=True, score=score)


def calculate_total_score(score: EvidencePerWeekScore) -> int:
    return score.total


def detect_inflated_scores(
    score: EvidencePerWeekScore,
    policy: InflationPolicy | None = None,
) -> InflationCheck:
    """
    Flag evidence-per-week scores that look optimistic.

    Args:
        score: The four-dimension estimate.
        policy: Thresholds; defaults to the configured policy.

    Returns:
        InflationCheck with a coaching message when flagged.
    """
    policy = policy or InflationPolicy.from_settings()
    total = score.total
    if total == MAX_EVIDENCE_TOTAL:
        return InflationCheck(
            inflated=True,
            message="All scores are maximum (12/12). This is suspicious - real tests have trade-offs.",
        )
    if total >= policy.inflated_total_threshold:
        return InflationCheck(
            inflated=True,
            message=(
                f"Scores are very high ({policy.inflated_total_threshold}+/12). "
                "Consider if this is realistic or optimistic."
            ),
        )
    if policy.flag_cheap_and_fast and score.cost == 3 and score.speed == 3:
        return InflationCheck(inflated=True, message="Cheap AND fast is rare. Verify these scores are accurate.")
    return InflationCheck(inflated=False)


def validate_test(test: TestRecord, policy: InflationPolicy | None = None) -> TestValidationReport:
    """
    Compose discrimination, potency and calibration checks into one report.

    Args:
        test: The test design.
        policy: Inflation thresholds; defaults to the configured policy.

    Returns:
        TestValidationReport; ``valid`` only reflects hard issues.
    """
    discrimination = validate_discriminative_power(test)
    potency = validate_potency_check(test)
    issues = discrimination.issues + potency.issues
    warnings: list[str] = []

    inflated = False
    if test.evidence_per_week_score is not None:
        inflation = detect_inflated_scores(test.evidence_per_week_score, policy)
        inflated = inflation.inflated
        if inflation.message:
            warnings.append(inflation.message)

    if test.object_transposition is None or not test.object_transposition.considered:
        warnings.append("Consider object transposition: could this test be done in a different system?")

    report = TestValidationReport(
        valid=not issues,
        discriminative_power=discrimination.score,
        potency_score=potency.score,
        score_inflated=inflated,
        issues=issues,
        warnings=warnings,
    )
    logger.debug(f"Validated test {test.id}: valid={report.valid} warnings={len(warnings)}")
    return report


def create_test_record(
    id: str,
    name: str,
    procedure: str,
    designed_in_session: str,
    discriminates: list[str],
    expected_outcomes: list[ExpectedOutcome | Mapping],
    potency_check: PotencyCheck | Mapping,
    **extra: object,
) -> TestRecord:
    """Build a test record in the ``designed`` state.

    Raises:
        pydantic.ValidationError: If the fields are structurally invalid,
            including a potency check without a positive control.
    """
    now = now_utc()
    return TestRecord(
        id=id,
        name=name,
        procedure=procedure,
        designed_in_session=designed_in_session,
        discriminates=discriminates,
        expected_outcomes=expected_outcomes,
        potency_check=potency_check,
        created_at=now,
        updated_at=now,
        **extra,
    )


def create_binary_test(
    id: str,
    name: str,
    procedure: str,
    designed_in_session: str,
    first_hypothesis_id: str,
    first_predicts: Polarity,
    second_hypothesis_id: str,
    second_predicts: Polarity,
    positive_control: str,
    *,
    sensitivity_verification: str | None = None,
    timing_validation: str | None = None,
    cost: int = 2,
    speed: int = 2,
    **extra: object,
) -> TestRecord:
    """
    Build a present/absent test between two hypotheses.

    Binary tests get maximal likelihood-ratio and ambiguity scores.

    Raises:
        NonDiscriminativePredictionError: If both hypotheses predict the same polarity.
    """
    first_predicts, second_predicts = Polarity(first_predicts), Polarity(second_predicts)
    if first_predicts == second_predicts:
        raise NonDiscriminativePredictionError(
            f"Binary test is not discriminative: both hypotheses predict {first_predicts.value}."
        )

    def outcome(hypothesis_id: str, polarity: Polarity) -> ExpectedOutcome:
        if polarity == Polarity.POSITIVE:
            return ExpectedOutcome(
                hypothesis_id=hypothesis_id,
                outcome="Effect present / positive result",
                result_type=ResultType.POSITIVE,
            )
        return ExpectedOutcome(
            hypothesis_id=hypothesis_id,
            outcome="No effect / negative result",
            result_type=ResultType.NEGATIVE,
        )

    potency = PotencyCheck(
        positive_control=positive_control,
        sensitivity_verification=sensitivity_verification,
        timing_validation=timing_validation,
    )
    return create_test_record(
        id,
        name,
        procedure,
        designed_in_session,
        [first_hypothesis_id, second_hypothesis_id],
        [outcome(first_hypothesis_id, first_predicts), outcome(second_hypothesis_id, second_predicts)],
        potency.model_copy(update={"score": calculate_potency_score(potency)}),
        evidence_per_week_score=EvidencePerWeekScore(likelihood_ratio=3, cost=cost, speed=speed, ambiguity=3),
        **extra,
    )
