"""
Test records.

A test is a procedure designed to discriminate between at least two
hypotheses. Every test carries a potency check: without a positive control a
negative result cannot be interpreted, so a test lacking one does not
construct.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field

from brenner_engine.records.base import Anchor, RecordModel, now_utc
from brenner_engine.records.ids import HYPOTHESIS_ID_PATTERN, PREDICTION_ID_PATTERN, TEST_ID_PATTERN

HypothesisId = Annotated[str, Field(pattern=HYPOTHESIS_ID_PATTERN)]
PredictionId = Annotated[str, Field(pattern=PREDICTION_ID_PATTERN)]
Score = Annotated[int, Field(ge=0, le=3)]


class TestStatus(str, Enum):
    __test__ = False

    DESIGNED = "designed"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    ABANDONED = "abandoned"


class ResultType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class OutcomeConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Difficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    VERY_HARD = "very_hard"


class PotencyCheck(RecordModel):
    """Evidence that the assay would have detected the effect if it were present."""

    positive_control: str = Field(..., min_length=1, description="Positive control demonstrating detection")
    sensitivity_verification: str | None = Field(default=None, description="Detection limit verification")
    timing_validation: str | None = Field(default=None, description="Timing window validation")
    score: Score | None = Field(default=None, description="Cached potency score")


class EvidencePerWeekScore(RecordModel):
    """Four-dimension test value estimate, each 0-3."""

    likelihood_ratio: Score = Field(..., description="How strongly a result shifts belief")
    cost: Score = Field(..., description="3 = cheapest")
    speed: Score = Field(..., description="3 = fastest")
    ambiguity: Score = Field(..., description="3 = least ambiguous")

    @property
    def total(self) -> int:
        return self.likelihood_ratio + self.cost + self.speed + self.ambiguity


class TranspositionAlternative(BaseModel):
    system: str
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class ObjectTransposition(RecordModel):
    """Whether the test was considered in alternative experimental systems."""

    considered: bool = Field(default=False)
    alternatives: list[TranspositionAlternative] = Field(default_factory=list)
    chosen_rationale: str | None = Field(default=None)


class TestFeasibility(RecordModel):
    __test__ = False

    requirements: str | None = Field(default=None)
    difficulty: Difficulty | None = Field(default=None)
    blockers: list[str] = Field(default_factory=list)
    estimated_duration: str | None = Field(default=None)
    estimated_cost: str | None = Field(default=None)


class ExpectedOutcome(RecordModel):
    """The result a test should produce if a given hypothesis is true."""

    hypothesis_id: HypothesisId
    outcome: str = Field(..., min_length=5)
    result_type: ResultType | None = Field(default=None)
    confidence: OutcomeConfidence | None = Field(default=None)


class TestExecution(RecordModel):
    """Record of a test having been run."""

    __test__ = False

    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    executed_by: str | None = Field(default=None)
    observed_outcome: str = Field(..., min_length=1)
    potency_check_passed: bool = Field(default=True)
    potency_check_notes: str | None = Field(default=None)
    raw_data_ref: str | None = Field(default=None)
    matched_hypothesis_id: HypothesisId | None = Field(default=None)
    notes: str | None = Field(default=None)
    unexpected_observations: list[str] = Field(default_factory=list)


class TestRecord(RecordModel):
    """A discriminative test design."""

    __test__ = False

    id: str = Field(..., pattern=TEST_ID_PATTERN)
    name: str = Field(..., min_length=5, max_length=200)
    procedure: str = Field(..., min_length=20, description="How the test is performed")
    discriminates: list[HypothesisId] = Field(..., min_length=2, description="Hypotheses this test separates")
    expected_outcomes: list[ExpectedOutcome] = Field(..., min_length=2)
    addresses_predictions: list[PredictionId] = Field(default_factory=list)
    potency_check: PotencyCheck = Field(..., description="Mandatory potency check")
    evidence_per_week_score: EvidencePerWeekScore | None = Field(default=None)
    object_transposition: ObjectTransposition | None = Field(default=None)
    feasibility: TestFeasibility | None = Field(default=None)
    required_assumptions: list[str] = Field(default_factory=list)
    designed_in_session: str = Field(..., min_length=1)
    designed_by: str | None = Field(default=None)
    status: TestStatus = Field(default=TestStatus.DESIGNED)
    execution: TestExecution | None = Field(default=None)
    anchors: list[Anchor] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(default=None)
    priority: int | None = Field(default=None, ge=1, le=5)

    def outcome_for(self, hypothesis_id: str) -> ExpectedOutcome | None:
        for outcome in self.expected_outcomes:
            if outcome.hypothesis_id == hypothesis_id:
                return outcome
        return None
