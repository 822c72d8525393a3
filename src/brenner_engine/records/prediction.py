"""Prediction records: a condition plus what each competing hypothesis expects."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import Field

from brenner_engine.records.base import Anchor, RecordModel, now_utc
from brenner_engine.records.ids import HYPOTHESIS_ID_PATTERN, PREDICTION_ID_PATTERN, TEST_ID_PATTERN


class PredictionType(str, Enum):
    QUALITATIVE = "qualitative"
    QUANTITATIVE = "quantitative"


class PredictionStatus(str, Enum):
    """Status of a prediction, independent of any one hypothesis's state."""

    UNTESTED = "untested"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    INCONCLUSIVE = "inconclusive"
    INVALIDATED = "invalidated"


class HypothesisPrediction(RecordModel):
    """The outcome one hypothesis predicts under the prediction's condition."""

    hypothesis_id: str = Field(..., pattern=HYPOTHESIS_ID_PATTERN)
    prediction: str = Field(..., min_length=5, description="Predicted outcome text")
    rationale: str | None = Field(default=None, description="Why the hypothesis predicts this")
    type: PredictionType = Field(default=PredictionType.QUALITATIVE)
    expected_value: str | None = Field(default=None, description="Expected value for quantitative predictions")


class Prediction(RecordModel):
    """A condition under which at least two hypotheses predict different outcomes."""

    id: str = Field(..., pattern=PREDICTION_ID_PATTERN)
    name: str = Field(..., min_length=3, max_length=100)
    condition: str = Field(..., min_length=10, description="Experimental condition being predicted")
    hypothesis_predictions: list[HypothesisPrediction] = Field(..., min_length=2)
    is_discriminative: bool = Field(default=True)
    discriminative_power: int | None = Field(default=None, ge=0, le=3)
    discrimination_notes: str | None = Field(default=None)
    session_id: str = Field(..., min_length=1)
    linked_tests: list[Annotated[str, Field(pattern=TEST_ID_PATTERN)]] = Field(default_factory=list, description="Tests addressing this prediction")
    anchors: list[Anchor] = Field(default_factory=list)
    is_inference: bool = Field(default=False)
    proposed_by: str | None = Field(default=None)
    status: PredictionStatus = Field(default=PredictionStatus.UNTESTED)
    confirmed_hypothesis_id: str | None = Field(default=None, pattern=HYPOTHESIS_ID_PATTERN)
    status_reason: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(default=None)

    def hypothesis_ids(self) -> list[str]:
        return [entry.hypothesis_id for entry in self.hypothesis_predictions]

    def prediction_for(self, hypothesis_id: str) -> HypothesisPrediction | None:
        for entry in self.hypothesis_predictions:
            if entry.hypothesis_id == hypothesis_id:
                return entry
        return None

