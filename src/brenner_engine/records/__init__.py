"""
Record models and structural validation.

Hypotheses, predictions, tests and transitions as exchanged with the
enclosing application, plus identifier formats and itemized validators.
"""

from brenner_engine.records.hypothesis import (
    Confidence,
    Hypothesis,
    HypothesisCategory,
    HypothesisOrigin,
    HypothesisState,
    ThirdAlternativeCheck,
    create_hypothesis,
    create_third_alternative,
    detect_level_conflation,
    validate_third_alternative,
)
from brenner_engine.records.ids import (
    generate_hypothesis_id,
    generate_id,
    generate_prediction_id,
    generate_test_id,
    is_valid_anchor,
    is_valid_anomaly_id,
    is_valid_assumption_id,
    is_valid_hypothesis_id,
    is_valid_prediction_id,
    is_valid_record_id,
    is_valid_test_id,
)
from brenner_engine.records.prediction import (
    HypothesisPrediction,
    Prediction,
    PredictionStatus,
    PredictionType,
)
from brenner_engine.records.testrecord import (
    Difficulty,
    EvidencePerWeekScore,
    ExpectedOutcome,
    ObjectTransposition,
    OutcomeConfidence,
    PotencyCheck,
    ResultType,
    TestExecution,
    TestFeasibility,
    TestRecord,
    TestStatus,
    TranspositionAlternative,
)
from brenner_engine.records.transition import Transition, TransitionTrigger
from brenner_engine.records.validator import (
    RecordValidation,
    check_cross_references,
    format_validation_errors,
    validate_hypothesis,
    validate_prediction,
    validate_test_record,
    validate_transition,
)

__all__ = [
    "Confidence",
    "Hypothesis",
    "HypothesisCategory",
    "HypothesisOrigin",
    "HypothesisState",
    "ThirdAlternativeCheck",
    "create_hypothesis",
    "create_third_alternative",
    "detect_level_conflation",
    "validate_third_alternative",
    "generate_id",
    "generate_hypothesis_id",
    "generate_prediction_id",
    "generate_test_id",
    "is_valid_anchor",
    "is_valid_anomaly_id",
    "is_valid_assumption_id",
    "is_valid_hypothesis_id",
    "is_valid_prediction_id",
    "is_valid_record_id",
    "is_valid_test_id",
    "HypothesisPrediction",
    "Prediction",
    "PredictionStatus",
    "PredictionType",
    "Difficulty",
    "EvidencePerWeekScore",
    "ExpectedOutcome",
    "ObjectTransposition",
    "OutcomeConfidence",
    "PotencyCheck",
    "ResultType",
    "TestExecution",
    "TestFeasibility",
    "TestRecord",
    "TestStatus",
    "TranspositionAlternative",
    "Transition",
    "TransitionTrigger",
    "RecordValidation",
    "check_cross_references",
    "format_validation_errors",
    "validate_hypothesis",
    "validate_prediction",
    "validate_test_record",
    "validate_transition",
]
