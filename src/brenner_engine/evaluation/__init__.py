"""Test record evaluation: potency, discrimination and score calibration."""

from brenner_engine.evaluation.testrecord_validator import (
    InflationCheck,
    InflationPolicy,
    TestValidationReport,
    ValidationOutcome,
    calculate_potency_score,
    calculate_total_score,
    create_binary_test,
    create_test_record,
    detect_inflated_scores,
    validate_discriminative_power,
    validate_potency_check,
    validate_test,
)

__all__ = [
    "InflationCheck",
    "InflationPolicy",
    "TestValidationReport",
    "ValidationOutcome",
    "calculate_potency_score",
    "calculate_total_score",
    "create_binary_test",
    "create_test_record",
    "detect_inflated_scores",
    "validate_discriminative_power",
    "validate_potency_check",
    "validate_test",
]
