"""Prediction registry and discriminative-power estimation."""

from brenner_engine.registry.predictions import (
    BINARY_ANTONYMS,
    NEGATIVE_PREDICTION_TEXT,
    POSITIVE_PREDICTION_TEXT,
    QUANTITATIVE_INDICATORS,
    VAGUE_PHRASES,
    DiscriminationCheck,
    PredictionRegistry,
    create_binary_prediction,
    create_prediction,
    estimate_discriminative_power,
    validate_discriminative_power,
)

__all__ = [
    "BINARY_ANTONYMS",
    "NEGATIVE_PREDICTION_TEXT",
    "POSITIVE_PREDICTION_TEXT",
    "QUANTITATIVE_INDICATORS",
    "VAGUE_PHRASES",
    "DiscriminationCheck",
    "PredictionRegistry",
    "create_binary_prediction",
    "create_prediction",
    "estimate_discriminative_power",
    "validate_discriminative_power",
]
