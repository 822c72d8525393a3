import pytest

from brenner_engine.binding import Polarity
from brenner_engine.errors import NonDiscriminativePredictionError
from brenner_engine.records import PredictionStatus
from brenner_engine.registry import (
    NEGATIVE_PREDICTION_TEXT,
    POSITIVE_PREDICTION_TEXT,
    PredictionRegistry,
    create_binary_prediction,
    create_prediction,
    estimate_discriminative_power,
    validate_discriminative_power,
)
from conftest import make_prediction


def test_opposite_binary_terms_score_three() -> None:
    prediction = make_prediction(first=("H-s1-001", "Effect present"), second=("H-s1-002", "Effect absent"))
    assert estimate_discriminative_power(prediction) == 3
    assert validate_discriminative_power(prediction).is_discriminative is True


def test_quantitative_indicator_scores_two() -> None:
    prediction = make_prediction(
        first=("H-s1-001", "Expression rises by 50%"),
        second=("H-s1-002", "Expression stays flat"),
    )
    assert estimate_discriminative_power(prediction) == 2


def test_unrelated_texts_score_one() -> None:
    prediction = make_prediction(
        first=("H-s1-001", "Cells migrate anteriorly"),
        second=("H-s1-002", "Cells migrate posteriorly"),
    )
    assert estimate_discriminative_power(prediction) == 1


def test_identical_predictions_are_not_discriminative() -> None:
    prediction = make_prediction(first=("H-s1-001", "Cells change"), second=("H-s1-002", "cells  change"))

    check = validate_discriminative_power(prediction)

    assert check.is_discriminative is False
    assert "Some hypotheses have identical predictions - not discriminative" in check.issues


def test_vague_language_is_reported_without_failing() -> None:
    prediction = make_prediction(
        first=("H-s1-001", "Cells might divide faster"),
        second=("H-s1-002", "Cells arrest in G1"),
    )

    check = validate_discriminative_power(prediction)

    assert check.is_discriminative is True
    assert check.issues == ['Prediction for H-s1-001 uses vague language: "might"']


def test_create_prediction_estimates_power() -> None:
    prediction = create_prediction(
        "P-s1-002",
        "Survival readout",
        "Starve the culture for 48 hours",
        "s1",
        [
            {"hypothesis_id": "H-s1-001", "prediction": "Cells alive"},
            {"hypothesis_id": "H-s1-002", "prediction": "Cells dead"},
        ],
    )
    assert prediction.discriminative_power == 3
    assert prediction.is_discriminative is True


def test_binary_prediction() -> None:
    prediction = create_binary_prediction(
        "P-s1-003",
        "Binary readout",
        "Inject morpholino at the two-cell stage",
        "s1",
        "H-s1-001",
        Polarity.POSITIVE,
        "H-s1-002",
        Polarity.NEGATIVE,
    )

    assert prediction.prediction_for("H-s1-001").prediction == POSITIVE_PREDICTION_TEXT
    assert prediction.prediction_for("H-s1-002").prediction == NEGATIVE_PREDICTION_TEXT
    assert prediction.discriminative_power == 3


def test_binary_prediction_with_same_polarity_raises() -> None:
    with pytest.raises(NonDiscriminativePredictionError):
        create_binary_prediction(
            "P-s1-003",
            "Binary readout",
            "Inject morpholino at the two-cell stage",
            "s1",
            "H-s1-001",
            "positive",
            "H-s1-002",
            "positive",
        )


def test_registry_register_and_lookup() -> None:
    registry = PredictionRegistry([make_prediction()])
    duplicate = make_prediction("P-s1-002", first=("H-s1-001", "Same thing"), second=("H-s1-003", "Same thing"))

    check = registry.register(duplicate)

    assert check.is_discriminative is False
    assert len(registry) == 2
    assert registry["P-s1-002"].is_discriminative is False
    assert registry["P-s1-001"].discriminative_power == 3
    assert [p.id for p in registry.for_hypothesis("H-s1-001")] == ["P-s1-001", "P-s1-002"]
    assert registry.for_hypothesis("H-s1-003")[0].id == "P-s1-002"


def test_registry_mark_status() -> None:
    registry = PredictionRegistry([make_prediction()])

    updated = registry.mark_status("P-s1-001", PredictionStatus.CONFIRMED, confirmed_hypothesis_id="H-s1-002")

    assert updated.status == PredictionStatus.CONFIRMED
    assert registry["P-s1-001"].confirmed_hypothesis_id == "H-s1-002"
    with pytest.raises(ValueError):
        registry.mark_status("P-s1-001", PredictionStatus.CONFIRMED, confirmed_hypothesis_id="H-s1-009")
