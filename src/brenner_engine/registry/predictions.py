"""
Prediction registry.

Estimates and validates how well a prediction separates its competing
hypotheses, and keeps the session's predictions addressable by id.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from itertools import combinations

from pydantic import BaseModel, Field

from brenner_engine.binding.polarity import Polarity
from brenner_engine.errors import NonDiscriminativePredictionError
from brenner_engine.records.base import now_utc
from brenner_engine.records.prediction import (
    HypothesisPrediction,
    Prediction,
    PredictionStatus,
    PredictionType,
)

logger = logging.getLogger(__name__)

VAGUE_PHRASES: tuple[str, ...] = ("might", "could", "possibly", "maybe", "some effect", "changes")

BINARY_ANTONYMS: tuple[tuple[str, str], ...] = (
    ("present", "absent"),
    ("alive", "dead"),
    ("positive", "negative"),
    ("yes", "no"),
    ("increase", "decrease"),
    ("higher", "lower"),
    ("active", "inactive"),
)

QUANTITATIVE_INDICATORS: tuple[str, ...] = ("increase", "decrease", "higher", "lower", ">", "<", "%")

POSITIVE_PREDICTION_TEXT = "Effect present / positive result"
NEGATIVE_PREDICTION_TEXT = "No effect / negative result"


class DiscriminationCheck(BaseModel):
    """Whether a prediction separates its hypotheses, with reasons."""

    is_discriminative: bool
    issues: list[str] = Field(default_factory=list)


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _has_term(text: str, term: str) -> bool:
    return re.search(rf"\b{re.escape(term)}", text) is not None


def validate_discriminative_power(prediction: Prediction) -> DiscriminationCheck:
    """
    Check that a prediction can tell its hypotheses apart.

    Fewer than two entries or duplicate predicted texts make the prediction
    non-discriminative. Vague language is reported as an issue but does not
    by itself make it non-discriminative.
    """
    entries = prediction.hypothesis_predictions
    issues: list[str] = []
    discriminative = True

    if len(entries) < 2:
        issues.append("Prediction must involve at least 2 hypotheses")
        discriminative = False

    normalized = [_normalize(entry.prediction) for entry in entries]
    if len(set(normalized)) < len(normalized):
        issues.append("Some hypotheses have identical predictions - not discriminative")
        discriminative = False

    for entry in entries:
        text = entry.prediction.lower()
        for phrase in VAGUE_PHRASES:
            if _has_term(text, phrase):
                issues.append(f'Prediction for {entry.hypothesis_id} uses vague language: "{phrase}"')
                break

    return DiscriminationCheck(is_discriminative=discriminative, issues=issues)


def estimate_discriminative_power(prediction: Prediction) -> int:
    """
    Estimate discriminative power on a 0-3 scale.

    Returns:
        3 when two predictions use opposite binary terms, 2 when any uses a
        quantitative indicator, 1 otherwise, 0 with fewer than two entries.
    """
    texts = [entry.prediction.lower() for entry in prediction.hypothesis_predictions]
    if len(texts) < 2:
        return 0

    for first, second in combinations(texts, 2):
        for a, b in BINARY_ANTONYMS:
            if (_has_term(first, a) and _has_term(second, b)) or (_has_term(first, b) and _has_term(second, a)):
                return 3

    if any(indicator in text for text in texts for indicator in QUANTITATIVE_INDICATORS):
        return 2
    return 1


def create_prediction(
    id: str,
    name: str,
    condition: str,
    session_id: str,
    hypothesis_predictions: list[HypothesisPrediction | Mapping],
    **extra: object,
) -> Prediction:
    """Build a prediction with its discriminative power estimated.

    Raises:
        pydantic.ValidationError: If the fields are structurally invalid.
    """
    now = now_utc()
    prediction = Prediction(
        id=id,
        name=name,
        condition=condition,
        session_id=session_id,
        hypothesis_predictions=hypothesis_predictions,
        created_at=now,
        updated_at=now,
        **extra,
    )
    check = validate_discriminative_power(prediction)
    return prediction.model_copy(
        update={
            "discriminative_power": prediction.discriminative_power
            if prediction.discriminative_power is not None
            else estimate_discriminative_power(prediction),
            "is_discriminative": check.is_discriminative,
        }
    )


def create_binary_prediction(
    id: str,
    name: str,
    condition: str,
    session_id: str,
    first_hypothesis_id: str,
    first_predicts: Polarity,
    second_hypothesis_id: str,
    second_predicts: Polarity,
) -> Prediction:
    """
    Build a two-hypothesis present/absent prediction.

    Raises:
        NonDiscriminativePredictionError: If both hypotheses predict the same polarity.
    """
    first_predicts, second_predicts = Polarity(first_predicts), Polarity(second_predicts)
    if first_predicts == second_predicts:
        raise NonDiscriminativePredictionError(
            f"Binary prediction is not discriminative: both hypotheses predict {first_predicts.value}. "
            "One hypothesis must predict a positive result and the other a negative result."
        )

    def text(polarity: Polarity) -> str:
        return POSITIVE_PREDICTION_TEXT if polarity == Polarity.POSITIVE else NEGATIVE_PREDICTION_TEXT

    return create_prediction(
        id,
        name,
        condition,
        session_id,
        [
            HypothesisPrediction(
                hypothesis_id=first_hypothesis_id,
                prediction=text(first_predicts),
                type=PredictionType.QUALITATIVE,
            ),
            HypothesisPrediction(
                hypothesis_id=second_hypothesis_id,
                prediction=text(second_predicts),
                type=PredictionType.QUALITATIVE,
            ),
        ],
        discriminative_power=3,
    )


class PredictionRegistry(Mapping[str, Prediction]):
    """Caller-owned, read-mostly map of a session's predictions."""

    def __init__(self, predictions: list[Prediction] | None = None):
        self._predictions: dict[str, Prediction] = {}
        for prediction in predictions or []:
            self.register(prediction)

    def __getitem__(self, prediction_id: str) -> Prediction:
        return self._predictions[prediction_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._predictions)

    def __len__(self) -> int:
        return len(self._predictions)

    def register(self, prediction: Prediction) -> DiscriminationCheck:
        """
        Add or replace a prediction, recording its discrimination check.

        The stored copy has ``is_discriminative`` set from the check and
        ``discriminative_power`` estimated when it was not supplied.

        Returns:
            The discrimination check for the prediction.
        """
        check = validate_discriminative_power(prediction)
        power = prediction.discriminative_power
        if power is None:
            power = estimate_discriminative_power(prediction)
        self._predictions[prediction.id] = prediction.model_copy(
            update={"is_discriminative": check.is_discriminative, "discriminative_power": power}
        )
        if not check.is_discriminative:
            logger.warning(f"Prediction {prediction.id} is not discriminative: {'; '.join(check.issues)}")
        return check

    def for_hypothesis(self, hypothesis_id: str) -> list[Prediction]:
        return [p for p in self._predictions.values() if hypothesis_id in p.hypothesis_ids()]

    def mark_status(
        self,
        prediction_id: str,
        status: PredictionStatus,
        *,
        confirmed_hypothesis_id: str | None = None,
        reason: str | None = None,
    ) -> Prediction:
        """Replace a prediction with a copy carrying a new status."""
        current = self._predictions[prediction_id]
        if confirmed_hypothesis_id and confirmed_hypothesis_id not in current.hypothesis_ids():
            raise ValueError(f"{confirmed_hypothesis_id} is not part of prediction {prediction_id}")
        updated = current.model_copy(
            update={
                "status": PredictionStatus(status),
                "confirmed_hypothesis_id": confirmed_hypothesis_id or current.confirmed_hypothesis_id,
                "status_reason": reason,
                "updated_at": now_utc(),
            }
        )
        self._predictions[prediction_id] = updated
        return updated
