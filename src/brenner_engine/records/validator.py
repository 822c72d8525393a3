"""
Record validation.

Structural validation of hypothesis, prediction, test and transition records
plus cross-reference checks between them. Validators return itemized results
instead of raising so callers can show every problem at once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError

from brenner_engine.records.hypothesis import Hypothesis, HypothesisCategory, detect_level_conflation
from brenner_engine.records.prediction import Prediction
from brenner_engine.records.testrecord import TestRecord
from brenner_engine.records.transition import Transition

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordValidation(BaseModel, Generic[RecordT]):
    """Outcome of validating one record."""

    valid: bool = Field(..., description="True when the record is structurally valid")
    errors: list[str] = Field(default_factory=list, description="Itemized structural errors")
    warnings: list[str] = Field(default_factory=list, description="Soft quality signals")
    record: RecordT | None = Field(default=None, description="Parsed record when valid")


def format_validation_errors(exc: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into ``"path: message"`` strings."""
    errors = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "(root)"
        errors.append(f"{path}: {error['msg']}")
    return errors


def _parse(model: type[RecordT], data: Mapping[str, Any] | RecordT) -> RecordValidation[RecordT]:
    if isinstance(data, model):
        data = data.model_dump(by_alias=True)
    try:
        record = model.model_validate(data)
    except ValidationError as exc:
        errors = format_validation_errors(exc)
        logger.debug(f"{model.__name__} failed validation with {len(errors)} error(s)")
        return RecordValidation[model](valid=False, errors=errors)
    return RecordValidation[model](valid=True, record=record)


def validate_hypothesis(data: Mapping[str, Any] | Hypothesis) -> RecordValidation[Hypothesis]:
    """
    Validate a hypothesis record.

    Besides structural errors, warns about mechanistic hypotheses without a
    mechanism and about level-conflating language.
    """
    result = _parse(Hypothesis, data)
    hypothesis = result.record
    if hypothesis is None:
        return result

    if hypothesis.category == HypothesisCategory.MECHANISTIC and not hypothesis.mechanism:
        result.warnings.append("Mechanistic hypothesis has no mechanism described")
    text = f"{hypothesis.statement} {hypothesis.mechanism or ''}"
    for phrase in detect_level_conflation(text):
        result.warnings.append(f'Possible level conflation: "{phrase}"')
    return result


def validate_prediction(data: Mapping[str, Any] | Prediction) -> RecordValidation[Prediction]:
    """Validate a prediction record, rejecting duplicate hypothesis entries."""
    result = _parse(Prediction, data)
    prediction = result.record
    if prediction is None:
        return result

    ids = prediction.hypothesis_ids()
    duplicates = sorted({hid for hid in ids if ids.count(hid) > 1})
    if duplicates:
        return RecordValidation[Prediction](
            valid=False,
            errors=[f"hypothesisPredictions: duplicate entries for {', '.join(duplicates)}"],
        )
    return result


def validate_test_record(data: Mapping[str, Any] | TestRecord) -> RecordValidation[TestRecord]:
    """Validate a test record, requiring one expected outcome per discriminated hypothesis."""
    result = _parse(TestRecord, data)
    test = result.record
    if test is None:
        return result

    errors = [
        f"expectedOutcomes: missing expected outcome for hypothesis {hid}"
        for hid in test.discriminates
        if test.outcome_for(hid) is None
    ]
    if errors:
        return RecordValidation[TestRecord](valid=False, errors=errors)
    return result


def validate_transition(data: Mapping[str, Any] | Transition) -> RecordValidation[Transition]:
    return _parse(Transition, data)


def check_cross_references(
    hypotheses: Iterable[Hypothesis],
    predictions: Iterable[Prediction] = (),
    tests: Iterable[TestRecord] = (),
) -> list[str]:
    """
    Check referential integrity across a session's records.

    Args:
        hypotheses: Known hypotheses.
        predictions: Predictions whose hypothesis references are checked.
        tests: Tests whose hypothesis and prediction references are checked.

    Returns:
        Itemized errors; empty when every reference resolves.
    """
    hypothesis_ids = {h.id for h in hypotheses}
    predictions = list(predictions)
    prediction_ids = {p.id for p in predictions}
    errors: list[str] = []

    for prediction in predictions:
        for hid in prediction.hypothesis_ids():
            if hid not in hypothesis_ids:
                errors.append(f"Prediction {prediction.id} references unknown hypothesis {hid}")
        if prediction.confirmed_hypothesis_id and prediction.confirmed_hypothesis_id not in prediction.hypothesis_ids():
            errors.append(
                f"Prediction {prediction.id} confirms {prediction.confirmed_hypothesis_id}, "
                "which is not one of its hypotheses"
            )

    for test in tests:
        for hid in test.discriminates:
            if hid not in hypothesis_ids:
                errors.append(f"Test {test.id} discriminates unknown hypothesis {hid}")
        for outcome in test.expected_outcomes:
            if outcome.hypothesis_id not in test.discriminates:
                errors.append(
                    f"Test {test.id} has an expected outcome for {outcome.hypothesis_id}, "
                    "which it does not discriminate"
                )
        for pid in test.addresses_predictions:
            if pid not in prediction_ids:
                errors.append(f"Test {test.id} addresses unknown prediction {pid}")

    return errors
