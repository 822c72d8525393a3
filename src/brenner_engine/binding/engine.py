"""
Test-binding engine.

Turns a recorded test execution into per-hypothesis lifecycle suggestions by
comparing the polarity of the observed result with the polarity of each
hypothesis's prediction, then applies approved suggestions through the
lifecycle state machine.

Pipeline: record -> suggest -> (optionally) apply.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, Field, ValidationError

from brenner_engine.binding.polarity import Polarity, PolarityClassifier, detect_polarity
from brenner_engine.config import get_settings
from brenner_engine.lifecycle.history import TransitionHistoryStore
from brenner_engine.lifecycle.state_machine import TransitionSuccess, transition_hypothesis
from brenner_engine.records.base import RecordModel, now_utc
from brenner_engine.records.hypothesis import Confidence, Hypothesis, HypothesisState
from brenner_engine.records.ids import PREDICTION_ID_PATTERN, TEST_ID_PATTERN
from brenner_engine.records.prediction import Prediction
from brenner_engine.records.testrecord import TestExecution, TestRecord
from brenner_engine.records.transition import Transition, TransitionTrigger
from brenner_engine.records.validator import format_validation_errors

logger = logging.getLogger(__name__)

CONFIDENCE_ORDER: tuple[Confidence, ...] = (
    Confidence.HIGH,
    Confidence.MEDIUM,
    Confidence.LOW,
    Confidence.SPECULATIVE,
)

DEFAULT_TRIGGERED_BY = "test-binding"


class SuggestedAction(str, Enum):
    KILL = "kill"
    VALIDATE = "validate"
    NONE = "none"


ACTION_TRIGGERS: dict[SuggestedAction, TransitionTrigger] = {
    SuggestedAction.KILL: TransitionTrigger.REFUTE,
    SuggestedAction.VALIDATE: TransitionTrigger.CONFIRM,
}


class ExecutionInput(RecordModel):
    """What happened when a test was run."""

    test_id: str = Field(..., pattern=TEST_ID_PATTERN)
    result: str = Field(..., min_length=1, description="Observed result text")
    matched_predictions: list[Annotated[str, Field(pattern=PREDICTION_ID_PATTERN)]] = Field(default_factory=list)
    violated_predictions: list[Annotated[str, Field(pattern=PREDICTION_ID_PATTERN)]] = Field(default_factory=list)
    confidence: Confidence = Field(default=Confidence.MEDIUM)
    executed_by: str | None = Field(default=None)
    notes: str | None = Field(default=None)
    artifacts: list[str] = Field(default_factory=list, description="References to raw data")
    potency_check_passed: bool = Field(default=True)
    potency_check_notes: str | None = Field(default=None)


class ExecutionRecordResult(BaseModel):
    success: bool
    execution: TestExecution | None = None
    execution_input: ExecutionInput | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TransitionSuggestion(BaseModel):
    """A recommended lifecycle action for one hypothesis."""

    hypothesis_id: str
    test_id: str
    action: SuggestedAction
    trigger: TransitionTrigger | None = None
    current_state: HypothesisState
    confidence: Confidence
    supporting_predictions: list[str] = Field(default_factory=list)
    reason: str


class SuggestTransitionsResult(BaseModel):
    suggestions: list[TransitionSuggestion] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ApplyResult(BaseModel):
    """Outcome of applying one suggestion."""

    hypothesis_id: str
    action: SuggestedAction
    success: bool
    transition: Transition | None = None
    error: str | None = None
    skip_reason: str | None = None


class ApplyTransitionsResult(BaseModel):
    applied: list[ApplyResult] = Field(default_factory=list)
    skipped: list[ApplyResult] = Field(default_factory=list)
    errors: list[ApplyResult] = Field(default_factory=list)
    hypotheses: dict[str, Hypothesis] = Field(default_factory=dict, description="Hypotheses after application")


class ProcessResult(BaseModel):
    record_result: ExecutionRecordResult
    suggest_result: SuggestTransitionsResult | None = None
    apply_result: ApplyTransitionsResult | None = None


class PredictionCategories(BaseModel):
    matched: list[str] = Field(default_factory=list)
    violated: list[str] = Field(default_factory=list)
    ambiguous: list[str] = Field(default_factory=list)


def record_test_execution(
    execution_input: ExecutionInput | Mapping[str, Any],
    test: TestRecord,
    predictions: Mapping[str, Prediction],
) -> ExecutionRecordResult:
    """
    Validate an execution against its test and the prediction registry.

    Args:
        execution_input: Execution data, either parsed or raw.
        test: The test that was run.
        predictions: Known predictions keyed by id.

    Returns:
        ExecutionRecordResult with a TestExecution on success, or itemized errors.
        A failed potency check only produces a warning.
    """
    if not isinstance(execution_input, ExecutionInput):
        try:
            execution_input = ExecutionInput.model_validate(execution_input)
        except ValidationError as exc:
            return ExecutionRecordResult(success=False, errors=format_validation_errors(exc))

    errors: list[str] = []
    warnings: list[str] = []

    if execution_input.test_id != test.id:
        errors.append(f"Test ID mismatch: input has {execution_input.test_id}, test has {test.id}")

    if not execution_input.potency_check_passed:
        warning = "Potency check failed: negative results may not be interpretable"
        if execution_input.potency_check_notes:
            warning = f"{warning} ({execution_input.potency_check_notes})"
        warnings.append(warning)
        logger.warning(f"Test {test.id}: {warning}")

    for prediction_id in dict.fromkeys(execution_input.matched_predictions):
        if prediction_id not in predictions:
            errors.append(f"Matched prediction {prediction_id} not found in predictions registry")
    for prediction_id in dict.fromkeys(execution_input.violated_predictions):
        if prediction_id not in predictions:
            errors.append(f"Violated prediction {prediction_id} not found in predictions registry")

    overlap = [
        p for p in dict.fromkeys(execution_input.matched_predictions) if p in execution_input.violated_predictions
    ]
    if overlap:
        errors.append(f"Predictions cannot be both matched and violated: {', '.join(overlap)}")

    if errors:
        return ExecutionRecordResult(success=False, errors=errors, warnings=warnings)

    execution = TestExecution(
        completed_at=now_utc(),
        executed_by=execution_input.executed_by,
        observed_outcome=execution_input.result,
        potency_check_passed=execution_input.potency_check_passed,
        potency_check_notes=execution_input.potency_check_notes,
        raw_data_ref=", ".join(execution_input.artifacts) or None,
        notes=execution_input.notes,
    )
    return ExecutionRecordResult(
        success=True, execution=execution, execution_input=execution_input, warnings=warnings
    )


def derive_confidence(
    base: Confidence,
    potency_check_passed: bool,
    supporting_count: int,
    *,
    potency_penalty: int | None = None,
    boost_prediction_count: int | None = None,
) -> Confidence:
    """Adjust the caller's confidence for potency failure and corroborating predictions."""
    settings = get_settings()
    if potency_penalty is None:
        potency_penalty = settings.potency_failure_confidence_penalty
    if boost_prediction_count is None:
        boost_prediction_count = settings.confidence_boost_prediction_count

    index = CONFIDENCE_ORDER.index(Confidence(base))
    if not potency_check_passed:
        index = min(index + potency_penalty, len(CONFIDENCE_ORDER) - 1)
    if supporting_count >= boost_prediction_count and index > 0:
        index -= 1
    return CONFIDENCE_ORDER[index]


def can_suggest_transition(hypothesis: Hypothesis, action: SuggestedAction) -> tuple[bool, str | None]:
    """
    Check whether ``action`` is reachable from the hypothesis's current state.

    Returns:
        ``(allowed, reason)``; reason explains a refusal.
    """
    state = hypothesis.state
    if action == SuggestedAction.KILL:
        if state == HypothesisState.REFUTED:
            return False, "Hypothesis is already refuted (terminal state)"
        if state == HypothesisState.SUPERSEDED:
            return False, "Hypothesis has been superseded (terminal state)"
        if state == HypothesisState.PROPOSED:
            return False, "Hypothesis must be activated before it can be refuted"
        if state == HypothesisState.DEFERRED:
            return False, "Hypothesis is deferred - reactivate before refuting"
    elif action == SuggestedAction.VALIDATE:
        if state != HypothesisState.ACTIVE:
            return False, f"Hypothesis must be in 'active' state to be confirmed (current: {state.value})"
    return True, None


def suggest_transitions_from_execution(
    execution_input: ExecutionInput,
    predictions: Mapping[str, Prediction],
    hypotheses: Mapping[str, Hypothesis],
    classifier: PolarityClassifier | None = None,
) -> SuggestTransitionsResult:
    """
    Suggest one lifecycle action per hypothesis touched by an execution.

    Hypotheses in a matched prediction are matched when their predicted
    polarity agrees with the result and violated when it disagrees. Every
    hypothesis in an explicitly violated prediction is violated. Any
    violation suggests ``kill``; matches alone suggest ``validate``; an
    ambiguous polarity on either side suggests ``none``. Repeated prediction
    ids count once.

    Args:
        execution_input: Validated execution input.
        predictions: Known predictions keyed by id.
        hypotheses: Current hypotheses keyed by id.
        classifier: Polarity strategy; defaults to the keyword classifier.

    Returns:
        Suggestions plus warnings for unknown or unreachable hypotheses.
    """
    result_polarity = detect_polarity(execution_input.result, classifier)
    involved: dict[str, dict[str, list[str]]] = {}
    warnings: list[str] = []

    def track(hypothesis_id: str) -> dict[str, list[str]]:
        return involved.setdefault(hypothesis_id, {"matched": [], "violated": []})

    for prediction_id in dict.fromkeys(execution_input.matched_predictions):
        prediction = predictions.get(prediction_id)
        if prediction is None:
            continue
        for entry in prediction.hypothesis_predictions:
            bucket = track(entry.hypothesis_id)
            predicted = detect_polarity(entry.prediction, classifier)
            if Polarity.AMBIGUOUS in (predicted, result_polarity):
                continue
            key = "matched" if predicted == result_polarity else "violated"
            bucket[key].append(prediction_id)

    for prediction_id in dict.fromkeys(execution_input.violated_predictions):
        prediction = predictions.get(prediction_id)
        if prediction is None:
            continue
        for entry in prediction.hypothesis_predictions:
            track(entry.hypothesis_id)["violated"].append(prediction_id)

    suggestions: list[TransitionSuggestion] = []
    for hypothesis_id, bucket in involved.items():
        hypothesis = hypotheses.get(hypothesis_id)
        if hypothesis is None:
            warnings.append(f"Hypothesis {hypothesis_id} referenced in predictions but not found")
            continue

        if bucket["violated"]:
            action, supporting = SuggestedAction.KILL, bucket["violated"]
            reason = f"Result contradicts {', '.join(supporting)}"
        elif bucket["matched"]:
            action, supporting = SuggestedAction.VALIDATE, bucket["matched"]
            reason = f"Result matches {', '.join(supporting)}"
        else:
            action, supporting = SuggestedAction.NONE, []
            reason = "Result polarity is ambiguous for this hypothesis's predictions"

        allowed, refusal = can_suggest_transition(hypothesis, action)
        if action != SuggestedAction.NONE and not allowed:
            warnings.append(f"Cannot {action.value} hypothesis {hypothesis_id}: {refusal}")
            continue

        suggestions.append(
            TransitionSuggestion(
                hypothesis_id=hypothesis_id,
                test_id=execution_input.test_id,
                action=action,
                trigger=ACTION_TRIGGERS.get(action),
                current_state=hypothesis.state,
                confidence=derive_confidence(
                    execution_input.confidence, execution_input.potency_check_passed, len(supporting)
                ),
                supporting_predictions=list(supporting),
                reason=reason,
            )
        )
        logger.debug(f"Suggested {action.value} for {hypothesis_id} from {execution_input.test_id}")

    return SuggestTransitionsResult(suggestions=suggestions, warnings=warnings)


def apply_transition_suggestions(
    suggestions: Iterable[TransitionSuggestion],
    hypotheses: Mapping[str, Hypothesis],
    *,
    triggered_by: str | None = None,
    session_id: str | None = None,
    min_confidence: Confidence | None = None,
    kills_only: bool = False,
    history: TransitionHistoryStore | None = None,
) -> ApplyTransitionsResult:
    """
    Apply suggestions through the lifecycle state machine.

    Args:
        suggestions: Suggestions to consider, in order.
        hypotheses: Current hypotheses keyed by id (not modified).
        triggered_by: Recorded on each transition; defaults to "test-binding".
        session_id: Recorded on each transition.
        min_confidence: Skip suggestions less confident than this.
        kills_only: Skip validate suggestions.
        history: Optional store receiving every successful transition.

    Returns:
        Per-hypothesis applied/skipped/error results and the updated hypotheses.
    """
    current = dict(hypotheses)
    result = ApplyTransitionsResult()
    threshold = CONFIDENCE_ORDER.index(Confidence(min_confidence)) if min_confidence else None

    for suggestion in suggestions:
        if suggestion.action == SuggestedAction.NONE:
            continue
        if threshold is not None and CONFIDENCE_ORDER.index(suggestion.confidence) > threshold:
            result.skipped.append(
                ApplyResult(
                    hypothesis_id=suggestion.hypothesis_id,
                    action=suggestion.action,
                    success=False,
                    skip_reason=f"Confidence {suggestion.confidence.value} below minimum {Confidence(min_confidence).value}",
                )
            )
            continue
        if kills_only and suggestion.action != SuggestedAction.KILL:
            result.skipped.append(
                ApplyResult(
                    hypothesis_id=suggestion.hypothesis_id,
                    action=suggestion.action,
                    success=False,
                    skip_reason="Only kill suggestions are applied",
                )
            )
            continue

        hypothesis = current.get(suggestion.hypothesis_id)
        if hypothesis is None:
            result.errors.append(
                ApplyResult(
                    hypothesis_id=suggestion.hypothesis_id,
                    action=suggestion.action,
                    success=False,
                    error=f"Hypothesis {suggestion.hypothesis_id} not found",
                )
            )
            continue

        outcome = transition_hypothesis(
            hypothesis,
            ACTION_TRIGGERS[suggestion.action],
            triggered_by=triggered_by or DEFAULT_TRIGGERED_BY,
            test_result_id=f"{suggestion.test_id}:{','.join(suggestion.supporting_predictions)}",
            reason=suggestion.reason,
            session_id=session_id,
        )
        if isinstance(outcome, TransitionSuccess):
            current[suggestion.hypothesis_id] = outcome.hypothesis
            if history is not None:
                history.add(outcome.transition)
            result.applied.append(
                ApplyResult(
                    hypothesis_id=suggestion.hypothesis_id,
                    action=suggestion.action,
                    success=True,
                    transition=outcome.transition,
                )
            )
        else:
            result.errors.append(
                ApplyResult(
                    hypothesis_id=suggestion.hypothesis_id,
                    action=suggestion.action,
                    success=False,
                    error=outcome.error.message,
                )
            )

    result.hypotheses = current
    logger.debug(
        f"Applied {len(result.applied)} suggestion(s), skipped {len(result.skipped)}, failed {len(result.errors)}"
    )
    return result


def process_test_execution(
    execution_input: ExecutionInput | Mapping[str, Any],
    test: TestRecord,
    predictions: Mapping[str, Prediction],
    hypotheses: Mapping[str, Hypothesis],
    *,
    auto_apply: bool = False,
    classifier: PolarityClassifier | None = None,
    history: TransitionHistoryStore | None = None,
    triggered_by: str | None = None,
    session_id: str | None = None,
    min_confidence: Confidence | None = None,
    kills_only: bool = False,
) -> ProcessResult:
    """Record, suggest and optionally apply; stops after a failed record step."""
    record_result = record_test_execution(execution_input, test, predictions)
    if not record_result.success or record_result.execution_input is None:
        return ProcessResult(record_result=record_result)

    suggest_result = suggest_transitions_from_execution(
        record_result.execution_input, predictions, hypotheses, classifier
    )
    if not auto_apply:
        return ProcessResult(record_result=record_result, suggest_result=suggest_result)

    apply_result = apply_transition_suggestions(
        suggest_result.suggestions,
        hypotheses,
        triggered_by=triggered_by,
        session_id=session_id or test.designed_in_session,
        min_confidence=min_confidence,
        kills_only=kills_only,
        history=history,
    )
    return ProcessResult(record_result=record_result, suggest_result=suggest_result, apply_result=apply_result)


def categorize_predictions(
    result: str,
    predictions: Iterable[Prediction],
    hypothesis_id: str,
    classifier: PolarityClassifier | None = None,
) -> PredictionCategories:
    """Sort the predictions involving ``hypothesis_id`` by agreement with ``result``."""
    result_polarity = detect_polarity(result, classifier)
    categories = PredictionCategories()
    for prediction in predictions:
        entry = prediction.prediction_for(hypothesis_id)
        if entry is None:
            continue
        predicted = detect_polarity(entry.prediction, classifier)
        if Polarity.AMBIGUOUS in (predicted, result_polarity):
            categories.ambiguous.append(prediction.id)
        elif predicted == result_polarity:
            categories.matched.append(prediction.id)
        else:
            categories.violated.append(prediction.id)
    return categories
