"""
Test binding.

Converts observed test results into hypothesis lifecycle suggestions and
applies the approved ones.
"""

from brenner_engine.binding.engine import (
    ApplyResult,
    ApplyTransitionsResult,
    ExecutionInput,
    ExecutionRecordResult,
    PredictionCategories,
    ProcessResult,
    SuggestedAction,
    SuggestTransitionsResult,
    TransitionSuggestion,
    apply_transition_suggestions,
    can_suggest_transition,
    categorize_predictions,
    derive_confidence,
    process_test_execution,
    record_test_execution,
    suggest_transitions_from_execution,
)
from brenner_engine.binding.polarity import (
    KeywordPolarityClassifier,
    Polarity,
    PolarityClassifier,
    detect_polarity,
)

__all__ = [
    "ApplyResult",
    "ApplyTransitionsResult",
    "ExecutionInput",
    "ExecutionRecordResult",
    "PredictionCategories",
    "ProcessResult",
    "SuggestedAction",
    "SuggestTransitionsResult",
    "TransitionSuggestion",
    "apply_transition_suggestions",
    "can_suggest_transition",
    "categorize_predictions",
    "derive_confidence",
    "process_test_execution",
    "record_test_execution",
    "suggest_transitions_from_execution",
    "KeywordPolarityClassifier",
    "Polarity",
    "PolarityClassifier",
    "detect_polarity",
]
