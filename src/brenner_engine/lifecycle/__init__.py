"""
Hypothesis lifecycle.

Legal state transitions, their evidence requirements, and the caller-owned
history of applied transitions.
"""

from brenner_engine.lifecycle.history import TransitionHistoryStore
from brenner_engine.lifecycle.state_machine import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    TransitionError,
    TransitionErrorCode,
    TransitionFailure,
    TransitionResult,
    TransitionSuccess,
    activate_hypothesis,
    confirm_hypothesis,
    defer_hypothesis,
    get_target_state,
    get_valid_triggers,
    is_terminal_state,
    is_valid_transition,
    reactivate_hypothesis,
    refute_hypothesis,
    supersede_hypothesis,
    transition_hypothesis,
    validate_transition_requirements,
)
from brenner_engine.records.hypothesis import HypothesisState
from brenner_engine.records.transition import Transition, TransitionTrigger

__all__ = [
    "HypothesisState",
    "Transition",
    "TransitionTrigger",
    "TransitionHistoryStore",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    "TransitionError",
    "TransitionErrorCode",
    "TransitionFailure",
    "TransitionResult",
    "TransitionSuccess",
    "activate_hypothesis",
    "confirm_hypothesis",
    "defer_hypothesis",
    "get_target_state",
    "get_valid_triggers",
    "is_terminal_state",
    "is_valid_transition",
    "reactivate_hypothesis",
    "refute_hypothesis",
    "supersede_hypothesis",
    "transition_hypothesis",
    "validate_transition_requirements",
]
