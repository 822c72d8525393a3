"""
Hypothesis lifecycle state machine.

Only the edges in ``VALID_TRANSITIONS`` are legal. ``refuted`` and
``superseded`` are terminal. Transitions never mutate their input: a
successful transition returns a new Hypothesis plus the Transition record,
and the caller decides where to persist both.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field

from brenner_engine.records.base import now_utc
from brenner_engine.records.hypothesis import Hypothesis, HypothesisState
from brenner_engine.records.transition import Transition, TransitionTrigger

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[HypothesisState, dict[TransitionTrigger, HypothesisState]] = {
    HypothesisState.PROPOSED: {
        TransitionTrigger.ACTIVATE: HypothesisState.ACTIVE,
        TransitionTrigger.DEFER: HypothesisState.DEFERRED,
    },
    HypothesisState.ACTIVE: {
        TransitionTrigger.REFUTE: HypothesisState.REFUTED,
        TransitionTrigger.CONFIRM: HypothesisState.CONFIRMED,
        TransitionTrigger.SUPERSEDE: HypothesisState.SUPERSEDED,
        TransitionTrigger.DEFER: HypothesisState.DEFERRED,
    },
    HypothesisState.CONFIRMED: {
        TransitionTrigger.SUPERSEDE: HypothesisState.SUPERSEDED,
        TransitionTrigger.REFUTE: HypothesisState.REFUTED,
    },
    HypothesisState.REFUTED: {},
    HypothesisState.SUPERSEDED: {},
    HypothesisState.DEFERRED: {
        TransitionTrigger.REACTIVATE: HypothesisState.ACTIVE,
    },
}

TERMINAL_STATES: frozenset[HypothesisState] = frozenset(
    {HypothesisState.REFUTED, HypothesisState.SUPERSEDED}
)


class TransitionErrorCode(str, Enum):
    INVALID_TRANSITION = "INVALID_TRANSITION"
    MISSING_TEST_RESULT = "MISSING_TEST_RESULT"
    MISSING_CHILD_HYPOTHESIS = "MISSING_CHILD_HYPOTHESIS"
    TERMINAL_STATE = "TERMINAL_STATE"


class TransitionError(BaseModel):
    """Why a transition was rejected."""

    code: TransitionErrorCode
    message: str
    from_state: HypothesisState
    to_state: HypothesisState = Field(..., description="Attempted target; equals from_state when none exists")
    trigger: TransitionTrigger


class TransitionSuccess(BaseModel):
    success: Literal[True] = True
    hypothesis: Hypothesis
    transition: Transition


class TransitionFailure(BaseModel):
    success: Literal[False] = False
    error: TransitionError


TransitionResult = Union[TransitionSuccess, TransitionFailure]


def is_valid_transition(from_state: HypothesisState, trigger: TransitionTrigger) -> bool:
    return trigger in VALID_TRANSITIONS[HypothesisState(from_state)]


def get_target_state(from_state: HypothesisState, trigger: TransitionTrigger) -> HypothesisState | None:
    return VALID_TRANSITIONS[HypothesisState(from_state)].get(TransitionTrigger(trigger))


def get_valid_triggers(state: HypothesisState) -> list[TransitionTrigger]:
    return list(VALID_TRANSITIONS[HypothesisState(state)])


def is_terminal_state(state: HypothesisState) -> bool:
    return HypothesisState(state) in TERMINAL_STATES


def validate_transition_requirements(
    trigger: TransitionTrigger,
    *,
    test_result_id: str | None = None,
    child_hypothesis_id: str | None = None,
) -> tuple[TransitionErrorCode, str] | None:
    """
    Check the evidence a trigger requires.

    Returns:
        ``(code, message)`` when a requirement is missing, otherwise None.
    """
    trigger = TransitionTrigger(trigger)
    if trigger in (TransitionTrigger.REFUTE, TransitionTrigger.CONFIRM) and not test_result_id:
        verb = "invalidated" if trigger == TransitionTrigger.REFUTE else "supported"
        return (
            TransitionErrorCode.MISSING_TEST_RESULT,
            f"{trigger.value} transition requires a testResultId linking to the test that {verb} the hypothesis",
        )
    if trigger == TransitionTrigger.SUPERSEDE and not child_hypothesis_id:
        return (
            TransitionErrorCode.MISSING_CHILD_HYPOTHESIS,
            "supersede transition requires a childHypothesisId linking to the replacement hypothesis",
        )
    return None


def transition_hypothesis(
    hypothesis: Hypothesis,
    trigger: TransitionTrigger,
    *,
    triggered_by: str | None = None,
    test_result_id: str | None = None,
    child_hypothesis_id: str | None = None,
    reason: str | None = None,
    session_id: str | None = None,
) -> TransitionResult:
    """
    Attempt a lifecycle transition.

    Args:
        hypothesis: Current hypothesis value (not modified).
        trigger: Lifecycle event to apply.
        triggered_by: Agent, person or subsystem responsible.
        test_result_id: Required for refute and confirm.
        child_hypothesis_id: Required for supersede.
        reason: Free-text justification.
        session_id: Session recorded on the transition; defaults to the hypothesis's.

    Returns:
        TransitionSuccess with the updated hypothesis and transition record,
        or TransitionFailure describing why the transition is illegal.
    """
    trigger = TransitionTrigger(trigger)
    from_state = hypothesis.state
    target = get_target_state(from_state, trigger)

    if target is None:
        if is_terminal_state(from_state):
            code = TransitionErrorCode.TERMINAL_STATE
            message = (
                f"Cannot transition from terminal state '{from_state.value}'. "
                f"Hypothesis {hypothesis.id} has been {from_state.value} and cannot change."
            )
        else:
            code = TransitionErrorCode.INVALID_TRANSITION
            valid = ", ".join(t.value for t in get_valid_triggers(from_state)) or "none"
            message = (
                f"Invalid transition: cannot {trigger.value} from state '{from_state.value}'. "
                f"Valid triggers: {valid}"
            )
        return TransitionFailure(
            error=TransitionError(
                code=code, message=message, from_state=from_state, to_state=from_state, trigger=trigger
            )
        )

    missing = validate_transition_requirements(
        trigger, test_result_id=test_result_id, child_hypothesis_id=child_hypothesis_id
    )
    if missing is not None:
        code, message = missing
        return TransitionFailure(
            error=TransitionError(code=code, message=message, from_state=from_state, to_state=target, trigger=trigger)
        )

    timestamp = now_utc()
    transition = Transition(
        hypothesis_id=hypothesis.id,
        from_state=from_state,
        to_state=target,
        trigger=trigger,
        triggered_by=triggered_by,
        test_result_id=test_result_id,
        child_hypothesis_id=child_hypothesis_id,
        reason=reason,
        session_id=session_id or hypothesis.session_id,
        timestamp=timestamp,
    )
    updated = hypothesis.model_copy(update={"state": target, "updated_at": timestamp})
    logger.debug(f"Hypothesis {hypothesis.id}: {from_state.value} -> {target.value} ({trigger.value})")
    return TransitionSuccess(hypothesis=updated, transition=transition)


def activate_hypothesis(hypothesis: Hypothesis, **options: str | None) -> TransitionResult:
    return transition_hypothesis(hypothesis, TransitionTrigger.ACTIVATE, **options)


def refute_hypothesis(hypothesis: Hypothesis, test_result_id: str, **options: str | None) -> TransitionResult:
    return transition_hypothesis(hypothesis, TransitionTrigger.REFUTE, test_result_id=test_result_id, **options)


def confirm_hypothesis(hypothesis: Hypothesis, test_result_id: str, **options: str | None) -> TransitionResult:
    return transition_hypothesis(hypothesis, TransitionTrigger.CONFIRM, test_result_id=test_result_id, **options)


def supersede_hypothesis(hypothesis: Hypothesis, child_hypothesis_id: str, **options: str | None) -> TransitionResult:
    return transition_hypothesis(
        hypothesis, TransitionTrigger.SUPERSEDE, child_hypothesis_id=child_hypothesis_id, **options
    )


def defer_hypothesis(hypothesis: Hypothesis, **options: str | None) -> TransitionResult:
    return transition_hypothesis(hypothesis, TransitionTrigger.DEFER, **options)


def reactivate_hypothesis(hypothesis: Hypothesis, **options: str | None) -> TransitionResult:
    return transition_hypothesis(hypothesis, TransitionTrigger.REACTIVATE, **options)
