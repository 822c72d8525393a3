import pytest

from brenner_engine.lifecycle import (
    VALID_TRANSITIONS,
    HypothesisState,
    TransitionErrorCode,
    TransitionFailure,
    TransitionSuccess,
    TransitionTrigger,
    activate_hypothesis,
    confirm_hypothesis,
    get_valid_triggers,
    is_terminal_state,
    refute_hypothesis,
    supersede_hypothesis,
    transition_hypothesis,
)
from conftest import make_hypothesis

REQUIRED_OPTIONS = {"test_result_id": "T-s1-001:P-s1-001", "child_hypothesis_id": "H-s1-009"}


@pytest.mark.parametrize("state", list(HypothesisState))
@pytest.mark.parametrize("trigger", list(TransitionTrigger))
def test_transition_succeeds_iff_edge_exists(state: HypothesisState, trigger: TransitionTrigger) -> None:
    hypothesis = make_hypothesis(state=state)

    result = transition_hypothesis(hypothesis, trigger, **REQUIRED_OPTIONS)

    if trigger in VALID_TRANSITIONS[state]:
        assert isinstance(result, TransitionSuccess)
        assert result.hypothesis.state == VALID_TRANSITIONS[state][trigger]
        assert result.transition.from_state == state
    else:
        assert isinstance(result, TransitionFailure)
        expected = (
            TransitionErrorCode.TERMINAL_STATE if is_terminal_state(state) else TransitionErrorCode.INVALID_TRANSITION
        )
        assert result.error.code == expected
        assert result.error.to_state == state


def test_terminal_states_have_no_triggers() -> None:
    assert get_valid_triggers(HypothesisState.REFUTED) == []
    assert get_valid_triggers(HypothesisState.SUPERSEDED) == []


def test_refute_from_proposed_lists_valid_triggers() -> None:
    hypothesis = make_hypothesis(state=HypothesisState.PROPOSED)

    result = refute_hypothesis(hypothesis, test_result_id="T-s1-001")

    assert result.success is False
    assert result.error.code == TransitionErrorCode.INVALID_TRANSITION
    assert result.error.message == (
        "Invalid transition: cannot refute from state 'proposed'. Valid triggers: activate, defer"
    )


def test_terminal_state_message() -> None:
    hypothesis = make_hypothesis(state=HypothesisState.REFUTED)

    result = activate_hypothesis(hypothesis)

    assert result.error.code == TransitionErrorCode.TERMINAL_STATE
    assert "H-s1-001 has been refuted and cannot change" in result.error.message


@pytest.mark.parametrize("trigger", [TransitionTrigger.REFUTE, TransitionTrigger.CONFIRM])
def test_refute_and_confirm_require_test_result(trigger: TransitionTrigger) -> None:
    result = transition_hypothesis(make_hypothesis(), trigger)

    assert isinstance(result, TransitionFailure)
    assert result.error.code == TransitionErrorCode.MISSING_TEST_RESULT
    assert result.error.message.startswith(f"{trigger.value} transition requires a testResultId")


def test_supersede_requires_child() -> None:
    result = transition_hypothesis(make_hypothesis(), TransitionTrigger.SUPERSEDE)

    assert result.error.code == TransitionErrorCode.MISSING_CHILD_HYPOTHESIS
    assert result.error.to_state == HypothesisState.SUPERSEDED


def test_success_returns_new_value_without_mutating_input() -> None:
    hypothesis = make_hypothesis()

    result = confirm_hypothesis(hypothesis, test_result_id="T-s1-001:P-s1-001", triggered_by="alice", reason="Clean")

    assert result.success is True
    assert hypothesis.state == HypothesisState.ACTIVE
    assert result.hypothesis.state == HypothesisState.CONFIRMED
    assert result.hypothesis.updated_at == result.transition.timestamp
    assert result.transition.test_result_id == "T-s1-001:P-s1-001"
    assert result.transition.triggered_by == "alice"
    assert result.transition.session_id == "s1"


def test_supersede_records_child() -> None:
    result = supersede_hypothesis(make_hypothesis(), child_hypothesis_id="H-s1-002")
    assert result.transition.child_hypothesis_id == "H-s1-002"
    assert result.transition.to_state == HypothesisState.SUPERSEDED
