import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from brenner_engine.errors import InvalidHistoryError
from brenner_engine.lifecycle import (
    HypothesisState,
    Transition,
    TransitionHistoryStore,
    TransitionTrigger,
    activate_hypothesis,
    refute_hypothesis,
)
from conftest import make_hypothesis

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _transition(hypothesis_id: str, to_state: HypothesisState, at: datetime, **extra) -> Transition:
    return Transition(
        hypothesis_id=hypothesis_id,
        from_state=HypothesisState.ACTIVE,
        to_state=to_state,
        trigger=TransitionTrigger.REFUTE if to_state == HypothesisState.REFUTED else TransitionTrigger.DEFER,
        timestamp=at,
        **extra,
    )


@pytest.fixture
def store() -> TransitionHistoryStore:
    store = TransitionHistoryStore()
    hypothesis = make_hypothesis(state=HypothesisState.PROPOSED)
    activated = activate_hypothesis(hypothesis)
    store.add(activated.transition)
    refuted = refute_hypothesis(activated.hypothesis, test_result_id="T-s1-001:P-s1-001", reason="Assay negative")
    store.add(refuted.transition)
    store.add(_transition("H-s1-002", HypothesisState.DEFERRED, T0))
    return store


def test_lookups(store: TransitionHistoryStore) -> None:
    assert len(store) == 3
    assert "H-s1-001" in store
    assert [t.to_state for t in store.get_history("H-s1-001")] == [HypothesisState.ACTIVE, HypothesisState.REFUTED]
    assert store.get_latest_transition("H-s1-001").to_state == HypothesisState.REFUTED
    assert store.get_latest_transition("H-s1-404") is None
    assert store.get_refuted_hypotheses() == ["H-s1-001"]
    assert len(store.get_transitions_by_test_result("T-s1-001:P-s1-001")) == 1


def test_get_history_returns_copy(store: TransitionHistoryStore) -> None:
    store.get_history("H-s1-001").clear()
    assert len(store.get_history("H-s1-001")) == 2


def test_all_transitions_sorted_and_stable() -> None:
    store = TransitionHistoryStore()
    late = _transition("H-s1-001", HypothesisState.REFUTED, T0 + timedelta(seconds=5))
    tie_a = _transition("H-s1-002", HypothesisState.DEFERRED, T0)
    tie_b = _transition("H-s1-003", HypothesisState.DEFERRED, T0)
    for transition in (late, tie_a, tie_b):
        store.add(transition)

    assert [t.id for t in store.get_all_transitions()] == [tie_a.id, tie_b.id, late.id]


def test_export_import_roundtrip(store: TransitionHistoryStore) -> None:
    exported = json.loads(json.dumps(store.export_history()))
    assert "hypothesisId" in exported["H-s1-001"][0]

    restored = TransitionHistoryStore()
    restored.import_history(exported)

    for hypothesis_id in ("H-s1-001", "H-s1-002"):
        assert restored.get_history(hypothesis_id) == store.get_history(hypothesis_id)


def test_import_keeps_cross_hypothesis_order_for_equal_timestamps() -> None:
    store = TransitionHistoryStore()
    first = _transition("H-s1-001", HypothesisState.DEFERRED, T0)
    second = _transition("H-s1-002", HypothesisState.DEFERRED, T0)
    third = _transition("H-s1-001", HypothesisState.REFUTED, T0)
    for transition in (first, second, third):
        store.add(transition)

    exported = json.loads(json.dumps(store.export_history()))
    assert [record["sequence"] for record in exported["H-s1-001"]] == [0, 2]

    restored = TransitionHistoryStore()
    restored.import_history(exported)

    assert [t.id for t in restored.get_all_transitions()] == [first.id, second.id, third.id]


def test_import_without_sequence_uses_input_order() -> None:
    first = _transition("H-s1-001", HypothesisState.DEFERRED, T0)
    second = _transition("H-s1-002", HypothesisState.DEFERRED, T0)

    restored = TransitionHistoryStore()
    restored.import_history({"H-s1-002": [second.to_dict()], "H-s1-001": [first.to_dict()]})

    assert [t.id for t in restored.get_all_transitions()] == [second.id, first.id]


def test_import_rejects_invalid_id(store: TransitionHistoryStore) -> None:
    exported = store.export_history()
    exported["H-s1-001"][0]["hypothesisId"] = "not-an-id"

    restored = TransitionHistoryStore()
    with pytest.raises(InvalidHistoryError) as excinfo:
        restored.import_history(exported)

    assert any("hypothesisId" in problem for problem in excinfo.value.problems)
    assert len(restored) == 0


def test_import_rejects_bad_key_and_mismatched_owner(store: TransitionHistoryStore) -> None:
    exported = store.export_history()
    with pytest.raises(InvalidHistoryError):
        TransitionHistoryStore().import_history({"bogus": exported["H-s1-001"]})
    with pytest.raises(InvalidHistoryError):
        TransitionHistoryStore().import_history({"H-s1-003": exported["H-s1-001"]})


def test_clear(store: TransitionHistoryStore) -> None:
    store.clear()
    assert len(store) == 0
    assert store.get_all_transitions() == []


def test_concurrent_adds_are_not_lost() -> None:
    store = TransitionHistoryStore()

    def worker(offset: int) -> None:
        for i in range(200):
            store.add(_transition("H-s1-001", HypothesisState.DEFERRED, T0 + timedelta(seconds=offset * 1000 + i)))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 800
    assert len(store.get_history("H-s1-001")) == 800
