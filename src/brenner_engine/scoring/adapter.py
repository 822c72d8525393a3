"""
Adapters from engine records to session-scoring shapes.

Session scoring reads a compiled artifact plus transition history; these
helpers build both from hypothesis and test records and a caller-owned
:class:`TransitionHistoryStore`.
"""

from __future__ import annotations

from collections.abc import Iterable

from brenner_engine.lifecycle.history import TransitionHistoryStore
from brenner_engine.records.hypothesis import (
    Hypothesis,
    HypothesisCategory,
    HypothesisOrigin,
    HypothesisState,
)
from brenner_engine.records.prediction import Prediction
from brenner_engine.records.testrecord import TestRecord, TestStatus
from brenner_engine.scoring.artifact import (
    AnomalyItem,
    ArtifactSections,
    AssumptionItem,
    CritiqueItem,
    HypothesisItem,
    HypothesisTransitionRecord,
    PredictionItem,
    ResearchThreadItem,
    SessionArtifact,
    SessionData,
    TestItem,
)

TEST_STATUS_MAP: dict[TestStatus, str] = {
    TestStatus.DESIGNED: "untested",
    TestStatus.READY: "untested",
    TestStatus.IN_PROGRESS: "untested",
    TestStatus.COMPLETED: "passed",
    TestStatus.BLOCKED: "blocked",
    TestStatus.ABANDONED: "error",
}


def hypothesis_to_item(hypothesis: Hypothesis, history: TransitionHistoryStore | None = None) -> HypothesisItem:
    killed = hypothesis.state == HypothesisState.REFUTED
    latest = history.get_latest_transition(hypothesis.id) if history is not None and killed else None
    return HypothesisItem(
        id=hypothesis.id,
        name=hypothesis.statement[:80],
        claim=hypothesis.statement,
        mechanism=hypothesis.mechanism,
        anchors=list(hypothesis.anchors),
        third_alternative=(
            hypothesis.origin == HypothesisOrigin.THIRD_ALTERNATIVE
            or hypothesis.category == HypothesisCategory.THIRD_ALTERNATIVE
        ),
        killed=killed,
        killed_by=latest.test_result_id or latest.triggered_by if latest else None,
        killed_at=latest.timestamp if latest else None,
        kill_reason=latest.reason if latest else None,
    )


def testrecord_to_item(test: TestRecord) -> TestItem:
    feasibility = test.feasibility.requirements if test.feasibility else None
    return TestItem(
        id=test.id,
        name=test.name,
        procedure=test.procedure,
        discriminates=" vs ".join(test.discriminates),
        expected_outcomes={o.hypothesis_id: o.outcome for o in test.expected_outcomes},
        potency_check=test.potency_check.positive_control,
        feasibility=feasibility,
        status=TEST_STATUS_MAP[test.status],
        score=test.evidence_per_week_score.total if test.evidence_per_week_score else None,
    )


def prediction_to_item(prediction: Prediction) -> PredictionItem:
    return PredictionItem(
        id=prediction.id,
        condition=prediction.condition,
        predictions={entry.hypothesis_id: entry.prediction for entry in prediction.hypothesis_predictions},
    )


def transitions_from_history(history: TransitionHistoryStore) -> list[HypothesisTransitionRecord]:
    """Flatten a history store into chronological scoring records."""
    return [
        HypothesisTransitionRecord(
            hypothesis_id=t.hypothesis_id,
            from_state=t.from_state.value,
            to_state=t.to_state.value,
            triggered_by=t.triggered_by,
            reason=t.reason,
            timestamp=t.timestamp,
        )
        for t in history.get_all_transitions()
    ]


def build_session_data(
    session_id: str,
    hypotheses: Iterable[Hypothesis] = (),
    tests: Iterable[TestRecord] = (),
    *,
    predictions: Iterable[Prediction] = (),
    history: TransitionHistoryStore | None = None,
    research_question: str | None = None,
    assumptions: Iterable[AssumptionItem] = (),
    anomalies: Iterable[AnomalyItem] = (),
    critiques: Iterable[CritiqueItem] = (),
) -> SessionData:
    """
    Assemble session scoring input from engine records.

    Args:
        session_id: Session being scored.
        hypotheses: Current hypothesis records.
        tests: Test records.
        predictions: Prediction records.
        history: Transition history; kills and kill reasons are read from it.
        research_question: The session's framing question.
        assumptions: Assumption ledger items.
        anomalies: Anomaly register items.
        critiques: Adversarial critique items.

    Returns:
        SessionData ready for :func:`score_session`.
    """
    sections = ArtifactSections(
        research_thread=ResearchThreadItem(id="RT", statement=research_question) if research_question else None,
        hypothesis_slate=[hypothesis_to_item(h, history) for h in hypotheses],
        predictions_table=[prediction_to_item(p) for p in predictions],
        discriminative_tests=[testrecord_to_item(t) for t in tests],
        assumption_ledger=list(assumptions),
        anomaly_register=list(anomalies),
        adversarial_critique=list(critiques),
    )
    return SessionData(
        session_id=session_id,
        research_question=research_question,
        artifact=SessionArtifact(session_id=session_id, sections=sections),
        hypothesis_transitions=transitions_from_history(history) if history is not None else [],
    )
