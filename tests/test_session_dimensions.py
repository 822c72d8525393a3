import pytest

from brenner_engine.binding import ExecutionInput, process_test_execution
from brenner_engine.lifecycle import TransitionHistoryStore
from brenner_engine.records import TestFeasibility, create_third_alternative
from brenner_engine.scoring import (
    AnomalyItem,
    AssumptionItem,
    CritiqueItem,
    HypothesisItem,
    SessionArtifact,
    SessionData,
    build_session_data,
    compute_dimension_score,
    compute_grade,
    score_hypothesis_kill_rate,
    score_session,
    score_third_alternative_discovery,
)
from brenner_engine.scoring.dimensions import ScoreSignal
from conftest import make_hypothesis, make_test

QUESTION = (
    "Why do sister cells adopt different fates despite sharing a lineage? "
    "We reconsider the autonomy assumption."
)


@pytest.fixture
def scored_session(hypotheses, prediction) -> SessionData:
    hypotheses = {
        "H-s1-001": make_hypothesis("H-s1-001", mechanism="Maternal gradient of morphogen sets fate"),
        "H-s1-002": hypotheses["H-s1-002"],
    }
    test = make_test(feasibility=TestFeasibility(requirements="Confocal microscope and morpholinos"))
    history = TransitionHistoryStore()
    result = process_test_execution(
        ExecutionInput(test_id=test.id, result="Effect absent", matched_predictions=[prediction.id]),
        test,
        {prediction.id: prediction},
        hypotheses,
        auto_apply=True,
        history=history,
    )
    third = create_third_alternative(
        "H-s1-003",
        "Fate is neither intrinsic nor signalled but stochastic",
        "s1",
        mechanism="Stochastic noise triggers bistable switching",
    )

    return build_session_data(
        "s1",
        [*result.apply_result.hypotheses.values(), third],
        [test],
        predictions=[prediction],
        history=history,
        research_question=QUESTION,
        assumptions=[
            AssumptionItem(
                id="A-s1-001",
                name="Cell autonomy",
                load="Supports H-s1-001",
                status="falsified",
                scale_check=True,
            )
        ],
        anomalies=[AnomalyItem(id="X-s1-001", observation="Sisters diverge before any signal is detectable")],
        critiques=[
            CritiqueItem(
                id="C-s1-001",
                attack="The gradient is too shallow to separate sisters",
                evidence="Measured gradient differs by under 2% across one cell diameter",
                real_third_alternative=True,
            )
        ],
    )


def test_adapter_links_kill_to_test(scored_session: SessionData) -> None:
    slate = {item.id: item for item in scored_session.artifact.sections.hypothesis_slate}

    assert slate["H-s1-001"].killed is True
    assert slate["H-s1-001"].killed_by == "T-s1-001:P-s1-001"
    assert slate["H-s1-002"].killed is False
    assert slate["H-s1-003"].third_alternative is True
    assert scored_session.artifact.sections.discriminative_tests[0].status == "untested"
    assert [t.to_state for t in scored_session.hypothesis_transitions] == ["refuted", "confirmed"]


def test_full_session_scores(scored_session: SessionData) -> None:
    score = score_session(scored_session)
    points = {name: d.points for name, d in score.dimensions.items()}

    assert points == {
        "paradox_grounding": 20,
        "hypothesis_kill_rate": 20,
        "test_discriminability": 20,
        "assumption_tracking": 15,
        "third_alternative_discovery": 15,
        "experimental_feasibility": 5,
        "adversarial_pressure": 20,
    }
    assert score.max_score == 120
    assert score.total_score == 115
    assert score.grade == "A"


def test_empty_session_scores_zero() -> None:
    score = score_session(SessionData(session_id="s1"))
    assert score.total_score == 0
    assert score.max_score == 120
    assert score.grade == "F"
    assert all(d.percentage == 0 for d in score.dimensions.values())


def test_static_session_penalty_is_clamped() -> None:
    session = SessionData(
        session_id="s1",
        artifact=SessionArtifact.model_validate(
            {"sections": {"hypothesis_slate": [{"id": "H-s1-001", "name": "H1", "claim": "Cells decide"}]}}
        ),
    )

    dimension = score_hypothesis_kill_rate(session)

    assert dimension.points == 0
    penalty = next(s for s in dimension.signals if s.points < 0)
    assert penalty.found is True
    assert penalty.evidence == "1 hypotheses but no transitions"


def test_overlapping_third_alternative_is_not_orthogonal() -> None:
    session = SessionData(
        session_id="s1",
        artifact=SessionArtifact.model_validate(
            {
                "sections": {
                    "hypothesis_slate": [
                        HypothesisItem(id="H1", name="Main", claim="x", mechanism="Morphogen gradient sets fate").model_dump(),
                        HypothesisItem(
                            id="H3",
                            name="Third",
                            claim="y",
                            mechanism="Morphogen gradient sets fate",
                            third_alternative=True,
                        ).model_dump(),
                    ]
                }
            }
        ),
    )

    dimension = score_third_alternative_discovery(session)

    assert dimension.points == 5
    assert [s.found for s in dimension.signals] == [True, False, False]


def test_compute_dimension_score_caps_at_maximum() -> None:
    signals = [ScoreSignal(signal="a", points=8, found=True), ScoreSignal(signal="b", points=8, found=True)]
    dimension = compute_dimension_score("custom", signals, 10)
    assert dimension.points == 10
    assert dimension.percentage == 100


@pytest.mark.parametrize(
    "total, maximum, grade",
    [(108, 120, "A"), (96, 120, "B"), (84, 120, "C"), (72, 120, "D"), (71, 120, "F"), (0, 0, "F")],
)
def test_compute_grade(total: int, maximum: int, grade: str) -> None:
    assert compute_grade(total, maximum) == grade
