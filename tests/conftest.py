import pytest

from brenner_engine.records import (
    Hypothesis,
    HypothesisPrediction,
    HypothesisState,
    PotencyCheck,
    Prediction,
    TestRecord,
)

SESSION = "s1"


def make_hypothesis(
    id: str = "H-s1-001",
    statement: str = "Lineage is specified by a cell-autonomous program",
    state: HypothesisState = HypothesisState.ACTIVE,
    **extra,
) -> Hypothesis:
    return Hypothesis(id=id, statement=statement, session_id=SESSION, state=state, **extra)


def make_prediction(
    id: str = "P-s1-001",
    first: tuple[str, str] = ("H-s1-001", "Effect present"),
    second: tuple[str, str] = ("H-s1-002", "Effect absent"),
    **extra,
) -> Prediction:
    return Prediction(
        id=id,
        name="Reporter readout",
        condition="Knock out the reporter gene in early embryos",
        session_id=SESSION,
        hypothesis_predictions=[
            HypothesisPrediction(hypothesis_id=first[0], prediction=first[1]),
            HypothesisPrediction(hypothesis_id=second[0], prediction=second[1]),
        ],
        **extra,
    )


def make_test(id: str = "T-s1-001", **overrides) -> TestRecord:
    fields = dict(
        id=id,
        name="Reporter knockout",
        procedure="Knock out the reporter and measure fluorescence at 24h",
        discriminates=["H-s1-001", "H-s1-002"],
        expected_outcomes=[
            {"hypothesis_id": "H-s1-001", "outcome": "Fluorescence present", "result_type": "positive"},
            {"hypothesis_id": "H-s1-002", "outcome": "Fluorescence absent", "result_type": "negative"},
        ],
        potency_check=PotencyCheck(positive_control="Wild-type embryos fluoresce under the same imaging"),
        designed_in_session=SESSION,
    )
    fields.update(overrides)
    return TestRecord(**fields)


@pytest.fixture
def hypotheses() -> dict[str, Hypothesis]:
    first = make_hypothesis("H-s1-001")
    second = make_hypothesis("H-s1-002", statement="Lineage is specified by signals from neighbours")
    return {first.id: first, second.id: second}


@pytest.fixture
def prediction() -> Prediction:
    return make_prediction()


@pytest.fixture
def discriminating_test() -> TestRecord:
    return make_test()
