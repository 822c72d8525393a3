import pytest
from pydantic import ValidationError

from brenner_engine.records import (
    HypothesisCategory,
    PotencyCheck,
    TestRecord,
    check_cross_references,
    create_hypothesis,
    create_third_alternative,
    detect_level_conflation,
    generate_hypothesis_id,
    generate_test_id,
    is_valid_anchor,
    is_valid_assumption_id,
    is_valid_hypothesis_id,
    is_valid_record_id,
    validate_hypothesis,
    validate_prediction,
    validate_test_record,
    validate_third_alternative,
)
from conftest import make_hypothesis, make_prediction, make_test


@pytest.mark.parametrize(
    "value, expected",
    [
        ("H-s1-001", True),
        ("H-RS20251230-042", True),
        ("H-s1-01", False),
        ("H--001", False),
        ("P-s1-001", False),
    ],
)
def test_hypothesis_id_format(value: str, expected: bool) -> None:
    assert is_valid_hypothesis_id(value) is expected


def test_other_identifier_formats() -> None:
    assert is_valid_assumption_id("A-s1-003")
    assert is_valid_assumption_id("A12")
    assert not is_valid_assumption_id("A-s1")
    assert is_valid_anchor("§12")
    assert is_valid_anchor("§12-15")
    assert not is_valid_anchor("12")
    assert is_valid_record_id("REC-s1-1735600000")
    assert not is_valid_record_id("REC-s1")


def test_generated_ids_increment_within_session() -> None:
    existing = ["H-s1-001", "H-s1-007", "H-s2-009", "garbage"]
    assert generate_hypothesis_id("s1", existing) == "H-s1-008"
    assert generate_hypothesis_id("s3", existing) == "H-s3-001"
    assert generate_test_id("s1", []) == "T-s1-001"


def test_validate_hypothesis_itemizes_errors() -> None:
    result = validate_hypothesis({"id": "bad", "statement": "short", "session_id": ""})

    assert result.valid is False
    assert result.record is None
    assert any(e.startswith("id:") for e in result.errors)
    assert any(e.startswith("statement:") for e in result.errors)
    assert len(result.errors) >= 3


def test_validate_hypothesis_accepts_wire_keys_and_warns() -> None:
    result = validate_hypothesis(
        {
            "id": "H-s1-001",
            "statement": "The gene tells the cell which fate to adopt",
            "sessionId": "s1",
            "category": "mechanistic",
        }
    )

    assert result.valid is True
    assert result.record is not None
    assert result.record.session_id == "s1"
    assert any("mechanism" in w for w in result.warnings)
    assert any("level conflation" in w for w in result.warnings)


def test_validation_is_idempotent() -> None:
    data = make_hypothesis().to_dict()
    first = validate_hypothesis(data)
    second = validate_hypothesis(data)
    assert first.model_dump() == second.model_dump()


def test_invalid_anchor_rejected() -> None:
    with pytest.raises(ValidationError):
        make_hypothesis(anchors=["12"])


def test_prediction_needs_two_distinct_hypotheses() -> None:
    data = make_prediction().to_dict()
    data["hypothesisPredictions"] = data["hypothesisPredictions"][:1]
    assert validate_prediction(data).valid is False

    duplicate = make_prediction(second=("H-s1-001", "Effect absent"))
    result = validate_prediction(duplicate)
    assert result.valid is False
    assert "duplicate" in result.errors[0]


def test_test_without_positive_control_fails_construction() -> None:
    data = make_test().to_dict()
    del data["potencyCheck"]["positiveControl"]

    result = validate_test_record(data)

    assert result.valid is False
    assert any("positiveControl" in e for e in result.errors)
    with pytest.raises(ValidationError):
        TestRecord.model_validate(data)


def test_test_without_potency_check_fails_construction() -> None:
    data = make_test().to_dict()
    del data["potencyCheck"]
    assert validate_test_record(data).valid is False


def test_test_missing_expected_outcome_is_itemized() -> None:
    test = make_test(discriminates=["H-s1-001", "H-s1-002", "H-s1-003"])
    result = validate_test_record(test)
    assert result.valid is False
    assert result.errors == ["expectedOutcomes: missing expected outcome for hypothesis H-s1-003"]


def test_cross_references() -> None:
    hypotheses = [make_hypothesis("H-s1-001")]
    prediction = make_prediction()
    test = make_test(addresses_predictions=["P-s1-099"])

    errors = check_cross_references(hypotheses, [prediction], [test])

    assert "Prediction P-s1-001 references unknown hypothesis H-s1-002" in errors
    assert "Test T-s1-001 discriminates unknown hypothesis H-s1-002" in errors
    assert "Test T-s1-001 addresses unknown prediction P-s1-099" in errors


def test_cross_references_clean() -> None:
    hypotheses = [make_hypothesis("H-s1-001"), make_hypothesis("H-s1-002")]
    test = make_test(addresses_predictions=["P-s1-001"])
    assert check_cross_references(hypotheses, [make_prediction()], [test]) == []


def test_factories_and_third_alternative_quality() -> None:
    main = create_hypothesis("H-s1-001", "Fate is set by a maternal gradient", "s1")
    assert main.state.value == "proposed"

    placeholder = create_third_alternative("H-s1-002", "Both could be wrong about the timing", "s1")
    assert placeholder.is_inference is True
    assert placeholder.category == HypothesisCategory.THIRD_ALTERNATIVE
    assert validate_third_alternative([main, placeholder]).quality == 1

    orthogonal = create_third_alternative(
        "H-s1-003",
        "Fate is neither intrinsic nor signalled but stochastic",
        "s1",
        mechanism="Noise in expression leads to bistable switching",
    )
    check = validate_third_alternative([main, placeholder, orthogonal])
    assert check.present is True
    assert check.quality == 3

    assert validate_third_alternative([main]).quality == 0


def test_detect_level_conflation() -> None:
    assert detect_level_conflation("The cell decides to divide") == ["The cell decides"]
    assert detect_level_conflation("Expression rises after induction") == []


def test_potency_check_model_requires_positive_control() -> None:
    with pytest.raises(ValidationError):
        PotencyCheck(positive_control="")
